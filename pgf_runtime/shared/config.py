# pgf_runtime/shared/config.py
import os
from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnv(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class LogFormat(str, Enum):
    JSON = "json"
    CONSOLE = "console"


class Settings(BaseSettings):
    """
    Central Configuration Registry.
    Strictly typed and validated via Pydantic; values come from the
    environment or a local .env file.
    """

    # --- Application Meta ---
    APP_NAME: str = "PGF Runtime"
    APP_ENV: AppEnv = AppEnv.DEVELOPMENT
    DEBUG: bool = False

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: LogFormat = LogFormat.JSON

    # --- Grammar ---
    FILESYSTEM_REPO_PATH: str = os.getcwd()
    PGF_FILENAME: str = "Grammar.pgf"

    # --- Query limits ---
    # Chart size grows polynomially with sentence length; longer inputs are refused.
    MAX_PARSE_TOKENS: int = 40
    MAX_TREES: int = 100

    # --- HTTP ---
    API_PREFIX: str = "/api/v1"

    @property
    def PGF_PATH(self) -> str:
        """
        Path to the PGF binary.
        PGF_RUNTIME_PGF_PATH wins when set; otherwise the file is looked up
        under the repo path.
        """
        env_override = os.getenv("PGF_RUNTIME_PGF_PATH")
        if env_override:
            return env_override
        return os.path.join(self.FILESYSTEM_REPO_PATH, self.PGF_FILENAME)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
