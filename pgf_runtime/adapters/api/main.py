# pgf_runtime/adapters/api/main.py
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pgf_runtime.adapters.api.routers import grammar, health, languages, linearization, parsing
from pgf_runtime.core.domain.exceptions import (
    ExpressionSyntaxError,
    GrammarNotLoaded,
    MissingLinearization,
    PGFError,
    TypeMismatch,
    UnknownCategory,
    UnknownFunction,
    UnknownLanguage,
)
from pgf_runtime.shared.config import AppEnv, settings
from pgf_runtime.shared.container import container
from pgf_runtime.shared.logging_setup import init_logging

logger = structlog.get_logger()

# Most specific first; the first matching class decides the status.
ERROR_STATUS = (
    ((UnknownLanguage, UnknownCategory, UnknownFunction), status.HTTP_404_NOT_FOUND),
    ((ExpressionSyntaxError, TypeMismatch, MissingLinearization), status.HTTP_422_UNPROCESSABLE_ENTITY),
    ((GrammarNotLoaded,), status.HTTP_503_SERVICE_UNAVAILABLE),
    ((PGFError,), status.HTTP_400_BAD_REQUEST),
)


def status_for(exc: PGFError) -> int:
    for classes, code in ERROR_STATUS:
        if isinstance(exc, classes):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_body(code: int, error: str, message: str) -> dict:
    return {"status": "error", "code": code, "error": error, "message": message}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application Lifecycle Manager."""
    logger.info("app_starting", app=settings.APP_NAME, env=settings.APP_ENV.value)
    engine = container.grammar_engine()
    if not await engine.health_check():
        logger.warning("app_started_without_grammar", path=settings.PGF_PATH)
    yield
    logger.info("app_stopping")


def create_app() -> FastAPI:
    """Factory function to create the FastAPI application."""
    init_logging()

    app = FastAPI(
        title=settings.APP_NAME,
        version="1.0.0",
        description="Parse and linearize with compiled PGF grammars",
        docs_url="/docs" if settings.APP_ENV != AppEnv.PRODUCTION else None,
        redoc_url="/redoc" if settings.APP_ENV != AppEnv.PRODUCTION else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers resolve the engine through the container.
    container.wire(modules=[grammar, health, languages, linearization, parsing])

    # --- Global Exception Handlers ---
    @app.exception_handler(PGFError)
    async def pgf_error_handler(request: Request, exc: PGFError):
        code = status_for(exc)
        logger.warning("request_failed", path=request.url.path, code=code, error=type(exc).__name__, reason=str(exc))
        return JSONResponse(status_code=code, content=_error_body(code, type(exc).__name__, str(exc)))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.status_code, "HTTPException", str(exc.detail)),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error("unhandled_exception", path=request.url.path, error=str(exc), exc_info=True)
        message = str(exc) if settings.DEBUG else "Internal Server Error"
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(500, type(exc).__name__, message),
        )

    app.include_router(health.router, prefix=settings.API_PREFIX)
    app.include_router(languages.router, prefix=settings.API_PREFIX)
    app.include_router(parsing.router, prefix=settings.API_PREFIX)
    app.include_router(linearization.router, prefix=settings.API_PREFIX)
    app.include_router(grammar.router, prefix=settings.API_PREFIX)

    return app
