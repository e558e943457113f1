# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from pgf_runtime.adapters.api.main import create_app
from pgf_runtime.adapters.engines.pgf_engine import PGFGrammarEngine
from pgf_runtime.core.codec.reader import decode
from pgf_runtime.shared.container import container
from pgf_runtime.shared.logging_setup import init_logging
from tests import grammars
from tests.pgf_builder import encode_pgf


@pytest.fixture(scope="session", autouse=True)
def _logging():
    """Configure structlog once, against the session-wide output streams."""
    init_logging(level="DEBUG", log_format="console", force=True)


def _decode_clean(data: bytes):
    result = decode(data)
    assert result.diagnostics == (), result.diagnostics
    return result.grammar


@pytest.fixture(scope="session")
def foods_pgf() -> bytes:
    return encode_pgf(grammars.foods_abstract(), [grammars.foods_eng(), grammars.foods_ita()])


@pytest.fixture(scope="session")
def foods(foods_pgf):
    return _decode_clean(foods_pgf)


@pytest.fixture(scope="session")
def count_grammar():
    return _decode_clean(encode_pgf(grammars.count_abstract(), [grammars.count_cnc()]))


@pytest.fixture(scope="session")
def amb_grammar():
    return _decode_clean(encode_pgf(grammars.amb_abstract(), [grammars.amb_cnc()]))


@pytest.fixture(scope="session")
def silent_grammar():
    return _decode_clean(encode_pgf(grammars.silent_abstract(), [grammars.silent_cnc()]))


@pytest.fixture(scope="session")
def gap_grammar():
    return _decode_clean(encode_pgf(grammars.gap_abstract(), [grammars.gap_cnc()]))


@pytest.fixture
def foods_file(tmp_path, foods_pgf):
    path = tmp_path / "Foods.pgf"
    path.write_bytes(foods_pgf)
    return path


@pytest.fixture(scope="function")
def engine(foods_file):
    """A real engine over the Foods grammar written to a temporary file."""
    return PGFGrammarEngine(pgf_path=str(foods_file))


@pytest.fixture(scope="function")
def client(engine):
    """
    HTTP client whose routers resolve the engine above through the
    dependency injection container.
    """
    container.grammar_engine.override(engine)
    with TestClient(create_app()) as test_client:
        yield test_client
    container.grammar_engine.reset_override()
