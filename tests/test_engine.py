# tests/test_engine.py
import asyncio

import pytest

from pgf_runtime.adapters.engines.pgf_engine import PGFGrammarEngine
from pgf_runtime.core.domain.exceptions import GrammarNotLoaded, InputTooLong, UnknownLanguage
from pgf_runtime.core.domain.trees import read_expr
from pgf_runtime.core.ports import IGrammarEngine
from tests.grammars import amb_abstract, amb_cnc, foods_abstract, foods_eng
from tests.pgf_builder import encode_block, encode_pgf


def run(coro):
    return asyncio.run(coro)


def test_engine_implements_the_port(engine):
    assert isinstance(engine, IGrammarEngine)
    assert run(engine.health_check()) is True
    assert run(engine.get_supported_languages()) == ["FoodsEng", "FoodsIta"]


@pytest.mark.parametrize(
    "code, language",
    [
        ("FoodsIta", "FoodsIta"),
        ("en", "FoodsEng"),
        ("en-US", "FoodsEng"),
        ("it_IT", "FoodsIta"),
        ("eng", "FoodsEng"),
        ("ita", "FoodsIta"),
    ],
)
def test_language_resolution(engine, code, language):
    assert engine.resolve_language(code) == language


def test_unknown_language_code(engine):
    with pytest.raises(UnknownLanguage):
        run(engine.parse("fre", "ce pizza"))


def test_parse_and_linearize(engine):
    [tree] = run(engine.parse("en", "this pizza is delicious"))
    assert str(tree) == "Pred (This Pizza) Delicious"
    assert run(engine.linearize("it", tree)) == "questa pizza è deliziosa"
    assert run(engine.linearize("it", "Pred (These Wine) Italian")) == "questi vini sono italiani"
    assert run(engine.linearize_all("en", "Pred ? Italian")) == ["? is Italian", "? are Italian"]
    assert run(engine.tabular_linearize("en", read_expr("Wine"))) == {"s_sg": "wine", "s_pl": "wines"}


def test_parse_limits(tmp_path):
    path = tmp_path / "Amb.pgf"
    path.write_bytes(encode_pgf(amb_abstract(), [amb_cnc()]))
    engine = PGFGrammarEngine(pgf_path=str(path), max_tokens=7, max_trees=3)

    trees = run(engine.parse("AmbCnc", "a and a and a and a"))
    assert [str(t) for t in trees] == sorted(str(t) for t in trees)
    assert len(trees) == 3

    with pytest.raises(InputTooLong):
        run(engine.parse("AmbCnc", "a and a and a and a and a"))


def test_missing_file_leaves_the_engine_unloaded(tmp_path):
    engine = PGFGrammarEngine(pgf_path=str(tmp_path / "missing.pgf"))

    assert run(engine.health_check()) is False
    assert run(engine.get_supported_languages()) == []
    with pytest.raises(GrammarNotLoaded):
        run(engine.parse("en", "this pizza is delicious"))
    with pytest.raises(GrammarNotLoaded):
        run(engine.describe())


def test_reload_picks_up_a_repaired_file(tmp_path, foods_pgf):
    path = tmp_path / "Foods.pgf"
    path.write_bytes(b"\x00\x09\x00\x00")
    engine = PGFGrammarEngine(pgf_path=str(path))
    assert run(engine.health_check()) is False
    assert "unsupported" in engine.load_error

    path.write_bytes(foods_pgf)
    run(engine.reload())
    assert run(engine.health_check()) is True
    assert engine.load_error is None


def test_describe_reports_discarded_blocks(tmp_path):
    path = tmp_path / "Foods.pgf"
    path.write_bytes(encode_pgf(foods_abstract(), [foods_eng(), encode_block(foods_eng("FoodsIta"))[:-2]]))
    summary = run(PGFGrammarEngine(pgf_path=str(path)).describe())

    assert summary["name"] == "Foods"
    assert summary["version"] == "1.0"
    assert summary["functions"] == 13
    assert summary["languages"] == [{"name": "FoodsEng", "code": "en-US"}]
    [diag] = summary["diagnostics"]
    assert diag["index"] == 1
    assert diag["language"] == "FoodsIta"
