# tests/test_abstract_decoder.py
import pytest

from pgf_runtime.core.codec.primitives import PROFILE_2_1
from pgf_runtime.core.codec.reader import decode
from pgf_runtime.core.domain.exceptions import (
    ImplausibleLength,
    MalformedAbstractSyntax,
    MalformedHeader,
    UnknownCategory,
    UnknownFunction,
    UnexpectedEof,
    UnsupportedVersion,
)
from tests.grammars import count_abstract, count_cnc, foods_abstract, foods_eng, foods_ita
from tests.pgf_builder import AbstractSpec, encode_pgf


def test_abstract_tables_in_declaration_order(foods):
    assert foods.name == "Foods"
    assert foods.start_cat == "Comment"
    assert foods.categories == ["Comment", "Item", "Kind", "Quality", "Question"]
    assert foods.functions[:3] == ["Pred", "Costs", "This"]
    assert foods.function_type("Costs") == (("Item", "Int"), "Comment")
    assert foods.functions_by_cat("Kind") == ["Mod", "Pizza", "Wine"]
    assert foods.languages == ["FoodsEng", "FoodsIta"]
    assert foods.version == (1, 0)


def test_lookups_of_unknown_names(foods):
    with pytest.raises(UnknownFunction):
        foods.function_type("Pasta")
    with pytest.raises(UnknownCategory):
        foods.functions_by_cat("Drink")


def test_literal_categories_are_always_known(foods):
    assert foods.check_category("Int") == "Int"
    assert foods.functions_by_cat("String") == []


def test_global_flags_are_kept():
    data = encode_pgf(count_abstract(), [count_cnc()], global_flags={"coding": "utf8"})
    assert dict(decode(data).grammar.flags) == {"coding": "utf8"}


def test_start_category_defaults_to_first_declared():
    grammar = decode(encode_pgf(count_abstract(), [count_cnc()])).grammar
    assert grammar.start_cat == "S"


def test_fixed_width_format_decodes_the_same_grammar():
    grammar = decode(encode_pgf(foods_abstract(), [foods_eng(), foods_ita()], profile=PROFILE_2_1)).grammar
    assert grammar.version == (2, 1)
    assert grammar.languages == ["FoodsEng", "FoodsIta"]
    assert grammar.concrete("FoodsIta").total_fids == 8


@pytest.mark.parametrize(
    "spec, reason",
    [
        (foods_abstract(arity_override={"Pred": 3}), "records arity 3"),
        (foods_abstract(flags={"startcat": "Dessert"}), "start category 'Dessert'"),
        (
            AbstractSpec(name="Dup", cats=["S"], funs=[("A", [], "S"), ("A", [], "S")]),
            "duplicate function 'A'",
        ),
        (AbstractSpec(name="Dup", cats=["S", "S"], funs=[]), "duplicate category 'S'"),
        (AbstractSpec(name="Lit", cats=["S", "Int"], funs=[]), "duplicate category 'Int'"),
        (AbstractSpec(name="Undeclared", cats=["S"], funs=[("A", ["T"], "S")]), "undeclared"),
        (AbstractSpec(name="Empty", cats=[], funs=[]), "no categories"),
    ],
)
def test_inconsistent_abstract_syntax_is_fatal(spec, reason):
    with pytest.raises(MalformedAbstractSyntax, match=reason):
        decode(encode_pgf(spec, []))


def test_unsupported_version():
    with pytest.raises(UnsupportedVersion):
        decode(encode_pgf(count_abstract(), [count_cnc()], version=(3, 0)))


def test_truncated_header():
    with pytest.raises(MalformedHeader):
        decode(b"\x00\x01")


def test_truncated_abstract_syntax(foods_pgf):
    with pytest.raises(MalformedAbstractSyntax) as exc:
        decode(foods_pgf[:40])
    assert isinstance(exc.value.__cause__, UnexpectedEof)
    assert exc.value.offset is not None


def test_implausible_count_in_abstract_syntax():
    data = bytearray(encode_pgf(count_abstract(), []))
    # header (4) + global flags (1) + name "Count" (6) + abstract flags (1) -> category count
    data[12] = 0x7F
    with pytest.raises(MalformedAbstractSyntax) as exc:
        decode(bytes(data))
    assert isinstance(exc.value.__cause__, ImplausibleLength)
