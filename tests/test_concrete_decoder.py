# tests/test_concrete_decoder.py
import pytest

from pgf_runtime.core.codec.primitives import PROFILE_2_1
from pgf_runtime.core.codec.reader import decode
from pgf_runtime.core.domain.exceptions import UnknownCategory, UnknownLanguage
from pgf_runtime.core.domain.grammar import Apply, ConcreteFunction, PArg
from pgf_runtime.core.domain.symbols import SymKS
from tests.grammars import foods_abstract, foods_eng, foods_ita
from tests.pgf_builder import encode_block, encode_pgf


# =========================================================
# DECODED MODEL
# =========================================================

def test_flags_printnames_and_language_code(foods):
    eng = foods.concrete("FoodsEng")
    assert eng.flags["language"] == "en_US"
    assert foods.language_code("FoodsEng") == "en-US"
    assert eng.printname("Pizza") == "pizza (food)"
    assert eng.printname("Wine") == "Wine"


def test_category_layouts(foods):
    ita = foods.concrete("FoodsIta")
    assert list(ita.fids_of("Item")) == [1, 2, 3, 4]
    assert ita.labels_of(7) == ("s_msg", "s_fsg", "s_mpl", "s_fpl")
    assert ita.field_count(5) == 2
    assert ita.category_of(6) == "Kind"
    assert list(ita.fids_of("Int")) == [-2]
    with pytest.raises(UnknownCategory):
        ita.fids_of("Question")


def test_fids_outside_every_range_have_no_category(foods):
    ita = foods.concrete("FoodsIta")
    assert ita.category_of(7) == "Quality"
    assert ita.category_of(8) is None
    assert ita.field_count(8) is None
    assert ita.category_of(-3) == "Float"
    assert ita.category_of(-4) is None


def test_coercions_inherit_layout(foods):
    eng = foods.concrete("FoodsEng")
    assert sorted(eng.coercions) == [(6, 1), (6, 2)]
    assert eng.category_of(6) == "Item"
    assert eng.field_count(6) == 1
    assert eng.accepts(6, 2)
    assert not eng.accepts(1, 2)


def test_rules_resolve_functions_and_sequences(foods):
    eng = foods.concrete("FoodsEng")
    pred = eng.rules_for("Pred")
    assert [(r.fid, r.args) for r in pred] == [(0, (1, 4)), (0, (2, 4))]
    assert eng.rules_for("Ask")[0].args == (6,)
    assert foods.concrete("FoodsIta").rules_for("Ask") == ()


def test_multi_word_literals_are_split_into_tokens(foods):
    eng = foods.concrete("FoodsEng")
    assert ("what", "about") in eng.words


def test_unknown_language(foods):
    with pytest.raises(UnknownLanguage) as exc:
        foods.concrete("FoodsFre")
    assert exc.value.available == ["FoodsEng", "FoodsIta"]


# =========================================================
# INCONSISTENT BLOCKS
# =========================================================

def _fun_index(tables, name):
    return next(i for i, f in enumerate(tables.functions) if f.name == name)


def _sequence_out_of_range(tables):
    tables.functions[_fun_index(tables, "Pizza")] = ConcreteFunction("Pizza", (999, 999))


def _literal_out_of_range(tables):
    tables.sequences.append((SymKS(999),))


def _unknown_function(tables):
    tables.functions.append(ConcreteFunction("Pasta", ()))


def _missing_field(tables):
    index = _fun_index(tables, "Pizza")
    tables.functions[index] = ConcreteFunction("Pizza", tables.functions[index].sequences[:1])


def _fid_range_exceeds_total(tables):
    tables.total_fids = 5


def _unknown_concrete_category(tables):
    tables.categories.append(("Dessert", 8, 8, ["s"]))


def _overlapping_categories(tables):
    tables.categories[0] = ("Comment", 0, 1, ["s"])


def _argument_of_wrong_category(tables):
    this = tables.productions[1][0]
    tables.productions[1][0] = Apply(this.function, (PArg((), 7),))


def _argument_count_differs_from_arity(tables):
    this = tables.productions[1][0]
    tables.productions[1][0] = Apply(this.function, ())


@pytest.mark.parametrize(
    "tamper, reason",
    [
        (_sequence_out_of_range, "references sequence 999"),
        (_literal_out_of_range, "references literal 999"),
        (_unknown_function, "unknown function 'Pasta'"),
        (_missing_field, "'Pizza' has 1 field"),
        (_fid_range_exceeds_total, "ends at fid"),
        (_unknown_concrete_category, "unknown category 'Dessert'"),
        (_overlapping_categories, "categories 'Comment' and 'Item' share fid 1"),
        (_argument_of_wrong_category, "argument 0 of 'This' is Quality, declared Kind"),
        (_argument_count_differs_from_arity, "has 0 argument"),
    ],
)
def test_inconsistent_block_is_discarded(tamper, reason):
    broken = encode_block(foods_ita(), tamper=tamper)
    result = decode(encode_pgf(foods_abstract(), [foods_eng(), broken]))

    assert result.grammar.languages == ["FoodsEng"]
    [diag] = result.diagnostics
    assert diag.index == 1
    assert diag.language == "FoodsIta"
    assert diag.error == "MalformedConcreteSyntax"
    assert reason in diag.message


def test_inconsistent_block_in_fixed_width_format():
    broken = encode_block(foods_ita(), PROFILE_2_1, tamper=_literal_out_of_range)
    result = decode(encode_pgf(foods_abstract(), [foods_eng(), broken], profile=PROFILE_2_1))

    assert result.grammar.languages == ["FoodsEng"]
    assert "references literal 999" in result.diagnostics[0].message


def test_trailing_bytes_inside_a_frame():
    padded = encode_block(foods_ita()) + b"\x00"
    result = decode(encode_pgf(foods_abstract(), [foods_eng(), padded]))

    assert result.grammar.languages == ["FoodsEng"]
    assert "trailing byte" in result.diagnostics[0].message


def test_duplicate_language_keeps_the_first():
    result = decode(encode_pgf(foods_abstract(), [foods_eng(), foods_ita(), foods_eng()]))

    assert result.grammar.languages == ["FoodsEng", "FoodsIta"]
    [diag] = result.diagnostics
    assert diag.index == 2
    assert "duplicate language 'FoodsEng'" in diag.message


def _implausible_fid_count(tables):
    tables.categories = [
        (name, start, 20_000_000 if name == "Quality" else end, labels)
        for name, start, end, labels in tables.categories
    ]
    tables.total_fids = 20_000_001


def test_implausible_fid_count_is_discarded():
    broken = encode_block(foods_ita(), tamper=_implausible_fid_count)
    result = decode(encode_pgf(foods_abstract(), [foods_eng(), broken]))

    assert result.grammar.languages == ["FoodsEng"]
    [diag] = result.diagnostics
    assert diag.language == "FoodsIta"
    assert diag.error == "ImplausibleLength"
    assert "declares 20000001 fid(s)" in diag.message


def test_fid_count_near_the_int_limit_is_discarded():
    broken = encode_block(foods_ita(), tamper=lambda tables: setattr(tables, "total_fids", 2**31 - 1))
    result = decode(encode_pgf(foods_abstract(), [foods_eng(), broken]))

    assert result.grammar.languages == ["FoodsEng"]
    assert result.diagnostics[0].error == "ImplausibleLength"
