# tests/test_trees.py
import pytest

from pgf_runtime.core.domain.exceptions import ExpressionSyntaxError, TypeMismatch
from pgf_runtime.core.domain.trees import (
    MAX_EXPR_DEPTH,
    Literal,
    Meta,
    Tree,
    check_tree,
    format_float,
    read_expr,
    read_float,
    show_expr,
)


def test_read_nested_expression():
    assert read_expr("Pred (This Pizza) (Very Delicious)") == Tree(
        "Pred", (Tree("This", (Tree("Pizza"),)), Tree("Very", (Tree("Delicious"),)))
    )


def test_redundant_parentheses():
    assert read_expr("((Pizza))") == Tree("Pizza")
    assert read_expr("(This (Pizza))") == Tree("This", (Tree("Pizza"),))


def test_literals_and_metavariables():
    expr = read_expr('F "say \\"hi\\"" -3 2.5 ?')
    assert expr.args == (Literal('say "hi"', "String"), Literal(-3, "Int"), Literal(2.5, "Float"), Meta())


@pytest.mark.parametrize(
    "text",
    [
        "Pred (This Pizza) Delicious",
        'Named "Luigi"',
        'Named "back\\\\slash"',
        "Costs (These (Mod Italian Wine)) 12",
        "F 1.5 ?",
        "?",
    ],
)
def test_show_is_the_inverse_of_read(text):
    assert show_expr(read_expr(text)) == text


def test_trees_are_hashable_values():
    assert len({read_expr("This Pizza"), read_expr("(This Pizza)"), read_expr("This Wine")}) == 2


def test_literal_of_rejects_bool():
    with pytest.raises(TypeError):
        Literal.of(True)


@pytest.mark.parametrize(
    "text, position",
    [
        ("", 0),
        ("   ", 0),
        ("Pred (This Pizza", 16),
        ("Pred )", 5),
        ("Pred $", 5),
        ("()", 1),
    ],
)
def test_syntax_errors_report_a_position(text, position):
    with pytest.raises(ExpressionSyntaxError) as exc:
        read_expr(text)
    assert exc.value.position == position


def test_check_tree(foods):
    assert check_tree(foods.abstract, read_expr("This Pizza")) == "Item"
    assert check_tree(foods.abstract, Meta(), "Kind") == "Kind"
    assert check_tree(foods.abstract, read_expr("Pred ? Delicious")) == "Comment"
    with pytest.raises(TypeMismatch):
        check_tree(foods.abstract, read_expr("This Pizza"), "Kind")


@pytest.mark.parametrize(
    "value, text",
    [
        (2.5, "2.5"),
        (-3.25, "-3.25"),
        (1e-05, "0.00001"),
        (1e20, "100000000000000000000.0"),
        (7.0, "7.0"),
    ],
)
def test_floats_are_shown_in_positional_form(value, text):
    literal = Literal.of(value)
    assert show_expr(literal) == text
    assert read_expr(text) == literal
    assert read_float(text) == value


@pytest.mark.parametrize("text", ["1e-05", "1e+20", "inf", "nan", "2.50", "02.5", ".5", "5.", "+2.5", "1.0e400"])
def test_non_canonical_float_text(text):
    assert read_float(text) is None


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_floats_are_not_literals(value, foods):
    with pytest.raises(ValueError):
        Literal.of(value)
    with pytest.raises(ValueError):
        format_float(value)
    with pytest.raises(TypeMismatch):
        check_tree(foods.abstract, Literal(value, "Float"))


def test_float_literal_out_of_range():
    with pytest.raises(ExpressionSyntaxError) as exc:
        read_expr("F 1.0e400")
    assert exc.value.position == 2


def test_nesting_depth_is_limited():
    deep = "(" * MAX_EXPR_DEPTH + "Pizza" + ")" * MAX_EXPR_DEPTH
    assert read_expr(deep) == Tree("Pizza")
    with pytest.raises(ExpressionSyntaxError) as exc:
        read_expr("(" + deep + ")")
    assert exc.value.position == MAX_EXPR_DEPTH
