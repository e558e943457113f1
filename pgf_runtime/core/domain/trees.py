# pgf_runtime/core/domain/trees.py
"""
Abstract syntax trees.

Trees are immutable and compare / hash structurally, so parse results can
be collected in sets and ambiguous derivations of the same tree collapse
into one entry.

The textual form follows GF expression syntax:

    Pred (This Pizza) Delicious
    Named "Luigi"
    ?                                  -- metavariable
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from pgf_runtime.core.domain.exceptions import ExpressionSyntaxError, TypeMismatch
from pgf_runtime.core.domain.grammar import AbstractSyntax


@dataclass(frozen=True, slots=True)
class Tree:
    fun: str
    args: Tuple["Expr", ...] = ()

    def __str__(self) -> str:
        return show_expr(self)


@dataclass(frozen=True, slots=True)
class Literal:
    value: Union[str, int, float]
    category: str

    @classmethod
    def of(cls, value: Union[str, int, float]) -> "Literal":
        if isinstance(value, bool):
            raise TypeError("bool is not a literal type")
        if isinstance(value, int):
            return cls(value, "Int")
        if isinstance(value, float):
            if not math.isfinite(value):
                raise ValueError(f"{value!r} is not a Float literal")
            return cls(value, "Float")
        return cls(str(value), "String")

    def __str__(self) -> str:
        return show_expr(self)


@dataclass(frozen=True, slots=True)
class Meta:
    def __str__(self) -> str:
        return "?"


Expr = Union[Tree, Literal, Meta]


# -----------------------------------------------------------------------------
# Rendering
# -----------------------------------------------------------------------------
_FLOAT_TEXT = re.compile(r"-?\d+\.\d+")


def format_float(value: float) -> str:
    """Positional decimal form (`0.00001`, never `1e-05`). Non-finite values have none."""
    if not math.isfinite(value):
        raise ValueError(f"{value!r} has no literal form")
    text = repr(float(value))
    if "e" in text:
        text = format(Decimal(text), "f")
    if "." not in text:
        text += ".0"
    return text


def read_float(text: str) -> Optional[float]:
    """The value `text` denotes, or None unless it is exactly format_float's output."""
    if not _FLOAT_TEXT.fullmatch(text):
        return None
    value = float(text)
    if not math.isfinite(value) or format_float(value) != text:
        return None
    return value


def literal_text(literal: Literal) -> str:
    """Surface token of a literal, as the linearizer emits it."""
    if literal.category == "Float":
        return format_float(literal.value)
    return str(literal.value)


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def show_expr(expr: Expr, nested: bool = False) -> str:
    if isinstance(expr, Meta):
        return "?"
    if isinstance(expr, Literal):
        if expr.category == "String":
            return _quote(expr.value)
        return literal_text(expr)
    if not expr.args:
        return expr.fun
    text = " ".join([expr.fun] + [show_expr(a, nested=True) for a in expr.args])
    return f"({text})" if nested else text


# -----------------------------------------------------------------------------
# Reading
# -----------------------------------------------------------------------------
MAX_EXPR_DEPTH = 200

_TOKEN = re.compile(
    r"""\s*(?:
        (?P<lpar>\()
      | (?P<rpar>\))
      | (?P<string>"(?:[^"\\]|\\.)*")
      | (?P<float>-?\d+\.\d+(?:[eE][-+]?\d+)?)
      | (?P<int>-?\d+)
      | (?P<meta>\?)
      | (?P<ident>[A-Za-z_][\w']*)
    )""",
    re.VERBOSE,
)


def _lex(text: str) -> List[Tuple[str, str, int]]:
    tokens = []
    pos = 0
    while True:
        while pos < len(text) and text[pos].isspace():
            pos += 1
        if pos >= len(text):
            return tokens
        m = _TOKEN.match(text, pos)
        if not m or m.end() == pos:
            raise ExpressionSyntaxError(f"Unexpected character {text[pos]!r}", pos)
        tokens.append((m.lastgroup, m.group(m.lastgroup), m.start(m.lastgroup)))
        pos = m.end()


class _ExprReader:
    def __init__(self, text: str):
        self.tokens = _lex(text)
        self.index = 0
        self.depth = 0
        self.length = len(text)

    def peek(self) -> Optional[Tuple[str, str, int]]:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def take(self) -> Tuple[str, str, int]:
        tok = self.peek()
        if tok is None:
            raise ExpressionSyntaxError("Unexpected end of expression", self.length)
        self.index += 1
        return tok

    def expr(self) -> Expr:
        kind, value, pos = self.peek() or ("eof", "", self.length)
        if kind == "ident":
            self.take()
            args = []
            while self.peek() is not None and self.peek()[0] != "rpar":
                args.append(self.atom())
            return Tree(value, tuple(args))
        return self.atom()

    def atom(self) -> Expr:
        kind, value, pos = self.take()
        if kind == "ident":
            return Tree(value)
        if kind == "string":
            return Literal.of(re.sub(r"\\(.)", r"\1", value[1:-1]))
        if kind == "int":
            return Literal.of(int(value))
        if kind == "float":
            if not math.isfinite(float(value)):
                raise ExpressionSyntaxError(f"Float literal {value!r} out of range", pos)
            return Literal.of(float(value))
        if kind == "meta":
            return Meta()
        if kind == "lpar":
            self.depth += 1
            if self.depth > MAX_EXPR_DEPTH:
                raise ExpressionSyntaxError(f"Nested deeper than {MAX_EXPR_DEPTH} levels", pos)
            inner = self.expr()
            closing = self.take()
            self.depth -= 1
            if closing[0] != "rpar":
                raise ExpressionSyntaxError("Expected ')'", closing[2])
            return inner
        raise ExpressionSyntaxError(f"Unexpected {value!r}", pos)


def read_expr(text: str) -> Expr:
    """Parses GF expression syntax into a tree."""
    reader = _ExprReader(text)
    if reader.peek() is None:
        raise ExpressionSyntaxError("Empty expression", 0)
    expr = reader.expr()
    leftover = reader.peek()
    if leftover is not None:
        raise ExpressionSyntaxError(f"Unexpected {leftover[1]!r}", leftover[2])
    return expr


# -----------------------------------------------------------------------------
# Type checking
# -----------------------------------------------------------------------------
def check_tree(abstract: AbstractSyntax, expr: Expr, expected: Optional[str] = None) -> Optional[str]:
    """
    Verifies `expr` against the abstract syntax and returns its category.

    Metavariables fit any slot (None is returned for a bare one).
    """
    if isinstance(expr, Meta):
        return expected
    if isinstance(expr, Literal):
        if expr.category == "Float" and not math.isfinite(expr.value):
            raise TypeMismatch(f"Float literal {expr.value!r} is not a finite number")
        actual = expr.category
    else:
        fun = abstract.function(expr.fun)
        if len(expr.args) != fun.arity:
            raise TypeMismatch(
                f"'{fun.name}' expects {fun.arity} argument(s), got {len(expr.args)}"
            )
        for arg, cat in zip(expr.args, fun.arg_cats):
            check_tree(abstract, arg, cat)
        actual = fun.result_cat
    if expected is not None and actual != expected:
        raise TypeMismatch(f"Expected {expected}, got {actual} in '{show_expr(expr)}'")
    return actual


__all__ = [
    "Tree", "Literal", "Meta", "Expr",
    "read_expr", "show_expr", "check_tree",
    "format_float", "read_float", "literal_text",
]
