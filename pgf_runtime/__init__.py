# pgf_runtime/__init__.py
"""
PGF runtime: decode compiled GF grammars, parse sentences into abstract
syntax trees, and linearize trees back into text.

    from pgf_runtime import decode, parse, linearize, read_expr

    grammar, diagnostics = decode(Path("Foods.pgf").read_bytes())
    trees = parse(grammar, "FoodsEng", "this pizza is delicious")
    linearize(grammar, "FoodsIta", read_expr("Pred (This Pizza) Delicious"))
"""

from pgf_runtime.core.codec.reader import BlockDiagnostic, DecodeResult, decode
from pgf_runtime.core.domain.exceptions import (
    DecodeError,
    MissingLinearization,
    PGFError,
    QueryError,
    UnknownCategory,
    UnknownLanguage,
)
from pgf_runtime.core.domain.grammar import Grammar
from pgf_runtime.core.domain.trees import Literal, Meta, Tree, read_expr, show_expr
from pgf_runtime.core.linearization import linearize, linearize_all, tabular_linearize
from pgf_runtime.core.parsing.chart import parse

__version__ = "1.0.0"

__all__ = [
    "BlockDiagnostic",
    "DecodeError",
    "DecodeResult",
    "Grammar",
    "Literal",
    "Meta",
    "MissingLinearization",
    "PGFError",
    "QueryError",
    "Tree",
    "UnknownCategory",
    "UnknownLanguage",
    "decode",
    "linearize",
    "linearize_all",
    "parse",
    "read_expr",
    "show_expr",
    "tabular_linearize",
]
