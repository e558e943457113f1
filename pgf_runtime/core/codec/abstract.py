# pgf_runtime/core/codec/abstract.py
"""
Abstract syntax decoder.

All-or-nothing: there is no usable grammar without the abstract syntax,
so every failure here propagates to the caller as a fatal error.
"""

from __future__ import annotations

from typing import Dict

import structlog

from pgf_runtime.core.codec.primitives import (
    ByteCursor,
    FormatProfile,
    read_count,
    read_flags,
    read_list,
    read_string,
)
from pgf_runtime.core.domain.exceptions import ImplausibleLength, MalformedAbstractSyntax, UnexpectedEof
from pgf_runtime.core.domain.grammar import (
    LITERAL_CATEGORIES,
    AbstractSyntax,
    Category,
    Function,
    frozen_mapping,
)

logger = structlog.get_logger()


def read_category(cursor: ByteCursor, profile: FormatProfile) -> Category:
    name = read_string(cursor, profile)
    context = read_list(cursor, profile, read_string)
    return Category(name=name, context=tuple(context), prob=cursor.read_f64())


def read_function(cursor: ByteCursor, profile: FormatProfile) -> Function:
    start = cursor.offset
    name = read_string(cursor, profile)
    arg_cats = read_list(cursor, profile, read_string)
    result_cat = read_string(cursor, profile)
    arity = profile.read_length(cursor)
    if arity != len(arg_cats):
        raise MalformedAbstractSyntax(
            f"function '{name}' records arity {arity} but declares {len(arg_cats)} argument(s)", start
        )
    return Function(name=name, arg_cats=tuple(arg_cats), result_cat=result_cat, prob=cursor.read_f64())


def read_abstract(cursor: ByteCursor, profile: FormatProfile) -> AbstractSyntax:
    try:
        return _read_abstract(cursor, profile)
    except (UnexpectedEof, ImplausibleLength) as e:
        raise MalformedAbstractSyntax(f"unreadable abstract syntax: {e.message}", e.offset) from e


def _read_abstract(cursor: ByteCursor, profile: FormatProfile) -> AbstractSyntax:
    name = read_string(cursor, profile)
    flags = read_flags(cursor, profile)

    categories: Dict[str, Category] = {}
    for _ in range(read_count(cursor, profile)):
        at = cursor.offset
        cat = read_category(cursor, profile)
        if cat.name in categories or cat.name in LITERAL_CATEGORIES:
            raise MalformedAbstractSyntax(f"duplicate category '{cat.name}'", at)
        categories[cat.name] = cat
    if not categories:
        raise MalformedAbstractSyntax("abstract syntax declares no categories", cursor.offset)

    def known(cat: str) -> bool:
        return cat in categories or cat in LITERAL_CATEGORIES

    for cat in categories.values():
        missing = [c for c in cat.context if not known(c)]
        if missing:
            raise MalformedAbstractSyntax(f"category '{cat.name}' depends on undeclared {missing}", cursor.offset)

    functions: Dict[str, Function] = {}
    for _ in range(read_count(cursor, profile)):
        at = cursor.offset
        fun = read_function(cursor, profile)
        if fun.name in functions:
            raise MalformedAbstractSyntax(f"duplicate function '{fun.name}'", at)
        missing = [c for c in fun.arg_cats + (fun.result_cat,) if not known(c)]
        if missing:
            raise MalformedAbstractSyntax(f"function '{fun.name}' uses undeclared {missing}", at)
        functions[fun.name] = fun

    start_cat = flags.get("startcat")
    if start_cat is None:
        start_cat = next(iter(categories))
    elif not isinstance(start_cat, str) or start_cat not in categories:
        raise MalformedAbstractSyntax(f"start category {start_cat!r} is not declared", cursor.offset)

    logger.debug("pgf_abstract_decoded", name=name, categories=len(categories), functions=len(functions))
    return AbstractSyntax(
        name=name,
        flags=frozen_mapping(flags),
        categories=frozen_mapping(categories),
        functions=frozen_mapping(functions),
        start_cat=start_cat,
    )
