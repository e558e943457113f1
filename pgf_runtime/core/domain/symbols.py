# pgf_runtime/core/domain/symbols.py
"""
Sequence symbols of a PMCFG concrete syntax.

A sequence is an ordered tuple of symbols; each linearization field of a
rule points at one sequence. The variants mirror the binary tags:

    SymCat  -- argument projection: field `field` of argument `arg`
    SymLit  -- projection of a literal-category argument (String/Int/Float)
    SymVar  -- bound variable of a higher-order argument
    SymKS   -- literal token(s), stored as an index into the literal table
    SymKP   -- variant chosen by the following token (e.g. "a" / "an")
    SymNE   -- the form does not exist
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union


@dataclass(frozen=True, slots=True)
class SymCat:
    arg: int
    field: int


@dataclass(frozen=True, slots=True)
class SymLit:
    arg: int
    field: int


@dataclass(frozen=True, slots=True)
class SymVar:
    arg: int
    var: int


@dataclass(frozen=True, slots=True)
class SymKS:
    literal: int


@dataclass(frozen=True, slots=True)
class Alternative:
    literals: Tuple[int, ...]
    prefixes: Tuple[str, ...]


@dataclass(frozen=True, slots=True)
class SymKP:
    default: Tuple[int, ...]
    alts: Tuple[Alternative, ...]


@dataclass(frozen=True, slots=True)
class SymNE:
    pass


Symbol = Union[SymCat, SymLit, SymVar, SymKS, SymKP, SymNE]
Sequence = Tuple[Symbol, ...]

# Symbols whose (arg, field) reference another tree position.
PROJECTIONS = (SymCat, SymLit)


def literal_indices(symbol: Symbol) -> Tuple[int, ...]:
    """All literal-table indices a symbol refers to."""
    if isinstance(symbol, SymKS):
        return (symbol.literal,)
    if isinstance(symbol, SymKP):
        found = list(symbol.default)
        for alt in symbol.alts:
            found.extend(alt.literals)
        return tuple(found)
    return ()


def select_variant(symbol: SymKP, next_token) -> Tuple[int, ...]:
    """
    Picks the literal ids a SymKP realizes before `next_token`.

    The first alternative with a prefix matching the next token wins;
    otherwise (or at the end of the output) the default is used.
    """
    if next_token is not None:
        for alt in symbol.alts:
            if any(next_token.startswith(prefix) for prefix in alt.prefixes):
                return alt.literals
    return symbol.default
