# pgf_runtime/core/domain/grammar.py
"""
In-memory grammar model.

Everything here is built once by the decoder and is read-only afterwards,
so one Grammar can be shared by any number of concurrent parse and
linearize calls. Tables are exposed as insertion-ordered read-only
mappings: declaration order is part of the model, and renderers (see the
JSON projection adapter) rely on it.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, NamedTuple, Optional, Tuple, Union

from pgf_runtime.core.domain.exceptions import UnknownCategory, UnknownFunction, UnknownLanguage
from pgf_runtime.core.domain.symbols import Sequence

FlagValue = Union[str, int, float]

# Predefined literal categories and their (negative) concrete fids.
LITERAL_CATEGORIES: Mapping[str, int] = MappingProxyType({"String": -1, "Int": -2, "Float": -3})
LITERAL_FIDS: Mapping[int, str] = MappingProxyType({v: k for k, v in LITERAL_CATEGORIES.items()})


def frozen_mapping(items) -> Mapping:
    """Read-only view over an insertion-ordered dict."""
    return MappingProxyType(dict(items))


# =========================================================
# ABSTRACT SYNTAX
# =========================================================

@dataclass(frozen=True, slots=True)
class Category:
    name: str
    context: Tuple[str, ...] = ()
    prob: float = 0.0


@dataclass(frozen=True, slots=True)
class Function:
    name: str
    arg_cats: Tuple[str, ...]
    result_cat: str
    prob: float = 0.0

    @property
    def arity(self) -> int:
        return len(self.arg_cats)


@dataclass(frozen=True, eq=False)
class AbstractSyntax:
    name: str
    flags: Mapping[str, FlagValue]
    categories: Mapping[str, Category]
    functions: Mapping[str, Function]
    start_cat: str

    def has_category(self, cat: str) -> bool:
        return cat in self.categories or cat in LITERAL_CATEGORIES

    def function(self, name: str) -> Function:
        try:
            return self.functions[name]
        except KeyError:
            raise UnknownFunction(name) from None

    def functions_by_cat(self, cat: str) -> List[str]:
        if not self.has_category(cat):
            raise UnknownCategory(cat)
        return [f.name for f in self.functions.values() if f.result_cat == cat]


# =========================================================
# CONCRETE SYNTAX
# =========================================================

@dataclass(frozen=True, slots=True)
class PArg:
    hypos: Tuple[int, ...]
    fid: int


@dataclass(frozen=True, slots=True)
class Apply:
    function: int  # index into ConcreteSyntax.functions
    args: Tuple[PArg, ...]


@dataclass(frozen=True, slots=True)
class Coerce:
    fid: int


Production = Union[Apply, Coerce]


@dataclass(frozen=True, slots=True)
class ConcreteFunction:
    name: str
    sequences: Tuple[int, ...]  # one sequence id per linearization field


@dataclass(frozen=True, slots=True)
class ConcreteCategory:
    name: str
    start: int
    end: int
    labels: Tuple[str, ...]

    @property
    def fids(self) -> range:
        return range(self.start, self.end + 1)


class Rule(NamedTuple):
    """An Apply production resolved against its function and sequences."""
    fid: int
    fun: str
    args: Tuple[int, ...]
    lins: Tuple[Sequence, ...]


@dataclass(frozen=True, eq=False)
class ConcreteSyntax:
    name: str
    flags: Mapping[str, FlagValue]
    printnames: Mapping[str, str]
    literals: Tuple[str, ...]
    sequences: Tuple[Sequence, ...]
    functions: Tuple[ConcreteFunction, ...]
    productions: Mapping[int, Tuple[Production, ...]]
    categories: Mapping[str, ConcreteCategory]
    total_fids: int

    # Derived lookup tables, computed once at construction.
    words: Tuple[Tuple[str, ...], ...] = field(init=False, repr=False)
    rules: Tuple[Rule, ...] = field(init=False, repr=False)
    coercions: Tuple[Tuple[int, int], ...] = field(init=False, repr=False)
    _range_starts: Tuple[int, ...] = field(init=False, repr=False)
    _ranges: Tuple[ConcreteCategory, ...] = field(init=False, repr=False)
    _other_fids: Dict[int, Tuple[str, int]] = field(init=False, repr=False)
    _rules_by_fun: Dict[str, Tuple[Rule, ...]] = field(init=False, repr=False)
    _coerced_into: Dict[int, FrozenSet[int]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        # Category fid ranges are looked up by bisection, never expanded per fid.
        ranges = tuple(sorted(self.categories.values(), key=lambda c: c.start))
        object.__setattr__(self, "_ranges", ranges)
        object.__setattr__(self, "_range_starts", tuple(c.start for c in ranges))
        other: Dict[int, Tuple[str, int]] = {fid: (name, 1) for fid, name in LITERAL_FIDS.items()}
        object.__setattr__(self, "_other_fids", other)

        rules: List[Rule] = []
        coercions: List[Tuple[int, int]] = []
        for fid, prods in self.productions.items():
            for prod in prods:
                if isinstance(prod, Coerce):
                    coercions.append((fid, prod.fid))
                    continue
                fun = self.functions[prod.function]
                rules.append(Rule(
                    fid=fid,
                    fun=fun.name,
                    args=tuple(a.fid for a in prod.args),
                    lins=tuple(self.sequences[s] for s in fun.sequences),
                ))

        # Coercion fids inherit the layout and category of what they cover.
        for fid, child in coercions:
            covered = self._fid_info(child)
            if covered is not None and self._fid_info(fid) is None:
                other[fid] = covered

        by_fun: Dict[str, List[Rule]] = {}
        for rule in rules:
            by_fun.setdefault(rule.fun, []).append(rule)

        object.__setattr__(self, "words", tuple(tuple(lit.split()) for lit in self.literals))
        object.__setattr__(self, "rules", tuple(rules))
        object.__setattr__(self, "coercions", tuple(coercions))
        object.__setattr__(self, "_rules_by_fun", {k: tuple(v) for k, v in by_fun.items()})
        object.__setattr__(self, "_coerced_into", _coercion_closure(coercions))

    # --- lookups -------------------------------------------------------

    def _fid_info(self, fid: int) -> Optional[Tuple[str, int]]:
        """(category, field count) of a fid, or None if nothing covers it."""
        i = bisect.bisect_right(self._range_starts, fid) - 1
        if i >= 0 and fid <= self._ranges[i].end:
            cat = self._ranges[i]
            return cat.name, len(cat.labels)
        return self._other_fids.get(fid)

    def category_of(self, fid: int) -> Optional[str]:
        info = self._fid_info(fid)
        return info[0] if info else None

    def field_count(self, fid: int) -> Optional[int]:
        info = self._fid_info(fid)
        return info[1] if info else None

    def fids_of(self, cat: str) -> range:
        if cat in LITERAL_CATEGORIES:
            fid = LITERAL_CATEGORIES[cat]
            return range(fid, fid + 1)
        try:
            return self.categories[cat].fids
        except KeyError:
            raise UnknownCategory(cat) from None

    def labels_of(self, fid: int) -> Tuple[str, ...]:
        cat = self.category_of(fid)
        if cat in self.categories:
            return self.categories[cat].labels
        return tuple(f"s{i}" for i in range(self.field_count(fid) or 0))

    def rules_for(self, fun: str) -> Tuple[Rule, ...]:
        return self._rules_by_fun.get(fun, ())

    def accepts(self, expected: int, actual: int) -> bool:
        """True if an item of fid `actual` may fill an argument slot of fid `expected`."""
        return expected == actual or expected in self._coerced_into.get(actual, ())

    def printname(self, name: str) -> str:
        return self.printnames.get(name, name)


def _coercion_closure(coercions) -> Dict[int, FrozenSet[int]]:
    """Maps each fid to every coercion fid that (transitively) covers it."""
    direct: Dict[int, set] = {}
    for fid, child in coercions:
        direct.setdefault(child, set()).add(fid)
    closure: Dict[int, FrozenSet[int]] = {}
    for start in direct:
        seen = set()
        stack = list(direct[start])
        while stack:
            fid = stack.pop()
            if fid in seen:
                continue
            seen.add(fid)
            stack.extend(direct.get(fid, ()))
        closure[start] = frozenset(seen)
    return closure


# =========================================================
# GRAMMAR
# =========================================================

@dataclass(frozen=True, eq=False)
class Grammar:
    """Abstract syntax plus every successfully decoded concrete syntax."""
    abstract: AbstractSyntax
    concretes: Mapping[str, ConcreteSyntax]
    flags: Mapping[str, FlagValue] = field(default_factory=lambda: frozen_mapping({}))
    version: Tuple[int, int] = (1, 0)

    @property
    def name(self) -> str:
        return self.abstract.name

    @property
    def start_cat(self) -> str:
        return self.abstract.start_cat

    @property
    def categories(self) -> List[str]:
        return list(self.abstract.categories)

    @property
    def functions(self) -> List[str]:
        return list(self.abstract.functions)

    @property
    def languages(self) -> List[str]:
        return list(self.concretes)

    def functions_by_cat(self, cat: str) -> List[str]:
        return self.abstract.functions_by_cat(cat)

    def function_type(self, fun: str) -> Tuple[Tuple[str, ...], str]:
        f = self.abstract.function(fun)
        return f.arg_cats, f.result_cat

    def concrete(self, language: str) -> ConcreteSyntax:
        try:
            return self.concretes[language]
        except KeyError:
            raise UnknownLanguage(language, self.concretes) from None

    def language_code(self, language: str) -> Optional[str]:
        code = self.concrete(language).flags.get("language")
        if isinstance(code, str):
            return code.replace("_", "-")
        return None

    def check_category(self, cat: str) -> str:
        if not self.abstract.has_category(cat):
            raise UnknownCategory(cat)
        return cat
