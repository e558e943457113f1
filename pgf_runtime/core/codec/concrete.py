# pgf_runtime/core/codec/concrete.py
"""
Concrete syntax decoder.

Reads one language block body and validates it against the abstract
syntax. Table indices are bounds-checked as they are read so that a later
parse or linearization never indexes outside a table; the structural
checks that need the whole block (field counts, argument projections)
run once the ConcreteSyntax has been assembled.

Any DecodeError raised here is scoped to the block: the caller decides
whether to record it and move on.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

import structlog

from pgf_runtime.core.codec.primitives import (
    ByteCursor,
    FormatProfile,
    read_count,
    read_flags,
    read_list,
    read_string,
)
from pgf_runtime.core.domain.exceptions import ImplausibleLength, MalformedConcreteSyntax
from pgf_runtime.core.domain.grammar import (
    LITERAL_FIDS,
    AbstractSyntax,
    Apply,
    Coerce,
    ConcreteCategory,
    ConcreteFunction,
    ConcreteSyntax,
    PArg,
    Production,
    frozen_mapping,
)
from pgf_runtime.core.domain.symbols import (
    PROJECTIONS,
    Alternative,
    Sequence,
    Symbol,
    SymCat,
    SymKP,
    SymKS,
    SymLit,
    SymNE,
    SymVar,
    literal_indices,
)

logger = structlog.get_logger()

# Upper bound on declared fids per byte of block read so far.
FIDS_PER_BYTE = 64


# -----------------------------------------------------------------------------
# Symbols and sequences
# -----------------------------------------------------------------------------
def _read_lengths(cursor: ByteCursor, profile: FormatProfile) -> Tuple[int, ...]:
    return tuple(read_list(cursor, profile, lambda c, p: p.read_length(c)))


def _read_alternative(cursor: ByteCursor, profile: FormatProfile) -> Alternative:
    literals = _read_lengths(cursor, profile)
    prefixes = tuple(read_list(cursor, profile, read_string))
    return Alternative(literals=literals, prefixes=prefixes)


def read_symbol(cursor: ByteCursor, profile: FormatProfile) -> Symbol:
    start = cursor.offset
    tag = cursor.read_u8()
    if tag == 0:
        return SymCat(profile.read_length(cursor), profile.read_length(cursor))
    if tag == 1:
        return SymLit(profile.read_length(cursor), profile.read_length(cursor))
    if tag == 2:
        return SymVar(profile.read_length(cursor), profile.read_length(cursor))
    if tag == 3:
        return SymKS(profile.read_length(cursor))
    if tag == 4:
        default = _read_lengths(cursor, profile)
        alts = tuple(read_list(cursor, profile, _read_alternative))
        return SymKP(default=default, alts=alts)
    if tag == 5:
        return SymNE()
    raise MalformedConcreteSyntax(f"unknown symbol tag {tag}", start)


def read_sequences(cursor: ByteCursor, profile: FormatProfile, literal_count: int) -> List[Sequence]:
    sequences = []
    for index in range(read_count(cursor, profile)):
        at = cursor.offset
        seq = tuple(read_list(cursor, profile, read_symbol))
        for sym in seq:
            for lit in literal_indices(sym):
                if lit >= literal_count:
                    raise MalformedConcreteSyntax(
                        f"sequence {index} references literal {lit}, table has {literal_count}", at
                    )
        sequences.append(seq)
    return sequences


# -----------------------------------------------------------------------------
# Functions, productions, categories
# -----------------------------------------------------------------------------
def read_functions(
    cursor: ByteCursor,
    profile: FormatProfile,
    abstract: AbstractSyntax,
    sequence_count: int,
) -> List[ConcreteFunction]:
    functions = []
    for _ in range(read_count(cursor, profile)):
        at = cursor.offset
        name = read_string(cursor, profile)
        if name not in abstract.functions:
            raise MalformedConcreteSyntax(f"linearization of unknown function '{name}'", at)
        seqids = _read_lengths(cursor, profile)
        for seqid in seqids:
            if seqid >= sequence_count:
                raise MalformedConcreteSyntax(
                    f"function '{name}' references sequence {seqid}, table has {sequence_count}", at
                )
        functions.append(ConcreteFunction(name=name, sequences=seqids))
    return functions


def _read_parg(cursor: ByteCursor, profile: FormatProfile) -> PArg:
    hypos = tuple(read_list(cursor, profile, lambda c, p: p.read_int(c)))
    return PArg(hypos=hypos, fid=profile.read_int(cursor))


def read_production(
    cursor: ByteCursor,
    profile: FormatProfile,
    abstract: AbstractSyntax,
    functions: List[ConcreteFunction],
) -> Production:
    start = cursor.offset
    tag = cursor.read_u8()
    if tag == 0:
        index = profile.read_length(cursor)
        if index >= len(functions):
            raise MalformedConcreteSyntax(
                f"production references function {index}, table has {len(functions)}", start
            )
        args = tuple(read_list(cursor, profile, _read_parg))
        arity = abstract.functions[functions[index].name].arity
        if len(args) != arity:
            raise MalformedConcreteSyntax(
                f"production of '{functions[index].name}' has {len(args)} argument(s), arity is {arity}", start
            )
        return Apply(function=index, args=args)
    if tag == 1:
        return Coerce(fid=profile.read_int(cursor))
    raise MalformedConcreteSyntax(f"unknown production tag {tag}", start)


def read_productions(
    cursor: ByteCursor,
    profile: FormatProfile,
    abstract: AbstractSyntax,
    functions: List[ConcreteFunction],
) -> Dict[int, Tuple[Production, ...]]:
    productions: Dict[int, Tuple[Production, ...]] = {}
    for _ in range(read_count(cursor, profile)):
        at = cursor.offset
        fid = profile.read_int(cursor)
        if fid in productions:
            raise MalformedConcreteSyntax(f"duplicate production set for fid {fid}", at)
        productions[fid] = tuple(
            read_list(cursor, profile, lambda c, p: read_production(c, p, abstract, functions))
        )
    return productions


def read_category(cursor: ByteCursor, profile: FormatProfile, abstract: AbstractSyntax) -> ConcreteCategory:
    at = cursor.offset
    name = read_string(cursor, profile)
    start = profile.read_int(cursor)
    end = profile.read_int(cursor)
    labels = tuple(read_list(cursor, profile, read_string))
    if name not in abstract.categories:
        raise MalformedConcreteSyntax(f"concrete category for unknown category '{name}'", at)
    if start < 0 or end < start:
        raise MalformedConcreteSyntax(f"category '{name}' has invalid fid range {start}..{end}", at)
    return ConcreteCategory(name=name, start=start, end=end, labels=labels)


# -----------------------------------------------------------------------------
# Block
# -----------------------------------------------------------------------------
def read_concrete(cursor: ByteCursor, profile: FormatProfile, abstract: AbstractSyntax) -> ConcreteSyntax:
    """Decodes one block body. The cursor must be bounded to the block's frame."""
    block_start = cursor.offset
    name = read_string(cursor, profile)
    flags = read_flags(cursor, profile)
    printnames = {}
    for _ in range(read_count(cursor, profile)):
        key = read_string(cursor, profile)
        printnames[key] = read_string(cursor, profile)
    literals = read_list(cursor, profile, read_string)
    sequences = read_sequences(cursor, profile, len(literals))
    functions = read_functions(cursor, profile, abstract, len(sequences))
    productions = read_productions(cursor, profile, abstract, functions)

    categories: Dict[str, ConcreteCategory] = {}
    for _ in range(read_count(cursor, profile)):
        at = cursor.offset
        cat = read_category(cursor, profile, abstract)
        if cat.name in categories:
            raise MalformedConcreteSyntax(f"duplicate concrete category '{cat.name}'", at)
        categories[cat.name] = cat

    at = cursor.offset
    total_fids = profile.read_int(cursor)
    size = cursor.offset - block_start
    if not 0 <= total_fids <= FIDS_PER_BYTE * size:
        raise ImplausibleLength(f"declares {total_fids} fid(s) in a block of {size} byte(s)", at)
    _check_fid_bounds(productions, categories, total_fids, at)

    concrete = ConcreteSyntax(
        name=name,
        flags=frozen_mapping(flags),
        printnames=frozen_mapping(printnames),
        literals=tuple(literals),
        sequences=tuple(sequences),
        functions=tuple(functions),
        productions=frozen_mapping(productions),
        categories=frozen_mapping(categories),
        total_fids=total_fids,
    )
    validate_concrete(concrete, abstract, cursor.offset)
    return concrete


def _check_fid_bounds(productions, categories, total_fids: int, offset: int) -> None:
    def in_range(fid: int) -> bool:
        return 0 <= fid < total_fids or fid in LITERAL_FIDS

    for cat in categories.values():
        if cat.end >= total_fids:
            raise MalformedConcreteSyntax(
                f"category '{cat.name}' ends at fid {cat.end}, total is {total_fids}", offset
            )
    ordered = sorted(categories.values(), key=lambda c: c.start)
    for before, after in zip(ordered, ordered[1:]):
        if after.start <= before.end:
            raise MalformedConcreteSyntax(
                f"categories '{before.name}' and '{after.name}' share fid {after.start}", offset
            )
    for fid, prods in productions.items():
        if not 0 <= fid < total_fids:
            raise MalformedConcreteSyntax(f"production fid {fid} out of range 0..{total_fids - 1}", offset)
        for prod in prods:
            fids = [prod.fid] if isinstance(prod, Coerce) else [a.fid for a in prod.args]
            for child in fids:
                if not in_range(child):
                    raise MalformedConcreteSyntax(f"fid {fid} refers to fid {child} out of range", offset)


def validate_concrete(concrete: ConcreteSyntax, abstract: AbstractSyntax, offset: int) -> None:
    """Checks rule shapes against the field layouts of the fids they connect."""
    for fid, child in concrete.coercions:
        if concrete.field_count(child) is None:
            raise MalformedConcreteSyntax(f"coercion {fid} covers fid {child} with no category", offset)

    for rule in concrete.rules:
        fun = abstract.functions[rule.fun]
        fields = concrete.field_count(rule.fid)
        if fields is None:
            raise MalformedConcreteSyntax(f"'{rule.fun}' produces fid {rule.fid} with no category", offset)
        if concrete.category_of(rule.fid) != fun.result_cat:
            raise MalformedConcreteSyntax(
                f"'{rule.fun}' produces {concrete.category_of(rule.fid)}, declared {fun.result_cat}", offset
            )
        if len(rule.lins) != fields:
            raise MalformedConcreteSyntax(
                f"'{rule.fun}' has {len(rule.lins)} field(s), fid {rule.fid} expects {fields}", offset
            )

        arg_fields = []
        for index, (arg, cat) in enumerate(zip(rule.args, fun.arg_cats)):
            arg_cat = concrete.category_of(arg)
            if arg_cat != cat:
                raise MalformedConcreteSyntax(
                    f"argument {index} of '{rule.fun}' is {arg_cat}, declared {cat}", offset
                )
            arg_fields.append(concrete.field_count(arg))

        for seq in rule.lins:
            for sym in seq:
                if isinstance(sym, (SymCat, SymLit, SymVar)) and sym.arg >= len(rule.args):
                    raise MalformedConcreteSyntax(
                        f"'{rule.fun}' projects argument {sym.arg} of {len(rule.args)}", offset
                    )
                if isinstance(sym, PROJECTIONS) and sym.field >= arg_fields[sym.arg]:
                    raise MalformedConcreteSyntax(
                        f"'{rule.fun}' projects field {sym.field} of argument {sym.arg}, "
                        f"which has {arg_fields[sym.arg]}",
                        offset,
                    )
                if isinstance(sym, SymLit) and rule.args[sym.arg] not in LITERAL_FIDS:
                    raise MalformedConcreteSyntax(
                        f"'{rule.fun}' uses a literal projection on non-literal argument {sym.arg}", offset
                    )

    logger.debug(
        "pgf_concrete_validated",
        language=concrete.name,
        rules=len(concrete.rules),
        coercions=len(concrete.coercions),
    )
