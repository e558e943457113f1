# pgf_runtime/core/parsing/chart.py
"""
Bottom-up PMCFG chart parser.

Chart items are keyed by (fid, spans): one entry per linearization field
of the fid, either the (start, end) token span realizing that field or
None when the field does not occur in the input at all (e.g. the plural
forms of a noun parsed in a singular sentence). The tuple of realized
field indices is the item's *mask*.

Parsing runs in two steps:

1. Demand. Starting from the start category with only field 0 realized,
   every rule fixes which fields of each argument its realized fields
   project. That yields the finite set of (fid, mask) pairs worth
   building.
2. Saturation. Each pass matches every rule for every demanded pair
   against the tokens, binding argument projections to items established
   in earlier passes, and stops when a pass adds no new key. Matches are
   collected before they are added so the chart never changes under an
   iteration.

Every derivation of a key is kept, so ambiguity survives into tree
extraction. The chart belongs to one call and is discarded on return.
"""

from __future__ import annotations

import functools
import itertools
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterator, List, NamedTuple, Optional, Sequence as Seq, Set, Tuple, Union

import structlog

from pgf_runtime.core.domain.exceptions import InputTooLong, UnknownCategory
from pgf_runtime.core.domain.grammar import LITERAL_FIDS, ConcreteSyntax, Grammar, Rule
from pgf_runtime.core.domain.symbols import PROJECTIONS, Sequence, SymKP, SymKS, SymNE, select_variant
from pgf_runtime.core.domain.trees import Expr, Literal, Meta, Tree, read_float
from pgf_runtime.core.parsing.tokenize import DEFAULT_TOKENIZER
from pgf_runtime.core.ports import Tokenizer

logger = structlog.get_logger()

Span = Tuple[int, int]
Spans = Tuple[Optional[Span], ...]
Key = Tuple[int, Spans]
Mask = Tuple[int, ...]

# Default length limit of parse().
MAX_PARSE_TOKENS = 40


class _Apply(NamedTuple):
    fun: str
    children: Tuple[Optional[Key], ...]  # None: argument not realized, becomes a metavariable


class _Coerce(NamedTuple):
    child: Key


class _Leaf(NamedTuple):
    value: Literal


Derivation = Union[_Apply, _Coerce, _Leaf]


class _State(NamedTuple):
    bound: Tuple[Optional[Key], ...]  # chart item chosen for each argument so far
    used: FrozenSet[Tuple[int, int]]  # (arg, field) projections already consumed


@dataclass(frozen=True, slots=True)
class Bracket:
    """A constituent of the input: its category and fid, the function that built it, and its pieces."""
    cat: str
    fid: int
    fun: Optional[str]  # None for a literal
    children: Tuple[Union[str, "Bracket"], ...]

    def __str__(self) -> str:
        inner = " ".join(str(c) for c in self.children)
        return f"({self.cat}:{self.fid} {inner})" if inner else f"({self.cat}:{self.fid})"


def _preference(derivation: Derivation) -> Tuple[int, str]:
    rank = 0 if isinstance(derivation, _Leaf) else 1 if isinstance(derivation, _Apply) else 2
    return rank, repr(derivation)


class _Entry(NamedTuple):
    rule: Rule
    refs: Tuple[FrozenSet[Tuple[int, int]], ...]  # per field: (arg, field) pairs it projects


def literal_value(category: str, token: str):
    """Reads a literal token; only canonical renderings are accepted so they linearize back unchanged."""
    if category == "Float":
        return read_float(token)
    if category != "Int":
        return token
    try:
        value = int(token)
    except ValueError:
        return None
    return value if str(value) == token else None


def _overlapping(spans: Seq[Span]) -> bool:
    filled = sorted(s for s in spans if s[0] < s[1])
    return any(a[1] > b[0] for a, b in zip(filled, filled[1:]))


class ChartParser:
    """Read-only parsing tables for one concrete syntax; safe to share between calls."""

    def __init__(self, concrete: ConcreteSyntax):
        self.concrete = concrete
        self.rules_by_fid: Dict[int, List[_Entry]] = {}
        for rule in concrete.rules:
            refs = tuple(
                frozenset((sym.arg, sym.field) for sym in seq if isinstance(sym, PROJECTIONS))
                for seq in rule.lins
            )
            self.rules_by_fid.setdefault(rule.fid, []).append(_Entry(rule, refs))
        self.coercions_by_fid: Dict[int, List[int]] = {}
        for fid, child in concrete.coercions:
            self.coercions_by_fid.setdefault(fid, []).append(child)

    @staticmethod
    def arg_masks(entry: _Entry, mask: Mask) -> Tuple[Mask, ...]:
        """Fields of each argument projected by the realized fields `mask`."""
        used: List[Set[int]] = [set() for _ in entry.rule.args]
        for field in mask:
            for arg, arg_field in entry.refs[field]:
                used[arg].add(arg_field)
        return tuple(tuple(sorted(u)) for u in used)

    def demands(self, start_fids) -> List[Tuple[int, Mask]]:
        todo = [(fid, (0,)) for fid in start_fids if (self.concrete.field_count(fid) or 0) > 0]
        seen: Dict[Tuple[int, Mask], None] = {}
        while todo:
            fid, mask = todo.pop()
            if (fid, mask) in seen or fid in LITERAL_FIDS:
                continue
            seen[(fid, mask)] = None
            for entry in self.rules_by_fid.get(fid, ()):
                for arg_fid, arg_mask in zip(entry.rule.args, self.arg_masks(entry, mask)):
                    if arg_mask:
                        todo.append((arg_fid, arg_mask))
            for child in self.coercions_by_fid.get(fid, ()):
                todo.append((child, mask))
        return list(seen)

    def build_chart(self, tokens: Seq[str], start_fids) -> Tuple["Chart", List[Key]]:
        """Saturated chart over `tokens` plus the keys spanning the whole input."""
        chart = Chart(self, tuple(tokens))
        chart.saturate(self.demands(start_fids))
        roots = []
        for fid in start_fids:
            fields = self.concrete.field_count(fid) or 0
            if fields:
                key = (fid, ((0, len(tokens)),) + (None,) * (fields - 1))
                if key in chart.derivations:
                    roots.append(key)
        return chart, roots

    def parse_tokens(self, tokens: Seq[str], start_fids) -> FrozenSet[Expr]:
        chart, roots = self.build_chart(tokens, start_fids)
        trees = chart.trees(roots)
        logger.debug(
            "pgf_parse_chart",
            language=self.concrete.name,
            tokens=len(tokens),
            items=len(chart.derivations),
            passes=chart.passes,
            trees=len(trees),
        )
        return trees


class Chart:
    """Per-call parse state."""

    def __init__(self, parser: ChartParser, tokens: Tuple[str, ...]):
        self.parser = parser
        self.words = parser.concrete.words
        self.tokens = tokens
        self.n = len(tokens)
        self.passes = 0
        self.derivations: Dict[Key, Set[Derivation]] = {}
        self._by_mask: Dict[Tuple[int, Mask], List[Key]] = {}
        self._by_start: Dict[Tuple[int, Mask, int, int], List[Key]] = {}

        for pos, token in enumerate(tokens):
            for fid, category in LITERAL_FIDS.items():
                value = literal_value(category, token)
                if value is not None:
                    self.add((fid, ((pos, pos + 1),)), _Leaf(Literal(value, category)))

    # --- chart bookkeeping ----------------------------------------------

    def add(self, key: Key, derivation: Derivation) -> bool:
        """Records a derivation; True if the key itself is new."""
        known = self.derivations.get(key)
        if known is not None:
            known.add(derivation)
            return False
        self.derivations[key] = {derivation}
        fid, spans = key
        mask = tuple(l for l, span in enumerate(spans) if span is not None)
        self._by_mask.setdefault((fid, mask), []).append(key)
        for l in mask:
            self._by_start.setdefault((fid, mask, l, spans[l][0]), []).append(key)
        return True

    def saturate(self, demands: List[Tuple[int, Mask]]) -> None:
        while True:
            self.passes += 1
            found: List[Tuple[Key, Derivation]] = []
            for fid, mask in demands:
                for entry in self.parser.rules_by_fid.get(fid, ()):
                    for spans, children in self._match(entry, mask):
                        found.append(((fid, spans), _Apply(entry.rule.fun, children)))
                for child in self.parser.coercions_by_fid.get(fid, ()):
                    for key in self._by_mask.get((child, mask), ()):
                        found.append(((fid, key[1]), _Coerce(key)))
            grew = False
            for key, derivation in found:
                grew = self.add(key, derivation) or grew
            if not grew:
                return

    # --- matching -------------------------------------------------------

    def _match(self, entry: _Entry, mask: Mask) -> List[Tuple[Spans, Tuple[Optional[Key], ...]]]:
        rule = entry.rule
        masks = ChartParser.arg_masks(entry, mask)
        results = []

        def place(k: int, placed: Tuple[Span, ...], state: _State) -> None:
            if k == len(mask):
                if _overlapping(placed):
                    return
                spans: List[Optional[Span]] = [None] * len(rule.lins)
                for field, span in zip(mask, placed):
                    spans[field] = span
                results.append((tuple(spans), state.bound))
                return
            seq = rule.lins[mask[k]]
            for start in range(self.n + 1):
                for end, now in self._walk(rule, masks, seq, 0, start, state):
                    place(k + 1, placed + ((start, end),), now)

        place(0, (), _State((None,) * len(rule.args), frozenset()))
        return results

    def _words_at(self, words: Tuple[str, ...], pos: int) -> Optional[int]:
        end = pos + len(words)
        if end <= self.n and self.tokens[pos:end] == words:
            return end
        return None

    def _walk(
        self,
        rule: Rule,
        masks: Tuple[Mask, ...],
        seq: Sequence,
        i: int,
        pos: int,
        state: _State,
    ) -> Iterator[Tuple[int, _State]]:
        """Yields (end, state) for every way seq[i:] matches from `pos`."""
        if i == len(seq):
            yield pos, state
            return
        sym = seq[i]

        if isinstance(sym, SymKS):
            end = self._words_at(self.words[sym.literal], pos)
            if end is not None:
                yield from self._walk(rule, masks, seq, i + 1, end, state)

        elif isinstance(sym, SymKP):
            variants = dict.fromkeys([sym.default] + [alt.literals for alt in sym.alts])
            for variant in variants:
                words = tuple(w for lit in variant for w in self.words[lit])
                end = self._words_at(words, pos)
                if end is None:
                    continue
                following = self.tokens[end] if end < self.n else None
                if select_variant(sym, following) == variant:
                    yield from self._walk(rule, masks, seq, i + 1, end, state)

        elif isinstance(sym, PROJECTIONS):
            ref = (sym.arg, sym.field)
            used = state.used | {ref}
            key = state.bound[sym.arg]
            if key is not None:
                start, end = key[1][sym.field]
                if ref in state.used:
                    # A repeated projection is a copy: same tokens, any position.
                    end = self._words_at(self.tokens[start:end], pos)
                    if end is None:
                        return
                elif start != pos:
                    return
                yield from self._walk(rule, masks, seq, i + 1, end, _State(state.bound, used))
                return
            fid = rule.args[sym.arg]
            for key in self._by_start.get((fid, masks[sym.arg], sym.field, pos), ()):
                bound = state.bound[:sym.arg] + (key,) + state.bound[sym.arg + 1:]
                yield from self._walk(rule, masks, seq, i + 1, key[1][sym.field][1], _State(bound, used))

        elif isinstance(sym, SymNE):
            return

        else:
            # SymVar realizes no tokens.
            yield from self._walk(rule, masks, seq, i + 1, pos, state)

    # --- tree extraction ------------------------------------------------

    def trees(self, roots: List[Key]) -> FrozenSet[Expr]:
        memo: Dict[Key, FrozenSet[Expr]] = {}
        found: Set[Expr] = set()
        for key in roots:
            found |= self._extract(key, set(), memo)[0]
        return frozenset(found)

    def _extract(self, key: Key, path: Set[Key], memo: Dict[Key, FrozenSet[Expr]]) -> Tuple[FrozenSet[Expr], bool]:
        """Trees for `key`, plus whether a cycle back onto `path` was cut while building them."""
        if key in memo:
            return memo[key], False
        if key in path:
            return frozenset(), True
        path.add(key)
        cut = False
        found: Set[Expr] = set()
        for derivation in self.derivations[key]:
            if isinstance(derivation, _Leaf):
                found.add(derivation.value)
            elif isinstance(derivation, _Coerce):
                trees, was_cut = self._extract(derivation.child, path, memo)
                found |= trees
                cut = cut or was_cut
            else:
                options = []
                for child in derivation.children:
                    if child is None:
                        options.append((Meta(),))
                        continue
                    trees, was_cut = self._extract(child, path, memo)
                    cut = cut or was_cut
                    options.append(trees)
                for combo in itertools.product(*options):
                    found.add(Tree(derivation.fun, combo))
        path.discard(key)
        result = frozenset(found)
        if not cut:
            memo[key] = result
        return result, cut

    # --- bracketing -----------------------------------------------------

    def bracket(self, key: Key) -> Bracket:
        """One analysis of `key`'s first field, as nested constituents over the tokens."""
        return self._bracket(key, key[1][0], frozenset())

    def _bracket(self, key: Key, span: Span, path: FrozenSet[Key]) -> Bracket:
        fid = key[0]
        cat = self.parser.concrete.category_of(fid) or "_"
        words = self.tokens[span[0]:span[1]]
        path = path | {key}
        for derivation in sorted(self.derivations[key], key=_preference):
            if isinstance(derivation, _Leaf):
                return Bracket(cat, fid, None, words)
            if isinstance(derivation, _Coerce):
                if derivation.child not in path:
                    return self._bracket(derivation.child, span, path)
                continue
            children = [c for c in derivation.children if c is not None]
            if any(c in path for c in children):
                continue
            # Child fields realized inside `span`, by start position. A
            # repeated projection is not a child span and stays plain tokens.
            pieces: Dict[int, Tuple[Key, Span]] = {}
            for child in children:
                for piece in child[1]:
                    if piece is not None and span[0] <= piece[0] < piece[1] <= span[1]:
                        pieces.setdefault(piece[0], (child, piece))
            out: List[Union[str, Bracket]] = []
            pos = span[0]
            while pos < span[1]:
                if pos in pieces:
                    child, piece = pieces[pos]
                    out.append(self._bracket(child, piece, path))
                    pos = piece[1]
                else:
                    out.append(self.tokens[pos])
                    pos += 1
            return Bracket(cat, fid, derivation.fun, tuple(out))
        return Bracket(cat, fid, None, words)


@functools.lru_cache(maxsize=64)
def parser_for(concrete: ConcreteSyntax) -> ChartParser:
    return ChartParser(concrete)


def tokens_of(sentence: Union[str, Seq[str]], tokenizer: Optional[Tokenizer] = None) -> List[str]:
    if isinstance(sentence, str):
        return list((tokenizer or DEFAULT_TOKENIZER).tokenize(sentence))
    return list(sentence)


def parse(
    grammar: Grammar,
    language: str,
    sentence: Union[str, Seq[str]],
    cat: Optional[str] = None,
    tokenizer: Optional[Tokenizer] = None,
    max_tokens: Optional[int] = MAX_PARSE_TOKENS,
) -> FrozenSet[Expr]:
    """
    Every tree of category `cat` (default: the start category) whose
    linearization in `language` is the input.

    `sentence` is either text, segmented by `tokenizer` (default: split on
    whitespace), or an already tokenized sequence. No derivation is not an
    error: the result is then empty. `max_tokens=None` lifts the length
    limit.

    Raises:
        UnknownLanguage / UnknownCategory
        InputTooLong: more than `max_tokens` tokens.
    """
    concrete = grammar.concrete(language)
    cat = grammar.check_category(cat or grammar.start_cat)
    tokens = tokens_of(sentence, tokenizer)
    if max_tokens is not None and len(tokens) > max_tokens:
        raise InputTooLong(len(tokens), max_tokens)
    try:
        start_fids = concrete.fids_of(cat)
    except UnknownCategory:
        # Declared in the abstract syntax but never linearized in this language.
        return frozenset()
    return parser_for(concrete).parse_tokens(tokens, start_fids)
