# pgf_runtime/core/parsing/incremental.py
"""
Token-at-a-time parsing.

    state = init_state(grammar, "FoodsEng")
    for token in ["this", "pizza", "is", "delicious"]:
        state = next_state(state, token)
    output, bracketed = get_parse_output(state)

States are immutable: next_state returns a new state and leaves its input
untouched, so a caller can branch several continuations off one prefix.
A state's chart is built the first time its output is asked for and then
kept for the lifetime of the state.
"""

from __future__ import annotations

import dataclasses
import functools
from typing import NamedTuple, Optional, Tuple, Union

import structlog

from pgf_runtime.core.domain.exceptions import InputTooLong, UnknownCategory
from pgf_runtime.core.domain.grammar import LITERAL_FIDS, Grammar
from pgf_runtime.core.domain.trees import Expr, show_expr
from pgf_runtime.core.parsing.chart import (
    MAX_PARSE_TOKENS,
    Bracket,
    Chart,
    ChartParser,
    Key,
    literal_value,
    parser_for,
)

logger = structlog.get_logger()

BracketedString = Union[str, Bracket]


class ParseOk(NamedTuple):
    trees: Tuple[Expr, ...]


class ParseFail(NamedTuple):
    """
    No tree spans the tokens fed so far.

    `offset` is the index of the first token that is neither a word of the
    language nor a literal it accepts, and `token` is that token. When
    every token is known, `offset` is the token count and `token` is None:
    the input is unfinished or ungrammatical.
    """
    offset: int
    token: Optional[str]


ParseOutput = Union[ParseOk, ParseFail]


@dataclasses.dataclass(frozen=True)
class ParseState:
    parser: ChartParser
    cat: str
    start_fids: range
    tokens: Tuple[str, ...] = ()
    max_tokens: Optional[int] = MAX_PARSE_TOKENS

    @property
    def language(self) -> str:
        return self.parser.concrete.name

    @functools.cached_property
    def analysis(self) -> Tuple[Chart, Tuple[Key, ...]]:
        chart, roots = self.parser.build_chart(self.tokens, self.start_fids)
        return chart, tuple(sorted(roots))


def init_state(
    grammar: Grammar,
    language: str,
    cat: Optional[str] = None,
    max_tokens: Optional[int] = MAX_PARSE_TOKENS,
) -> ParseState:
    """
    Empty parse state for category `cat` (default: the start category).

    Raises:
        UnknownLanguage / UnknownCategory
    """
    concrete = grammar.concrete(language)
    cat = grammar.check_category(cat or grammar.start_cat)
    try:
        start_fids = concrete.fids_of(cat)
    except UnknownCategory:
        # Declared in the abstract syntax but never linearized in this language.
        start_fids = range(0)
    return ParseState(parser_for(concrete), cat, start_fids, (), max_tokens)


def next_state(state: ParseState, token: str) -> ParseState:
    """
    `state` extended by one token.

    Raises:
        InputTooLong: the state already holds `max_tokens` tokens.
    """
    count = len(state.tokens) + 1
    if state.max_tokens is not None and count > state.max_tokens:
        raise InputTooLong(count, state.max_tokens)
    return dataclasses.replace(state, tokens=state.tokens + (token,))


def _known(state: ParseState, token: str) -> bool:
    concrete = state.parser.concrete
    if any(token in words for words in concrete.words):
        return True
    literal_fids = {fid for rule in concrete.rules for fid in rule.args if fid in LITERAL_FIDS}
    literal_fids.update(fid for fid in state.start_fids if fid in LITERAL_FIDS)
    return any(literal_value(LITERAL_FIDS[fid], token) is not None for fid in literal_fids)


def get_parse_output(state: ParseState) -> Tuple[ParseOutput, Optional[BracketedString]]:
    """
    Trees spanning every token fed so far, plus a bracketed view of one
    of them (None on failure).
    """
    chart, roots = state.analysis
    trees = tuple(sorted(chart.trees(list(roots)), key=show_expr))
    logger.debug("pgf_incremental_output", language=state.language, tokens=len(state.tokens), trees=len(trees))
    if trees:
        return ParseOk(trees), chart.bracket(roots[0])
    for offset, token in enumerate(state.tokens):
        if not _known(state, token):
            return ParseFail(offset, token), None
    return ParseFail(len(state.tokens), None), None


__all__ = [
    "ParseState", "ParseOk", "ParseFail", "ParseOutput", "BracketedString", "Bracket",
    "init_state", "next_state", "get_parse_output",
]
