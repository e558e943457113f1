from pgf_runtime.core.parsing.chart import Bracket, ChartParser, parse
from pgf_runtime.core.parsing.incremental import ParseFail, ParseOk, ParseState, get_parse_output, init_state, next_state
from pgf_runtime.core.parsing.tokenize import WhitespaceTokenizer

__all__ = [
    "Bracket",
    "ChartParser",
    "ParseFail",
    "ParseOk",
    "ParseState",
    "WhitespaceTokenizer",
    "get_parse_output",
    "init_state",
    "next_state",
    "parse",
]
