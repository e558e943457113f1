# pgf_runtime/core/parsing/tokenize.py
from typing import List

from pgf_runtime.core.ports import Tokenizer


class WhitespaceTokenizer(Tokenizer):
    """Default segmentation: split on runs of whitespace."""

    def tokenize(self, text: str) -> List[str]:
        return text.split()


DEFAULT_TOKENIZER = WhitespaceTokenizer()
