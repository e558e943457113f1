# pgf_runtime/core/domain/exceptions.py
"""
Error taxonomy for the PGF runtime.

Decode errors carry the byte offset at which decoding failed. Whether they
are fatal depends on where they are raised: anything outside a concrete
syntax block aborts the decode, anything inside one is recorded as a
block diagnostic by the concrete decoder.

Query errors are raised per call by parse / linearize and never affect
grammar state. "No derivation found" is NOT an error: parse returns an
empty set.
"""

from __future__ import annotations

from typing import Optional


class PGFError(Exception):
    """Base class for all runtime errors."""


# =========================================================
# 1. DECODE ERRORS
# =========================================================

class DecodeError(PGFError):
    """A failure while reading the binary, tagged with its byte offset."""

    def __init__(self, message: str, offset: Optional[int] = None):
        self.message = message
        self.offset = offset
        if offset is not None:
            message = f"{message} (at byte {offset})"
        super().__init__(message)


class UnexpectedEof(DecodeError):
    """Fewer bytes remain than a read requires."""


class ImplausibleLength(DecodeError):
    """A declared count or length cannot fit in the remaining buffer."""


class MalformedHeader(DecodeError):
    """The file header is unreadable or names an unsupported format."""


class UnsupportedVersion(MalformedHeader):
    pass


class MalformedAbstractSyntax(DecodeError):
    """The abstract syntax is inconsistent. Always fatal."""


class MalformedConcreteSyntax(DecodeError):
    """One concrete syntax block is inconsistent. Recoverable per block."""


# =========================================================
# 2. QUERY ERRORS
# =========================================================

class QueryError(PGFError):
    """A parse / linearize / lookup call referenced something absent."""


class UnknownLanguage(QueryError):
    def __init__(self, language: str, available=()):
        self.language = language
        self.available = list(available)
        super().__init__(f"Unknown language '{language}'. Available: {self.available}")


class UnknownCategory(QueryError):
    def __init__(self, category: str):
        self.category = category
        super().__init__(f"Unknown category '{category}'")


class UnknownFunction(QueryError):
    def __init__(self, function: str):
        self.function = function
        super().__init__(f"Unknown function '{function}'")


class TypeMismatch(QueryError):
    """A tree does not type-check against the abstract syntax."""


class MissingLinearization(QueryError):
    def __init__(self, function: str, language: str, reason: str = "no production"):
        self.function = function
        self.language = language
        super().__init__(f"Cannot linearize '{function}' in {language}: {reason}")


class ExpressionSyntaxError(QueryError):
    """A textual tree could not be read."""

    def __init__(self, message: str, position: int):
        self.position = position
        super().__init__(f"{message} (at character {position})")


class InputTooLong(QueryError):
    def __init__(self, tokens: int, limit: int):
        self.tokens = tokens
        self.limit = limit
        super().__init__(f"Sentence has {tokens} tokens, the limit is {limit}")


# =========================================================
# 3. ENGINE STATE
# =========================================================

class GrammarNotLoaded(PGFError):
    """The engine has no grammar (missing file or fatal decode error)."""
