# pgf_runtime/core/codec/reader.py
"""
Top-level PGF decoder.

    header -> global flags -> abstract syntax -> concrete blocks

Header and abstract syntax failures propagate. Each concrete block is
decoded inside its own frame as an isolated transaction: it either
commits a ConcreteSyntax or is discarded with a BlockDiagnostic, and the
loop moves on to the next declared frame. The outer cursor only ever
advances by frame sizes, never by positions reached inside a failed block.
"""

from __future__ import annotations

from typing import Dict, List, NamedTuple, Optional, Tuple

import structlog

from pgf_runtime.core.codec.abstract import read_abstract
from pgf_runtime.core.codec.concrete import read_concrete
from pgf_runtime.core.codec.primitives import (
    ByteCursor,
    FormatProfile,
    read_count,
    read_flags,
    read_header,
    read_string,
)
from pgf_runtime.core.domain.exceptions import DecodeError, MalformedConcreteSyntax
from pgf_runtime.core.domain.grammar import AbstractSyntax, ConcreteSyntax, Grammar, frozen_mapping

logger = structlog.get_logger()


class BlockDiagnostic(NamedTuple):
    """Why one concrete syntax block was discarded."""
    index: int
    offset: int
    language: Optional[str]
    error: str
    message: str

    def __str__(self) -> str:
        name = self.language or "<unreadable>"
        return f"block {self.index} ({name}) at byte {self.offset}: {self.error}: {self.message}"


class DecodeResult(NamedTuple):
    grammar: Grammar
    diagnostics: Tuple[BlockDiagnostic, ...]


def _peek_language(frame: ByteCursor, profile: FormatProfile) -> Optional[str]:
    try:
        return read_string(frame.fork(), profile)
    except DecodeError:
        return None


def _diagnostic(index: int, offset: int, language: Optional[str], error: DecodeError) -> BlockDiagnostic:
    diag = BlockDiagnostic(
        index=index,
        offset=error.offset if error.offset is not None else offset,
        language=language,
        error=type(error).__name__,
        message=error.message,
    )
    logger.warning(
        "pgf_block_discarded",
        index=index,
        language=language,
        offset=diag.offset,
        error=diag.error,
        reason=diag.message,
    )
    return diag


def read_concretes(
    cursor: ByteCursor,
    profile: FormatProfile,
    abstract: AbstractSyntax,
) -> Tuple[Dict[str, ConcreteSyntax], List[BlockDiagnostic]]:
    """Decodes every declared block, accumulating (committed, diagnostics)."""
    declared = read_count(cursor, profile)
    committed: Dict[str, ConcreteSyntax] = {}
    diagnostics: List[BlockDiagnostic] = []

    for index in range(declared):
        frame_start = cursor.offset
        try:
            frame = cursor.window(profile.read_length(cursor))
        except DecodeError as e:
            # No trustworthy size means no next boundary to resume at.
            diagnostics.append(_diagnostic(index, frame_start, None, e))
            for unreachable in range(index + 1, declared):
                lost = DecodeError(f"unreachable after framing failure of block {index}", frame_start)
                diagnostics.append(_diagnostic(unreachable, frame_start, None, lost))
            break

        body_start = frame.offset
        language = _peek_language(frame, profile)
        try:
            concrete = read_concrete(frame, profile, abstract)
            if frame.remaining:
                raise MalformedConcreteSyntax(f"{frame.remaining} trailing byte(s) after block", frame.offset)
            if concrete.name in committed:
                raise MalformedConcreteSyntax(f"duplicate language '{concrete.name}'", body_start)
        except DecodeError as e:
            diagnostics.append(_diagnostic(index, body_start, language, e))
            continue

        committed[concrete.name] = concrete
        logger.debug("pgf_block_committed", index=index, language=concrete.name, rules=len(concrete.rules))

    return committed, diagnostics


def decode(data: bytes) -> DecodeResult:
    """
    Decodes a PGF buffer into a grammar plus per-block diagnostics.

    Raises:
        MalformedHeader / UnsupportedVersion: unreadable or unknown header.
        MalformedAbstractSyntax: the abstract syntax could not be decoded.
        UnexpectedEof / ImplausibleLength: the global flags could not be read.
    """
    cursor = ByteCursor(bytes(data))
    profile = read_header(cursor)
    logger.info("pgf_format_detected", version=profile.label, size=len(data))

    flags = read_flags(cursor, profile)
    abstract = read_abstract(cursor, profile)
    concretes, diagnostics = read_concretes(cursor, profile, abstract)

    if cursor.remaining:
        logger.warning("pgf_trailing_bytes", count=cursor.remaining, offset=cursor.offset)

    grammar = Grammar(
        abstract=abstract,
        concretes=frozen_mapping(concretes),
        flags=frozen_mapping(flags),
        version=profile.version,
    )
    logger.info(
        "pgf_decoded",
        abstract=abstract.name,
        languages=grammar.languages,
        discarded=len(diagnostics),
    )
    return DecodeResult(grammar=grammar, diagnostics=tuple(diagnostics))
