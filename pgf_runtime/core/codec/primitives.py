# pgf_runtime/core/codec/primitives.py
"""
Primitive decoder.

Fixed-width reads live on ByteCursor. Reads whose layout depends on the
format version (lengths and signed ints) go through a FormatProfile,
selected once from the file header and passed explicitly to every
version-sensitive call:

    profile 1.0 -- LEB128 variable-length lengths / signed ints
    profile 2.1 -- fixed 32-bit big-endian lengths / signed ints

Every profile can also encode, which keeps each layout's round trip
checkable against its own decoder.
"""

from __future__ import annotations

import struct
from typing import Callable, Dict, List, Tuple, TypeVar

import structlog

from pgf_runtime.core.domain.exceptions import (
    DecodeError,
    ImplausibleLength,
    MalformedHeader,
    UnexpectedEof,
    UnsupportedVersion,
)

logger = structlog.get_logger()

T = TypeVar("T")

# Every encoded list element occupies at least one byte, so a declared
# count larger than the remaining buffer can only come from a misaligned
# cursor.
MIN_ELEMENT_SIZE = 1

_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")
_I32 = struct.Struct(">i")
_F64 = struct.Struct(">d")


class ByteCursor:
    """Read position over an immutable buffer, optionally bounded to a window."""

    __slots__ = ("_data", "_pos", "_end")

    def __init__(self, data: bytes, start: int = 0, end: int = None):
        self._data = data
        self._pos = start
        self._end = len(data) if end is None else end

    @property
    def offset(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return self._end - self._pos

    def _take(self, size: int) -> bytes:
        if size > self.remaining:
            raise UnexpectedEof(f"need {size} byte(s), {self.remaining} remain", self._pos)
        chunk = self._data[self._pos:self._pos + size]
        self._pos += size
        return chunk

    def read_bytes(self, size: int) -> bytes:
        return self._take(size)

    def read_u8(self) -> int:
        return self._take(1)[0]

    def read_u16(self) -> int:
        return _U16.unpack(self._take(2))[0]

    def read_u32(self) -> int:
        return _U32.unpack(self._take(4))[0]

    def read_i32(self) -> int:
        return _I32.unpack(self._take(4))[0]

    def read_f64(self) -> float:
        return _F64.unpack(self._take(8))[0]

    def fork(self) -> "ByteCursor":
        """Independent cursor at the same position and bound."""
        return ByteCursor(self._data, self._pos, self._end)

    def window(self, size: int) -> "ByteCursor":
        """Splits off the next `size` bytes as a bounded cursor and skips past them."""
        if size > self.remaining:
            raise UnexpectedEof(f"window of {size} byte(s) exceeds the {self.remaining} remaining", self._pos)
        sub = ByteCursor(self._data, self._pos, self._pos + size)
        self._pos += size
        return sub


# -----------------------------------------------------------------------------
# Format profiles
# -----------------------------------------------------------------------------
class FormatProfile:
    """Length / int encoding strategy for one format version."""

    version: Tuple[int, int] = (0, 0)

    @property
    def label(self) -> str:
        return "%d.%d" % self.version

    def read_length(self, cursor: ByteCursor) -> int:
        raise NotImplementedError

    def read_int(self, cursor: ByteCursor) -> int:
        raise NotImplementedError

    def encode_length(self, value: int) -> bytes:
        raise NotImplementedError

    def encode_int(self, value: int) -> bytes:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.label}>"


class VarintProfile(FormatProfile):
    """Format 1.0: LEB128 encodings, at most 32 significant bits."""

    version = (1, 0)
    MAX_BYTES = 5

    def read_length(self, cursor: ByteCursor) -> int:
        start = cursor.offset
        result = 0
        for shift in range(0, 7 * self.MAX_BYTES, 7):
            byte = cursor.read_u8()
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                if result > 0xFFFFFFFF:
                    raise ImplausibleLength("length exceeds 32 bits", start)
                return result
        raise ImplausibleLength("unterminated variable-length length", start)

    def read_int(self, cursor: ByteCursor) -> int:
        start = cursor.offset
        result = 0
        for shift in range(0, 7 * self.MAX_BYTES, 7):
            byte = cursor.read_u8()
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                if byte & 0x40:
                    result -= 1 << (shift + 7)
                if not -(1 << 31) <= result < (1 << 31):
                    raise ImplausibleLength("int exceeds 32 bits", start)
                return result
        raise ImplausibleLength("unterminated variable-length int", start)

    def encode_length(self, value: int) -> bytes:
        if value < 0:
            raise ValueError("lengths are unsigned")
        out = bytearray()
        while True:
            byte = value & 0x7F
            value >>= 7
            if value:
                out.append(byte | 0x80)
            else:
                out.append(byte)
                return bytes(out)

    def encode_int(self, value: int) -> bytes:
        out = bytearray()
        while True:
            byte = value & 0x7F
            value >>= 7
            if (value == 0 and not byte & 0x40) or (value == -1 and byte & 0x40):
                out.append(byte)
                return bytes(out)
            out.append(byte | 0x80)


class FixedWidthProfile(FormatProfile):
    """Format 2.1: 32-bit big-endian lengths and ints."""

    version = (2, 1)

    def read_length(self, cursor: ByteCursor) -> int:
        return cursor.read_u32()

    def read_int(self, cursor: ByteCursor) -> int:
        return cursor.read_i32()

    def encode_length(self, value: int) -> bytes:
        return _U32.pack(value)

    def encode_int(self, value: int) -> bytes:
        return _I32.pack(value)


PROFILE_1_0 = VarintProfile()
PROFILE_2_1 = FixedWidthProfile()

PROFILES: Dict[Tuple[int, int], FormatProfile] = {
    PROFILE_1_0.version: PROFILE_1_0,
    PROFILE_2_1.version: PROFILE_2_1,
}


def read_header(cursor: ByteCursor) -> FormatProfile:
    """Reads the u16 major / u16 minor header and returns the matching profile."""
    try:
        version = (cursor.read_u16(), cursor.read_u16())
    except UnexpectedEof as e:
        raise MalformedHeader(f"truncated header: {e.message}", 0) from e
    try:
        return PROFILES[version]
    except KeyError:
        raise UnsupportedVersion("unsupported PGF format %d.%d" % version, 0) from None


# -----------------------------------------------------------------------------
# Profile-aware reads
# -----------------------------------------------------------------------------
def read_length(cursor: ByteCursor, profile: FormatProfile) -> int:
    return profile.read_length(cursor)


def read_int(cursor: ByteCursor, profile: FormatProfile) -> int:
    return profile.read_int(cursor)


def read_string(cursor: ByteCursor, profile: FormatProfile) -> str:
    """Length-prefixed UTF-8; undecodable bytes fall back to Latin-1 instead of failing."""
    start = cursor.offset
    raw = cursor.read_bytes(profile.read_length(cursor))
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("pgf_string_latin1_fallback", offset=start, size=len(raw))
        return raw.decode("latin-1")


def read_count(cursor: ByteCursor, profile: FormatProfile) -> int:
    """Reads an element count and rejects counts the buffer cannot hold."""
    start = cursor.offset
    count = profile.read_length(cursor)
    if count * MIN_ELEMENT_SIZE > cursor.remaining:
        raise ImplausibleLength(
            f"declared {count} element(s) but only {cursor.remaining} byte(s) remain", start
        )
    return count


def read_list(
    cursor: ByteCursor,
    profile: FormatProfile,
    read_item: Callable[[ByteCursor, FormatProfile], T],
) -> List[T]:
    return [read_item(cursor, profile) for _ in range(read_count(cursor, profile))]


# -----------------------------------------------------------------------------
# Flags (shared by the header, abstract and concrete sections)
# -----------------------------------------------------------------------------
def read_flag_value(cursor: ByteCursor, profile: FormatProfile):
    start = cursor.offset
    tag = cursor.read_u8()
    if tag == 0:
        return read_string(cursor, profile)
    if tag == 1:
        return profile.read_int(cursor)
    if tag == 2:
        return cursor.read_f64()
    raise DecodeError(f"unknown flag literal tag {tag}", start)


def read_flags(cursor: ByteCursor, profile: FormatProfile) -> Dict[str, object]:
    flags: Dict[str, object] = {}
    for _ in range(read_count(cursor, profile)):
        name = read_string(cursor, profile)
        flags[name] = read_flag_value(cursor, profile)
    return flags
