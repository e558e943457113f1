# tests/test_primitives.py
import pytest

from pgf_runtime.core.codec.primitives import (
    PROFILE_1_0,
    PROFILE_2_1,
    ByteCursor,
    read_count,
    read_flags,
    read_header,
    read_string,
)
from pgf_runtime.core.domain.exceptions import (
    DecodeError,
    ImplausibleLength,
    MalformedHeader,
    UnexpectedEof,
    UnsupportedVersion,
)
from tests.pgf_builder import Writer

PROFILES = [PROFILE_1_0, PROFILE_2_1]


@pytest.mark.parametrize("profile", PROFILES, ids=lambda p: p.label)
def test_length_and_int_encodings_decode_back(profile):
    lengths = [0, 1, 127, 128, 300, 2**31, 2**32 - 1]
    ints = [0, 1, -1, 63, 64, -64, -65, 2**31 - 1, -2**31]

    data = b"".join(profile.encode_length(v) for v in lengths) + b"".join(profile.encode_int(v) for v in ints)
    cursor = ByteCursor(data)

    assert [profile.read_length(cursor) for _ in lengths] == lengths
    assert [profile.read_int(cursor) for _ in ints] == ints
    assert cursor.remaining == 0


def test_varint_layout():
    assert PROFILE_1_0.encode_length(127) == b"\x7f"
    assert PROFILE_1_0.encode_length(128) == b"\x80\x01"
    assert PROFILE_1_0.encode_int(-1) == b"\x7f"
    assert PROFILE_1_0.encode_int(64) == b"\xc0\x00"


def test_fixed_width_layout():
    assert PROFILE_2_1.encode_length(1) == b"\x00\x00\x00\x01"
    assert PROFILE_2_1.encode_int(-2) == b"\xff\xff\xff\xfe"


def test_varint_longer_than_five_bytes_is_rejected():
    with pytest.raises(ImplausibleLength):
        PROFILE_1_0.read_length(ByteCursor(b"\xff" * 5 + b"\x01"))


def test_varint_length_beyond_32_bits_is_rejected():
    with pytest.raises(ImplausibleLength):
        PROFILE_1_0.read_length(ByteCursor(b"\xff\xff\xff\xff\x7f"))


def test_short_read_reports_offset():
    cursor = ByteCursor(b"\x00\x01\x02")
    cursor.read_u8()
    with pytest.raises(UnexpectedEof) as exc:
        cursor.read_u32()
    assert exc.value.offset == 1


def test_window_is_bounded_and_skips_ahead():
    cursor = ByteCursor(b"abcdef")
    frame = cursor.window(2)

    assert cursor.offset == 2
    assert frame.read_bytes(2) == b"ab"
    with pytest.raises(UnexpectedEof):
        frame.read_u8()
    with pytest.raises(UnexpectedEof):
        cursor.window(10)


def test_fork_leaves_the_cursor_in_place():
    cursor = ByteCursor(b"\x01\x02")
    assert cursor.fork().read_u8() == 1
    assert cursor.offset == 0


def test_read_string_utf8_and_latin1_fallback():
    w = Writer()
    w.string("è")
    w.length(2)
    w.raw(b"\xe9t")  # Latin-1 bytes, invalid UTF-8
    cursor = ByteCursor(w.getvalue())

    assert read_string(cursor, PROFILE_1_0) == "è"
    assert read_string(cursor, PROFILE_1_0) == "ét"


def test_count_larger_than_buffer_is_implausible():
    data = PROFILE_1_0.encode_length(1000) + b"\x00"
    with pytest.raises(ImplausibleLength):
        read_count(ByteCursor(data), PROFILE_1_0)


def test_read_flags_all_literal_kinds():
    w = Writer()
    w.flags({"language": "en_US", "depth": -3, "weight": 0.5})
    assert read_flags(ByteCursor(w.getvalue()), PROFILE_1_0) == {"language": "en_US", "depth": -3, "weight": 0.5}


def test_unknown_flag_tag():
    w = Writer()
    w.length(1)
    w.string("x")
    w.u8(9)
    with pytest.raises(DecodeError, match="unknown flag literal tag 9"):
        read_flags(ByteCursor(w.getvalue()), PROFILE_1_0)


class TestHeader:
    def test_known_versions(self):
        assert read_header(ByteCursor(b"\x00\x01\x00\x00")) is PROFILE_1_0
        assert read_header(ByteCursor(b"\x00\x02\x00\x01")) is PROFILE_2_1

    def test_unknown_version(self):
        with pytest.raises(UnsupportedVersion, match="3.0"):
            read_header(ByteCursor(b"\x00\x03\x00\x00"))

    def test_unsupported_version_is_a_header_error(self):
        assert issubclass(UnsupportedVersion, MalformedHeader)

    def test_truncated(self):
        with pytest.raises(MalformedHeader):
            read_header(ByteCursor(b"\x00\x01\x00"))
