import struct
import zlib

import pytest

from asesheet.cursor import (
    Cursor,
    DecompressionFailed,
    TruncatedInput,
    decompress,
)


def test_little_endian_reads():
    data = struct.pack("<BHIhi", 0xAB, 0x1234, 0xDEADBEEF, -2, -70000)
    cursor = Cursor(data)
    assert cursor.read_u8() == 0xAB
    assert cursor.read_u16() == 0x1234
    assert cursor.read_u32() == 0xDEADBEEF
    assert cursor.read_i16() == -2
    assert cursor.read_i32() == -70000
    assert cursor.remaining == 0


def test_string_and_ignore():
    text = "héllo".encode("utf-8")
    cursor = Cursor(b"\x00\x00" + struct.pack("<H", len(text)) + text + b"!")
    cursor.ignore(2)
    assert cursor.read_string() == "héllo"
    assert cursor.read_bytes(1) == b"!"


def test_invalid_utf8_string_is_replaced():
    cursor = Cursor(struct.pack("<H", 4) + b"ab\xffc")
    assert cursor.read_string() == "ab\ufffdc"
    assert cursor.remaining == 0


def test_read_past_end_is_truncated():
    cursor = Cursor(b"\x01\x02\x03")
    cursor.read_u16()
    with pytest.raises(TruncatedInput):
        cursor.read_u16()
    assert cursor.position == 2  # failed read doesn't move

    with pytest.raises(TruncatedInput):
        Cursor(struct.pack("<H", 10) + b"short").read_string()


def test_chunk_is_bounded_and_advances_parent():
    cursor = Cursor(b"abcdefgh")
    cursor.ignore(1)
    sub = cursor.chunk(3)
    assert cursor.position == 4
    assert sub.read_rest() == b"bcd"
    with pytest.raises(TruncatedInput):
        sub.read_u8()
    assert cursor.read_bytes(4) == b"efgh"

    with pytest.raises(TruncatedInput):
        Cursor(b"abc").chunk(4)


def test_seek_stays_in_window():
    cursor = Cursor(b"abcdefgh", 2, 6)
    cursor.seek(6)
    assert cursor.remaining == 0
    with pytest.raises(TruncatedInput):
        cursor.seek(7)
    with pytest.raises(TruncatedInput):
        cursor.seek(1)


def test_decompress():
    data = bytes(range(256)) * 10
    assert decompress(zlib.compress(data)) == data

    with pytest.raises(DecompressionFailed):
        decompress(b"\x78")
    with pytest.raises(DecompressionFailed):
        decompress(b"\x78\x9c\xff\xff\xff\xff")
    with pytest.raises(DecompressionFailed):
        decompress(zlib.compress(data)[:20])  # cut off mid-stream
