# Little-endian byte reader over an in-memory .aseprite buffer

import struct
import zlib
from typing import Optional


class AsepriteError(Exception):
    pass


class TruncatedInput(AsepriteError):
    pass


class DecompressionFailed(AsepriteError):
    pass


_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_I16 = struct.Struct("<h")
_I32 = struct.Struct("<i")


class Cursor:
    """Sequential reader over a window [start, end) of a byte buffer.

    Sub-cursors made with chunk() share the underlying buffer, so a chunk
    decoder can never read past its own declared length.
    """

    def __init__(self, data: bytes, start: int = 0, end: Optional[int] = None):
        self._data = data
        self._start = start
        self._end = len(data) if end is None else end
        self._pos = start

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return self._end - self._pos

    def _take(self, size: int) -> int:
        pos = self._pos
        if size < 0 or pos + size > self._end:
            raise TruncatedInput(
                f"Need {size}b at offset {pos}, only {self._end - pos}b left"
            )
        self._pos = pos + size
        return pos

    def read_u8(self) -> int:
        return _U8.unpack_from(self._data, self._take(1))[0]

    def read_u16(self) -> int:
        return _U16.unpack_from(self._data, self._take(2))[0]

    def read_u32(self) -> int:
        return _U32.unpack_from(self._data, self._take(4))[0]

    def read_i16(self) -> int:
        return _I16.unpack_from(self._data, self._take(2))[0]

    def read_i32(self) -> int:
        return _I32.unpack_from(self._data, self._take(4))[0]

    def read_bytes(self, size: int) -> bytes:
        pos = self._take(size)
        return bytes(self._data[pos : pos + size])

    def read_rest(self) -> bytes:
        return self.read_bytes(self.remaining)

    def read_string(self) -> str:
        """Reads a u16-length UTF-8 string.

        Invalid UTF-8 sequences become U+FFFD rather than failing, as
        Aseprite itself reads names.
        """

        size = self.read_u16()
        return self.read_bytes(size).decode("utf-8", errors="replace")

    def ignore(self, size: int):
        self._take(size)

    def ignore_string(self):
        self.ignore(self.read_u16())

    def seek(self, position: int):
        if not self._start <= position <= self._end:
            raise TruncatedInput(
                f"Seek to {position} outside [{self._start}, {self._end}]"
            )
        self._pos = position

    def chunk(self, size: int) -> "Cursor":
        """Returns a cursor over the next size bytes and skips past them."""
        pos = self._take(size)
        return Cursor(self._data, pos, pos + size)


def decompress(data: bytes) -> bytes:
    """Inflates zlib-wrapped data, skipping the 2-byte zlib header."""

    if len(data) < 2:
        raise DecompressionFailed(f"Compressed data too short ({len(data)}b)")

    inflater = zlib.decompressobj(-zlib.MAX_WBITS)
    try:
        out = inflater.decompress(data[2:]) + inflater.flush()
    except zlib.error as exc:
        raise DecompressionFailed(f"Bad DEFLATE data: {exc}") from exc
    if not inflater.eof:
        raise DecompressionFailed(f"DEFLATE stream cut off ({len(data)}b)")
    return out
