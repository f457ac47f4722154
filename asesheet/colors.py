# Conversion of raw cel and tileset pixel bytes into RGBA32 buffers

import enum
from typing import Sequence, Tuple

from asesheet.cursor import AsepriteError

Rgba = Tuple[int, int, int, int]
TRANSPARENT: Rgba = (0, 0, 0, 0)


class InvalidBufferLength(AsepriteError):
    pass


class ColorDepth(enum.IntEnum):
    INDEXED = 8
    GRAYSCALE = 16
    RGBA = 32

    @property
    def bytes_per_pixel(self) -> int:
        return self.value // 8


def to_rgba(
    data: bytes,
    depth: ColorDepth,
    palette: Sequence[Rgba] = (),
    transparent_index: int = 0,
) -> bytes:
    """Returns data (in the given color depth) as straight-alpha RGBA bytes.

    In indexed mode the transparent index always becomes (0, 0, 0, 0),
    whatever the palette holds there, and so does any index past the end
    of the palette.
    """

    stride = depth.bytes_per_pixel
    if len(data) % stride:
        raise InvalidBufferLength(
            f"{len(data)}b is not a multiple of {stride}b ({depth.name})"
        )

    if depth == ColorDepth.RGBA:
        return bytes(data)

    if depth == ColorDepth.GRAYSCALE:
        out = bytearray(len(data) * 2)
        luminance, alpha = data[0::2], data[1::2]
        out[0::4] = out[1::4] = out[2::4] = luminance
        out[3::4] = alpha
        return bytes(out)

    blank = bytes(TRANSPARENT)
    lookup = [
        bytes(palette[i]) if i < len(palette) else blank for i in range(256)
    ]
    lookup[transparent_index] = blank
    return b"".join(lookup[index] for index in data)
