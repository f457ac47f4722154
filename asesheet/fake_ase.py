# Synthetic .aseprite byte streams for tests (no binary fixtures needed)

import struct
import zlib
from typing import List, Optional, Sequence, Tuple

from asesheet.chunks import ChunkType

_HEADER = struct.Struct("<IHHHHHIHIIB3xHBB")
_FRAME = struct.Struct("<IHHH2xI")
_CHUNK = struct.Struct("<IH")

TILE_ID_MASK = 0x1FFFFFFF
TILE_X_FLIP = 0x20000000
TILE_Y_FLIP = 0x40000000
TILE_ROTATE = 0x80000000


def _string(text: str) -> bytes:
    data = text.encode("utf-8")
    return struct.pack("<H", len(data)) + data


class FakeAse:
    """Builds a file chunk by chunk; chunks go into the latest frame."""

    def __init__(
        self,
        width: int = 4,
        height: int = 4,
        depth: int = 32,
        *,
        opacity_valid: bool = True,
        transparent_index: int = 0,
        color_count: int = 0,
        pixel_size: Tuple[int, int] = (1, 1),
    ):
        self.width = width
        self.height = height
        self.depth = depth
        self.flags = 1 if opacity_valid else 0
        self.transparent_index = transparent_index
        self.color_count = color_count
        self.pixel_size = pixel_size
        self.magic = 0xA5E0
        self.frames: List[Tuple[int, List[bytes]]] = []

    def frame(self, duration: int = 100) -> "FakeAse":
        self.frames.append((duration, []))
        return self

    def chunk(self, chunk_type: int, body: bytes) -> "FakeAse":
        if not self.frames:
            self.frame()
        header = _CHUNK.pack(_CHUNK.size + len(body), chunk_type)
        self.frames[-1][1].append(header + body)
        return self

    def layer(
        self,
        name: str,
        *,
        flags: int = 1,
        layer_type: int = 0,
        child_level: int = 0,
        blend_mode: int = 0,
        opacity: int = 255,
        tileset_index: Optional[int] = None,
    ) -> "FakeAse":
        body = struct.pack(
            "<HHHHHHB3x",
            flags,
            layer_type,
            child_level,
            0,
            0,
            blend_mode,
            opacity,
        )
        body += _string(name)
        if tileset_index is not None:
            body += struct.pack("<I", tileset_index)
        return self.chunk(ChunkType.LAYER, body)

    def _cel(self, layer: int, x: int, y: int, opacity: int, cel_type: int):
        return struct.pack("<HhhBH7x", layer, x, y, opacity, cel_type)

    def image_cel(
        self,
        layer: int,
        width: int,
        height: int,
        pixels: bytes,
        *,
        x: int = 0,
        y: int = 0,
        opacity: int = 255,
        compressed: bool = True,
    ) -> "FakeAse":
        body = self._cel(layer, x, y, opacity, 2 if compressed else 0)
        body += struct.pack("<HH", width, height)
        body += zlib.compress(pixels) if compressed else pixels
        return self.chunk(ChunkType.CEL, body)

    def linked_cel(
        self, layer: int, frame: int, *, x: int = 0, y: int = 0
    ) -> "FakeAse":
        body = self._cel(layer, x, y, 255, 1) + struct.pack("<H", frame)
        return self.chunk(ChunkType.CEL, body)

    def tilemap_cel(
        self,
        layer: int,
        columns: int,
        rows: int,
        tiles: Sequence[int],
        *,
        x: int = 0,
        y: int = 0,
        opacity: int = 255,
        bits_per_tile: int = 32,
    ) -> "FakeAse":
        body = self._cel(layer, x, y, opacity, 3)
        body += struct.pack(
            "<HHHIIII10x",
            columns,
            rows,
            bits_per_tile,
            TILE_ID_MASK,
            TILE_X_FLIP,
            TILE_Y_FLIP,
            TILE_ROTATE,
        )
        size = bits_per_tile // 8
        data = b"".join(tile.to_bytes(size, "little") for tile in tiles)
        body += zlib.compress(data)
        return self.chunk(ChunkType.CEL, body)

    def tags(self, *tags: Tuple) -> "FakeAse":
        """Each tag is (from, to, direction, name[, repeat[, rgb]])."""

        body = struct.pack("<H8x", len(tags))
        for tag in tags:
            from_frame, to_frame, direction, name = tag[:4]
            repeat = tag[4] if len(tag) > 4 else 0
            r, g, b = tag[5] if len(tag) > 5 else (0, 0, 0)
            body += struct.pack(
                "<HHBH6x3B1x", from_frame, to_frame, direction, repeat, r, g, b
            )
            body += _string(name)
        return self.chunk(ChunkType.TAGS, body)

    def palette(
        self,
        colors: Sequence[Tuple[int, int, int, int]],
        *,
        first: int = 0,
        size: Optional[int] = None,
        names: bool = False,
    ) -> "FakeAse":
        last = first + len(colors) - 1
        size = first + len(colors) if size is None else size
        body = struct.pack("<III8x", size, first, last)
        for index, color in enumerate(colors):
            body += struct.pack("<H4B", 1 if names else 0, *color)
            if names:
                body += _string(f"color {first + index}")
        return self.chunk(ChunkType.PALETTE, body)

    def slice(
        self,
        name: str,
        keys: Sequence[Tuple[int, int, int, int, int]],
        *,
        center: Optional[Tuple[int, int, int, int]] = None,
        pivot: Optional[Tuple[int, int]] = None,
    ) -> "FakeAse":
        """Keys are (frame, x, y, width, height); center and pivot apply
        to every key."""

        flags = (1 if center else 0) | (2 if pivot else 0)
        body = struct.pack("<III", len(keys), flags, 0) + _string(name)
        for key in keys:
            body += struct.pack("<IiiII", *key)
            if center:
                body += struct.pack("<iiII", *center)
            if pivot:
                body += struct.pack("<ii", *pivot)
        return self.chunk(ChunkType.SLICE, body)

    def tileset(
        self,
        id: int,
        tile_width: int,
        tile_height: int,
        pixels: bytes,
        *,
        name: str = "tiles",
        flags: int = 2,
    ) -> "FakeAse":
        stride = tile_width * tile_height * self.depth // 8
        count = len(pixels) // stride
        body = struct.pack(
            "<IIIHHh14x", id, flags, count, tile_width, tile_height, 1
        )
        body += _string(name)
        if flags & 2:
            data = zlib.compress(pixels)
            body += struct.pack("<I", len(data)) + data
        return self.chunk(ChunkType.TILESET, body)

    def user_data(
        self,
        text: Optional[str] = None,
        color: Optional[Tuple[int, int, int, int]] = None,
    ) -> "FakeAse":
        flags = (1 if text is not None else 0) | (2 if color else 0)
        body = struct.pack("<I", flags)
        if text is not None:
            body += _string(text)
        if color:
            body += struct.pack("<4B", *color)
        return self.chunk(ChunkType.USER_DATA, body)

    def __bytes__(self) -> bytes:
        frames = b""
        for duration, frame_chunks in self.frames:
            data = b"".join(frame_chunks)
            count = len(frame_chunks)
            frames += _FRAME.pack(
                _FRAME.size + len(data),
                0xF1FA,
                min(count, 0xFFFF),
                duration,
                count,
            )
            frames += data

        header = _HEADER.pack(
            128 + len(frames),
            self.magic,
            len(self.frames),
            self.width,
            self.height,
            self.depth,
            self.flags,
            100,
            0,
            0,
            self.transparent_index,
            self.color_count,
            *self.pixel_size,
        )
        return header.ljust(128, b"\0") + frames


def rgba(*pixels: Tuple[int, int, int, int]) -> bytes:
    return bytes(channel for pixel in pixels for channel in pixel)


def solid(color: Tuple[int, int, int, int], count: int) -> bytes:
    return bytes(color) * count
