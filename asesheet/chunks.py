# Decoding of the .aseprite byte layout into typed chunk records
#
# File layout: a 128-byte header, then per frame a 16-byte frame header
# followed by that frame's chunks. Each chunk starts with its length
# (including the 6-byte chunk header) and a type tag.

import enum
import logging
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Optional,
    Tuple,
    Type,
    TypeVar,
    Union,
)

import attr

from asesheet.blend import BlendMode
from asesheet.colors import ColorDepth, Rgba
from asesheet.cursor import AsepriteError, Cursor, decompress
from asesheet.document import LoopDirection, Point, Rect, SliceKey, Tile

logger = logging.getLogger(__name__)

HEADER_SIZE = 128
HEADER_MAGIC = 0xA5E0
FRAME_MAGIC = 0xF1FA


class InvalidMagicNumber(AsepriteError):
    pass


class InvalidCanvasSize(AsepriteError):
    pass


class InvalidColorDepth(AsepriteError):
    pass


class UnknownChunkType(AsepriteError):
    pass


class UnsupportedExternalTileset(AsepriteError):
    pass


class MissingEmbeddedTilesetImage(AsepriteError):
    pass


class InvalidFieldValue(AsepriteError):
    pass


class ChunkType(enum.IntEnum):
    OLD_PALETTE_1 = 0x0004
    OLD_PALETTE_2 = 0x0011
    LAYER = 0x2004
    CEL = 0x2005
    CEL_EXTRA = 0x2006
    COLOR_PROFILE = 0x2007
    EXTERNAL_FILES = 0x2008
    MASK = 0x2016
    PATH = 0x2017
    TAGS = 0x2018
    PALETTE = 0x2019
    USER_DATA = 0x2020
    SLICE = 0x2022
    TILESET = 0x2023


SKIPPED_CHUNKS = {
    ChunkType.OLD_PALETTE_1,  # superseded by PALETTE
    ChunkType.OLD_PALETTE_2,
    ChunkType.CEL_EXTRA,  # UI-only precise positions
    ChunkType.COLOR_PROFILE,
    ChunkType.EXTERNAL_FILES,
    ChunkType.MASK,  # deprecated
    ChunkType.PATH,  # never used
}


class LayerType(enum.IntEnum):
    IMAGE = 0
    GROUP = 1
    TILEMAP = 2


class CelType(enum.IntEnum):
    RAW_IMAGE = 0
    LINKED = 1
    COMPRESSED_IMAGE = 2
    COMPRESSED_TILEMAP = 3


HEADER_FLAG_OPACITY_VALID = 1

LAYER_FLAG_VISIBLE = 1
LAYER_FLAG_BACKGROUND = 8
LAYER_FLAG_REFERENCE = 64

PALETTE_FLAG_HAS_NAME = 1

SLICE_FLAG_NINE_PATCH = 1
SLICE_FLAG_PIVOT = 2

TILESET_FLAG_EXTERNAL = 1
TILESET_FLAG_EMBEDDED = 2

USER_DATA_FLAG_TEXT = 1
USER_DATA_FLAG_COLOR = 2


@attr.frozen
class FileHeader:
    frame_count: int
    width: int
    height: int
    color_depth: ColorDepth
    opacity_valid: bool
    transparent_index: int
    color_count: int
    pixel_width: int = 1
    pixel_height: int = 1


@attr.frozen
class FrameHeader:
    duration: int
    chunk_count: int


@attr.frozen
class LayerChunk:
    layer_type: LayerType
    flags: int
    child_level: int
    blend_mode: BlendMode
    opacity: int
    name: str
    tileset_index: Optional[int] = None


@attr.frozen
class ImageCelChunk:
    layer_index: int
    x: int
    y: int
    opacity: int
    width: int
    height: int
    data: bytes = attr.ib(repr=lambda d: f"<{len(d)}b>")


@attr.frozen
class LinkedCelChunk:
    layer_index: int
    x: int
    y: int
    opacity: int
    frame_index: int


@attr.frozen
class TilemapCelChunk:
    layer_index: int
    x: int
    y: int
    opacity: int
    columns: int
    rows: int
    tiles: Tuple[Tile, ...] = attr.ib(repr=False)


@attr.frozen
class TagEntry:
    from_frame: int
    to_frame: int
    direction: LoopDirection
    repeat: int
    color: Rgba
    name: str


@attr.frozen
class TagsChunk:
    tags: Tuple[TagEntry, ...]


@attr.frozen
class PaletteChunk:
    size: int
    first_index: int
    last_index: int
    colors: Tuple[Rgba, ...]


@attr.frozen
class SliceChunk:
    name: str
    flags: int
    keys: Tuple[SliceKey, ...]


@attr.frozen
class TilesetChunk:
    id: int
    flags: int
    tile_count: int
    tile_width: int
    tile_height: int
    name: str
    data: bytes = attr.ib(repr=lambda d: f"<{len(d)}b>")


@attr.frozen
class UserDataChunk:
    text: Optional[str] = None
    color: Optional[Rgba] = None


Chunk = Union[
    LayerChunk,
    ImageCelChunk,
    LinkedCelChunk,
    TilemapCelChunk,
    TagsChunk,
    PaletteChunk,
    SliceChunk,
    TilesetChunk,
    UserDataChunk,
]

E = TypeVar("E", bound=enum.IntEnum)


def _enum(cls: Type[E], value: int) -> E:
    try:
        return cls(value)
    except ValueError as exc:
        raise InvalidFieldValue(f"Unknown {cls.__name__} ({value})") from exc


def _read_rgba(body: Cursor) -> Rgba:
    r, g, b, a = body.read_bytes(4)
    return (r, g, b, a)


def read_header(cursor: Cursor) -> FileHeader:
    start = cursor.position
    cursor.ignore(4)  # file size
    magic = cursor.read_u16()
    if magic != HEADER_MAGIC:
        raise InvalidMagicNumber(f"Bad header magic (0x{magic:04X})")

    frame_count = cursor.read_u16()
    width = cursor.read_u16()
    height = cursor.read_u16()
    depth = cursor.read_u16()
    flags = cursor.read_u32()
    cursor.ignore(2 + 4 + 4)  # speed (deprecated), two reserved dwords
    transparent_index = cursor.read_u8()
    cursor.ignore(3)
    color_count = cursor.read_u16()
    pixel_width = cursor.read_u8()
    pixel_height = cursor.read_u8()
    cursor.seek(start + HEADER_SIZE)

    if width < 1 or height < 1:
        raise InvalidCanvasSize(f"Bad canvas size ({width}x{height})")
    try:
        color_depth = ColorDepth(depth)
    except ValueError as exc:
        raise InvalidColorDepth(f"Bad color depth ({depth})") from exc

    return FileHeader(
        frame_count=frame_count,
        width=width,
        height=height,
        color_depth=color_depth,
        opacity_valid=bool(flags & HEADER_FLAG_OPACITY_VALID),
        transparent_index=(
            transparent_index if color_depth == ColorDepth.INDEXED else 0
        ),
        color_count=color_count or 256,
        pixel_width=pixel_width or 1,
        pixel_height=pixel_height or 1,
    )


def read_frame_header(cursor: Cursor) -> FrameHeader:
    cursor.ignore(4)  # frame size in bytes
    magic = cursor.read_u16()
    if magic != FRAME_MAGIC:
        raise InvalidMagicNumber(f"Bad frame magic (0x{magic:04X})")
    old_count = cursor.read_u16()
    duration = cursor.read_u16()
    cursor.ignore(2)
    new_count = cursor.read_u32()

    if old_count == 0xFFFF and new_count > old_count:
        count = new_count
    else:
        count = old_count
    return FrameHeader(duration=duration, chunk_count=count)


def read_chunk(cursor: Cursor, header: FileHeader) -> Optional[Chunk]:
    """Decodes one chunk, or returns None for chunk types that are skipped.

    The cursor always ends up at the end of the chunk's declared length.
    """

    size = cursor.read_u32()
    if size < 6:
        raise InvalidFieldValue(f"Bad chunk size ({size}b)")
    body = cursor.chunk(size - 4)
    tag = body.read_u16()

    try:
        chunk_type = ChunkType(tag)
    except ValueError as exc:
        raise UnknownChunkType(f"Unknown chunk type (0x{tag:04X})") from exc

    if chunk_type in SKIPPED_CHUNKS:
        logger.debug(f"Skipping {chunk_type.name} chunk ({size}b)")
        return None
    return _DECODERS[chunk_type](body, header)


def read_frames(
    cursor: Cursor, header: FileHeader
) -> Iterator[Tuple[FrameHeader, Iterator[Optional[Chunk]]]]:
    """Yields each frame header with a lazy iterator over its chunks.

    Each frame's chunks must be consumed before advancing to the next.
    """

    for index in range(header.frame_count):
        frame_header = read_frame_header(cursor)
        logger.debug(
            f"Frame F{index}: t={frame_header.duration}msec"
            f" chunks={frame_header.chunk_count}"
        )
        chunks = (
            read_chunk(cursor, header)
            for _ in range(frame_header.chunk_count)
        )
        yield frame_header, chunks


def _layer(body: Cursor, header: FileHeader) -> LayerChunk:
    flags = body.read_u16()
    layer_type = _enum(LayerType, body.read_u16())
    child_level = body.read_u16()
    body.ignore(4)  # default width and height
    blend_mode = _enum(BlendMode, body.read_u16())
    opacity = body.read_u8()
    body.ignore(3)
    name = body.read_string()
    tileset_index = None
    if layer_type == LayerType.TILEMAP:
        tileset_index = body.read_u32()

    return LayerChunk(
        layer_type=layer_type,
        flags=flags,
        child_level=child_level,
        blend_mode=blend_mode,
        opacity=opacity if header.opacity_valid else 255,
        name=name,
        tileset_index=tileset_index,
    )


def _cel(body: Cursor, header: FileHeader) -> Chunk:
    layer_index = body.read_u16()
    x = body.read_i16()
    y = body.read_i16()
    opacity = body.read_u8()
    cel_type = _enum(CelType, body.read_u16())
    body.ignore(7)
    common: Dict[str, Any] = dict(
        layer_index=layer_index, x=x, y=y, opacity=opacity
    )

    if cel_type == CelType.LINKED:
        return LinkedCelChunk(frame_index=body.read_u16(), **common)

    if cel_type == CelType.COMPRESSED_TILEMAP:
        return _tilemap_cel(body, **common)

    width = body.read_u16()
    height = body.read_u16()
    data = body.read_rest()
    if cel_type == CelType.COMPRESSED_IMAGE:
        data = decompress(data)
    return ImageCelChunk(width=width, height=height, data=data, **common)


def _tilemap_cel(body: Cursor, **common: Any) -> TilemapCelChunk:
    columns = body.read_u16()
    rows = body.read_u16()
    bits_per_tile = body.read_u16()
    id_mask = body.read_u32()
    x_flip_mask = body.read_u32()
    y_flip_mask = body.read_u32()
    rotate_mask = body.read_u32()
    body.ignore(10)
    data = decompress(body.read_rest())

    if bits_per_tile not in (8, 16, 32):
        raise InvalidFieldValue(f"Unknown bits per tile ({bits_per_tile})")
    stride = bits_per_tile // 8
    if len(data) % stride:
        raise InvalidFieldValue(
            f"Tile data ({len(data)}b) not a multiple of {stride}b"
        )

    tiles: List[Tile] = []
    for offset in range(0, len(data), stride):
        value = int.from_bytes(data[offset : offset + stride], "little")
        tiles.append(
            Tile(
                tile_id=value & id_mask,
                x_flip=bool(value & x_flip_mask),
                y_flip=bool(value & y_flip_mask),
                rotate_90=bool(value & rotate_mask),
            )
        )
    return TilemapCelChunk(
        columns=columns, rows=rows, tiles=tuple(tiles), **common
    )


def _tags(body: Cursor, header: FileHeader) -> TagsChunk:
    count = body.read_u16()
    body.ignore(8)
    tags = []
    for _ in range(count):
        from_frame = body.read_u16()
        to_frame = body.read_u16()
        direction = _enum(LoopDirection, body.read_u8())
        repeat = body.read_u16()
        body.ignore(6)
        r, g, b = body.read_u8(), body.read_u8(), body.read_u8()
        body.ignore(1)
        name = body.read_string()
        tags.append(
            TagEntry(
                from_frame=from_frame,
                to_frame=to_frame,
                direction=direction,
                repeat=repeat,
                color=(r, g, b, 255),
                name=name,
            )
        )
    return TagsChunk(tags=tuple(tags))


def _palette(body: Cursor, header: FileHeader) -> PaletteChunk:
    size = body.read_u32()
    first_index = body.read_u32()
    last_index = body.read_u32()
    body.ignore(8)
    colors = []
    for _ in range(first_index, last_index + 1):
        flags = body.read_u16()
        rgba = _read_rgba(body)
        if flags & PALETTE_FLAG_HAS_NAME:
            body.ignore_string()
        colors.append(rgba)
    return PaletteChunk(
        size=size,
        first_index=first_index,
        last_index=last_index,
        colors=tuple(colors),
    )


def _slice(body: Cursor, header: FileHeader) -> SliceChunk:
    count = body.read_u32()
    flags = body.read_u32()
    body.ignore(4)
    name = body.read_string()
    keys = []
    for _ in range(count):
        frame = body.read_u32()
        bounds = Rect(
            body.read_i32(), body.read_i32(), body.read_u32(), body.read_u32()
        )
        center = pivot = None
        if flags & SLICE_FLAG_NINE_PATCH:
            center = Rect(
                body.read_i32(),
                body.read_i32(),
                body.read_u32(),
                body.read_u32(),
            )
        if flags & SLICE_FLAG_PIVOT:
            pivot = Point(body.read_i32(), body.read_i32())
        keys.append(
            SliceKey(frame=frame, bounds=bounds, center=center, pivot=pivot)
        )
    return SliceChunk(name=name, flags=flags, keys=tuple(keys))


def _tileset(body: Cursor, header: FileHeader) -> TilesetChunk:
    id = body.read_u32()
    flags = body.read_u32()
    tile_count = body.read_u32()
    tile_width = body.read_u16()
    tile_height = body.read_u16()
    body.ignore(2 + 14)  # base index (UI only), reserved
    name = body.read_string()

    if flags & TILESET_FLAG_EXTERNAL:
        raise UnsupportedExternalTileset(
            f'Tileset "{name}" is in an external file (not supported)'
        )
    if not flags & TILESET_FLAG_EMBEDDED:
        raise MissingEmbeddedTilesetImage(
            f'Tileset "{name}" has no image in the file'
        )

    data = decompress(body.read_bytes(body.read_u32()))
    return TilesetChunk(
        id=id,
        flags=flags,
        tile_count=tile_count,
        tile_width=tile_width,
        tile_height=tile_height,
        name=name,
        data=data,
    )


def _user_data(body: Cursor, header: FileHeader) -> UserDataChunk:
    flags = body.read_u32()
    text = color = None
    if flags & USER_DATA_FLAG_TEXT:
        text = body.read_string()
    if flags & USER_DATA_FLAG_COLOR:
        color = _read_rgba(body)
    return UserDataChunk(text=text, color=color)


_DECODERS: Dict[ChunkType, Callable[[Cursor, FileHeader], Chunk]] = {
    ChunkType.LAYER: _layer,
    ChunkType.CEL: _cel,
    ChunkType.TAGS: _tags,
    ChunkType.PALETTE: _palette,
    ChunkType.SLICE: _slice,
    ChunkType.TILESET: _tileset,
    ChunkType.USER_DATA: _user_data,
}
