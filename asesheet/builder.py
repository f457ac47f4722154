# Assembly of decoded chunk records into an immutable Document

import enum
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import attr

from asesheet import chunks
from asesheet.colors import TRANSPARENT, InvalidBufferLength, Rgba, to_rgba
from asesheet.cursor import Cursor
from asesheet.document import (
    Cel,
    Document,
    Frame,
    GroupLayer,
    ImageCel,
    ImageLayer,
    Layer,
    Palette,
    Slice,
    Tag,
    TilemapCel,
    TilemapLayer,
    Tileset,
    UserData,
)

logger = logging.getLogger(__name__)


class PendingUserDataTarget(enum.Enum):
    """What a USER_DATA chunk arriving now would decorate."""

    NONE = enum.auto()
    LAYER = enum.auto()
    CEL = enum.auto()
    LINKED_CEL = enum.auto()
    TAGS = enum.auto()
    SLICE = enum.auto()
    TILESET = enum.auto()
    SPRITE = enum.auto()


class DocumentBuilder:
    """Accumulates chunks in file order; build() returns the Document.

    Call begin_frame() before each frame's chunks and end_frame() after.
    """

    def __init__(self, header: chunks.FileHeader, name: str = ""):
        self.header = header
        self.name = name
        self.frames: List[Frame] = []
        self.layers: List[Layer] = []
        self.tags: List[Tag] = []
        self.slices: List[Slice] = []
        self.tilesets: List[Tileset] = []
        self.colors: List[Rgba] = []
        self.user_data: Optional[UserData] = None

        self.pending = PendingUserDataTarget.NONE
        self.next_tag = 0
        self._groups: List[GroupLayer] = []  # open groups, by nesting level
        self._parent: Optional[GroupLayer] = None  # of the last layer
        self._frame: Optional[chunks.FrameHeader] = None
        self._cels: List[Cel] = []

    def begin_frame(self, frame_header: chunks.FrameHeader):
        assert self._frame is None, "begin_frame() without end_frame()"
        self._frame = frame_header
        self._cels = []
        self.pending = PendingUserDataTarget.NONE

    def end_frame(self):
        assert self._frame is not None, "end_frame() without begin_frame()"
        self.frames.append(
            Frame(
                width=self.header.width,
                height=self.header.height,
                duration=self._frame.duration,
                cels=tuple(self._cels),
            )
        )
        self._frame = None

    def add(self, chunk: Optional[chunks.Chunk]):
        """Applies one chunk; None (a skipped chunk type) changes nothing."""

        if chunk is None:
            return
        if isinstance(chunk, chunks.UserDataChunk):
            self._add_user_data(chunk)
        elif isinstance(chunk, chunks.LayerChunk):
            self._add_layer(chunk)
            self.pending = PendingUserDataTarget.LAYER
        elif isinstance(chunk, chunks.LinkedCelChunk):
            self._add_linked_cel(chunk)
            self.pending = PendingUserDataTarget.LINKED_CEL
        elif isinstance(
            chunk, (chunks.ImageCelChunk, chunks.TilemapCelChunk)
        ):
            self._add_cel(chunk)
            self.pending = PendingUserDataTarget.CEL
        elif isinstance(chunk, chunks.TagsChunk):
            self._add_tags(chunk)
        elif isinstance(chunk, chunks.PaletteChunk):
            self._add_palette(chunk)
            first_frame = not self.frames
            self.pending = (
                PendingUserDataTarget.SPRITE
                if first_frame
                else PendingUserDataTarget.NONE
            )
        elif isinstance(chunk, chunks.SliceChunk):
            self._add_slice(chunk)
            self.pending = PendingUserDataTarget.SLICE
        elif isinstance(chunk, chunks.TilesetChunk):
            self._add_tileset(chunk)
            self.pending = PendingUserDataTarget.TILESET
        else:
            raise TypeError(f"Unexpected chunk {chunk!r}")

    def build(self) -> Document:
        assert self._frame is None, "build() inside a frame"
        logger.debug(
            f'Built "{self.name}": {len(self.frames)}fr'
            f" {len(self.layers)} layers {len(self.tags)} tags"
            f" {len(self.slices)} slices {len(self.tilesets)} tilesets"
        )
        return Document(
            width=self.header.width,
            height=self.header.height,
            color_depth=self.header.color_depth,
            palette=Palette(
                colors=tuple(self.colors),
                transparent_index=self.header.transparent_index,
            ),
            frames=tuple(self.frames),
            layers=tuple(self.layers),
            tags=tuple(self.tags),
            slices=tuple(self.slices),
            tilesets=tuple(self.tilesets),
            name=self.name,
            pixel_width=self.header.pixel_width,
            pixel_height=self.header.pixel_height,
            user_data=self.user_data,
        )

    def _pixels(self, data: bytes, width: int, height: int, what: str):
        expected = width * height * self.header.color_depth.bytes_per_pixel
        if len(data) != expected:
            raise InvalidBufferLength(
                f"{what}: {len(data)}b for {width}x{height}px"
                f" (expected {expected}b)"
            )
        return to_rgba(
            data,
            self.header.color_depth,
            self.colors,
            self.header.transparent_index,
        )

    def _add_layer(self, chunk: chunks.LayerChunk):
        common: Dict[str, Any] = dict(
            name=chunk.name,
            visible=bool(chunk.flags & chunks.LAYER_FLAG_VISIBLE),
            background=bool(chunk.flags & chunks.LAYER_FLAG_BACKGROUND),
            reference=bool(chunk.flags & chunks.LAYER_FLAG_REFERENCE),
            blend_mode=chunk.blend_mode,
            opacity=chunk.opacity,
            child_level=chunk.child_level,
        )

        layer: Layer
        if chunk.layer_type == chunks.LayerType.GROUP:
            layer = GroupLayer(**common)
        elif chunk.layer_type == chunks.LayerType.TILEMAP:
            assert chunk.tileset_index is not None
            tileset = self._tileset_by_id().get(chunk.tileset_index)
            if tileset is None:
                raise chunks.InvalidFieldValue(
                    f'Layer "{chunk.name}" uses missing tileset'
                    f" #{chunk.tileset_index}"
                )
            layer = TilemapLayer(tileset=tileset, **common)
        else:
            layer = ImageLayer(**common)

        # Nesting level N means the child of the open group at level N-1
        del self._groups[chunk.child_level :]
        self._parent = (
            self._groups[-1] if chunk.child_level and self._groups else None
        )
        if self._parent is not None:
            self._parent.children.append(layer)
        if isinstance(layer, GroupLayer):
            self._groups.append(layer)
        self.layers.append(layer)

    def _replace_last_layer(self, layer: Layer):
        old = self.layers[-1]
        self.layers[-1] = layer
        if self._parent is not None:
            self._parent.children[-1] = layer
        if self._groups and self._groups[-1] is old:
            assert isinstance(layer, GroupLayer)
            self._groups[-1] = layer

    def _cel_layer(self, layer_index: int) -> Layer:
        if layer_index >= len(self.layers):
            raise chunks.InvalidFieldValue(
                f"Cel on layer L{layer_index}, only {len(self.layers)} layers"
            )
        return self.layers[layer_index]

    def _add_cel(
        self, chunk: Union[chunks.ImageCelChunk, chunks.TilemapCelChunk]
    ):
        layer = self._cel_layer(chunk.layer_index)
        cel: Cel
        if isinstance(chunk, chunks.TilemapCelChunk):
            if not isinstance(layer, TilemapLayer):
                raise chunks.InvalidFieldValue(
                    f'Tilemap cel on non-tilemap layer "{layer.name}"'
                )
            if len(chunk.tiles) != chunk.columns * chunk.rows:
                raise InvalidBufferLength(
                    f"{len(chunk.tiles)} tiles for"
                    f" {chunk.columns}x{chunk.rows} tilemap"
                )
            for tile in chunk.tiles:
                if tile.tile_id >= layer.tileset.tile_count:
                    raise chunks.InvalidFieldValue(
                        f"Tile #{tile.tile_id} not in tileset"
                        f' "{layer.tileset.name}"'
                    )
            cel = TilemapCel(
                layer=layer,
                x=chunk.x,
                y=chunk.y,
                opacity=chunk.opacity,
                columns=chunk.columns,
                rows=chunk.rows,
                tiles=chunk.tiles,
            )
        else:
            cel = ImageCel(
                layer=layer,
                x=chunk.x,
                y=chunk.y,
                opacity=chunk.opacity,
                width=chunk.width,
                height=chunk.height,
                pixels=self._pixels(
                    chunk.data, chunk.width, chunk.height, f'"{layer.name}"'
                ),
            )
        self._cels.append(cel)

    def _add_linked_cel(self, chunk: chunks.LinkedCelChunk):
        # Linked cels match by arrival position within the frame
        position = len(self._cels)
        if chunk.frame_index >= len(self.frames):
            raise chunks.InvalidFieldValue(
                f"Cel links to F{chunk.frame_index},"
                f" only {len(self.frames)} frames so far"
            )
        target = self.frames[chunk.frame_index]
        if position >= len(target.cels):
            raise chunks.InvalidFieldValue(
                f"Cel #{position} links to F{chunk.frame_index},"
                f" which has {len(target.cels)} cels"
            )
        self._cels.append(target.cels[position])

    def _add_tags(self, chunk: chunks.TagsChunk):
        self.next_tag = len(self.tags)
        for entry in chunk.tags:
            self.tags.append(
                Tag(
                    from_frame=entry.from_frame,
                    to_frame=entry.to_frame,
                    direction=entry.direction,
                    name=entry.name,
                    chunk_color=entry.color,
                    repeat=entry.repeat,
                )
            )
        self.pending = (
            PendingUserDataTarget.TAGS
            if chunk.tags
            else PendingUserDataTarget.NONE
        )

    def _add_palette(self, chunk: chunks.PaletteChunk):
        size = max(len(self.colors), chunk.size, chunk.last_index + 1)
        self.colors.extend([TRANSPARENT] * (size - len(self.colors)))
        for offset, color in enumerate(chunk.colors):
            self.colors[chunk.first_index + offset] = color

    def _add_slice(self, chunk: chunks.SliceChunk):
        self.slices.append(
            Slice(
                name=chunk.name,
                keys=chunk.keys,
                nine_patch=bool(chunk.flags & chunks.SLICE_FLAG_NINE_PATCH),
                has_pivot=bool(chunk.flags & chunks.SLICE_FLAG_PIVOT),
            )
        )

    def _add_tileset(self, chunk: chunks.TilesetChunk):
        pixels = self._pixels(
            chunk.data,
            chunk.tile_width,
            chunk.tile_height * chunk.tile_count,
            f'Tileset "{chunk.name}"',
        )
        self.tilesets.append(
            Tileset(
                id=chunk.id,
                tile_count=chunk.tile_count,
                tile_width=chunk.tile_width,
                tile_height=chunk.tile_height,
                name=chunk.name,
                pixels=pixels,
            )
        )

    def _tileset_by_id(self) -> Dict[int, Tileset]:
        return {tileset.id: tileset for tileset in self.tilesets}

    def _add_user_data(self, chunk: chunks.UserDataChunk):
        data = UserData(text=chunk.text, color=chunk.color)
        pending = self.pending
        self.pending = PendingUserDataTarget.NONE

        if pending == PendingUserDataTarget.LAYER:
            layer = attr.evolve(self.layers[-1], user_data=data)
            self._replace_last_layer(layer)
        elif pending == PendingUserDataTarget.CEL:
            self._cels[-1] = attr.evolve(self._cels[-1], user_data=data)
        elif pending == PendingUserDataTarget.LINKED_CEL:
            logger.debug("Ignoring user data on linked cel")
        elif pending == PendingUserDataTarget.TAGS:
            index = self.next_tag
            self.tags[index] = attr.evolve(self.tags[index], user_data=data)
            self.next_tag += 1
            if self.next_tag < len(self.tags):
                self.pending = PendingUserDataTarget.TAGS
        elif pending == PendingUserDataTarget.SLICE:
            self.slices[-1] = attr.evolve(self.slices[-1], user_data=data)
        elif pending == PendingUserDataTarget.TILESET:
            self.tilesets[-1] = attr.evolve(self.tilesets[-1], user_data=data)
        elif pending == PendingUserDataTarget.SPRITE:
            self.user_data = data
        else:
            logger.warning(f"Ignoring user data with no target ({data})")


def read_document(data: bytes, name: str = "") -> Document:
    """Decodes a complete .aseprite file held in memory."""

    cursor = Cursor(data)
    header = chunks.read_header(cursor)
    logger.debug(
        f"Header: {header.width}x{header.height}px"
        f" {header.color_depth.name} {header.frame_count}fr"
    )

    builder = DocumentBuilder(header, name=name)
    for frame_header, frame_chunks in chunks.read_frames(cursor, header):
        builder.begin_frame(frame_header)
        for chunk in frame_chunks:
            builder.add(chunk)
        builder.end_frame()
    return builder.build()


def load_document(path: Union[str, Path]) -> Document:
    path = Path(path)
    return read_document(path.read_bytes(), name=path.stem)
