# Extraction of tilemap layers as grids of tile references

import logging
from typing import List, Tuple

import attr

from asesheet.cursor import AsepriteError
from asesheet.document import (
    Document,
    Frame,
    Point,
    Tile,
    TilemapCel,
    Tileset,
)

logger = logging.getLogger(__name__)


class DuplicateLayerName(AsepriteError):
    pass


@attr.frozen
class TileLayer:
    name: str
    tileset_id: int
    columns: int
    rows: int
    tiles: Tuple[Tile, ...] = attr.ib(repr=False)
    offset: Point = Point(0, 0)

    def tile_at(self, column: int, row: int) -> Tile:
        if not (0 <= column < self.columns and 0 <= row < self.rows):
            raise IndexError(f"({column}, {row}) not in {self.name!r}")
        return self.tiles[row * self.columns + column]


@attr.frozen
class Tilemap:
    name: str
    layers: Tuple[TileLayer, ...]
    tilesets: Tuple[Tileset, ...]


@attr.frozen
class TilemapFrame:
    duration: int  # milliseconds
    layers: Tuple[TileLayer, ...]


@attr.frozen
class AnimatedTilemap:
    name: str
    frames: Tuple[TilemapFrame, ...]
    tilesets: Tuple[Tileset, ...]


def _frame_layers(
    frame: Frame, tilesets: List[Tileset], only_visible: bool
) -> List[TileLayer]:
    layers: List[TileLayer] = []
    for cel in frame.cels:
        if not isinstance(cel, TilemapCel):
            continue
        if only_visible and not cel.layer.visible:
            continue

        name = cel.layer.name
        if any(layer.name == name for layer in layers):
            raise DuplicateLayerName(f'Duplicate tilemap layer "{name}"')
        tileset = cel.tileset
        if not any(t is tileset for t in tilesets):
            tilesets.append(tileset)
        layers.append(
            TileLayer(
                name=name,
                tileset_id=tileset.id,
                columns=cel.columns,
                rows=cel.rows,
                tiles=cel.tiles,
                offset=Point(cel.x, cel.y),
            )
        )
    return layers


def extract_tilemap(
    document: Document, frame_index: int, only_visible: bool = True
) -> Tilemap:
    """Collects the tilemap cels of one frame, in layer order.

    Each tileset used by those cels is listed once.
    """

    tilesets: List[Tileset] = []
    frame = document.frames[frame_index]
    layers = _frame_layers(frame, tilesets, only_visible)
    logger.debug(
        f"Tilemap F{frame_index}: {len(layers)} layers"
        f" {len(tilesets)} tilesets"
    )
    return Tilemap(
        name=document.name, layers=tuple(layers), tilesets=tuple(tilesets)
    )


def extract_animated_tilemap(
    document: Document, only_visible: bool = True
) -> AnimatedTilemap:
    """Like extract_tilemap() for every frame, keeping frame durations.

    Tilesets are listed once for the whole document, in first-use order.
    """

    tilesets: List[Tileset] = []
    frames = [
        TilemapFrame(
            duration=frame.duration,
            layers=tuple(_frame_layers(frame, tilesets, only_visible)),
        )
        for frame in document.frames
    ]
    logger.debug(
        f'Animated tilemap "{document.name}": {len(frames)}fr'
        f" {len(tilesets)} tilesets"
    )
    return AnimatedTilemap(
        name=document.name, frames=tuple(frames), tilesets=tuple(tilesets)
    )
