# In-memory representation of a decoded .aseprite file (see builder.py)
#
# Everything here is created once while decoding and is read-only
# afterwards. Entities (layers, cels, frames, tilesets) compare by
# identity, since linked cels alias the cel object of an earlier frame.

import enum
from typing import Dict, List, Optional, Tuple

import attr

from asesheet.blend import BlendMode
from asesheet.colors import ColorDepth, Rgba


@attr.frozen
class Point:
    x: int
    y: int


@attr.frozen
class Rect:
    x: int
    y: int
    width: int
    height: int


@attr.frozen
class UserData:
    text: Optional[str] = None
    color: Optional[Rgba] = None


class LoopDirection(enum.IntEnum):
    FORWARD = 0
    REVERSE = 1
    PING_PONG = 2
    PING_PONG_REVERSE = 3


@attr.frozen
class Palette:
    colors: Tuple[Rgba, ...] = ()
    transparent_index: int = 0


@attr.frozen(eq=False)
class Tileset:
    id: int
    tile_count: int
    tile_width: int
    tile_height: int
    name: str
    pixels: bytes = attr.ib(repr=False)
    user_data: Optional[UserData] = None

    @property
    def width(self) -> int:
        return self.tile_width

    @property
    def height(self) -> int:
        return self.tile_height * self.tile_count

    def tile(self, index: int) -> bytes:
        """Returns the RGBA32 pixels of one tile."""
        if not 0 <= index < self.tile_count:
            raise IndexError(f"Tile {index} not in {self.name!r}")
        size = self.tile_width * self.tile_height * 4
        return self.pixels[index * size : (index + 1) * size]


@attr.frozen(eq=False, kw_only=True)
class Layer:
    name: str
    visible: bool = True
    background: bool = False
    reference: bool = False
    blend_mode: BlendMode = BlendMode.NORMAL
    opacity: int = 255
    child_level: int = 0
    user_data: Optional[UserData] = None


@attr.frozen(eq=False, kw_only=True)
class ImageLayer(Layer):
    pass


@attr.frozen(eq=False, kw_only=True)
class GroupLayer(Layer):
    # Filled in while later layers are decoded
    children: List[Layer] = attr.ib(factory=list, repr=False)


@attr.frozen(eq=False, kw_only=True)
class TilemapLayer(Layer):
    tileset: Tileset = attr.ib(repr=lambda t: repr(t.name))


@attr.frozen
class Tile:
    tile_id: int
    x_flip: bool = False
    y_flip: bool = False
    rotate_90: bool = False


@attr.frozen(eq=False, kw_only=True)
class Cel:
    layer: Layer = attr.ib(repr=lambda layer: repr(layer.name))
    x: int = 0
    y: int = 0
    opacity: int = 255
    user_data: Optional[UserData] = None


@attr.frozen(eq=False, kw_only=True)
class ImageCel(Cel):
    width: int
    height: int
    pixels: bytes = attr.ib(repr=False)


@attr.frozen(eq=False, kw_only=True)
class TilemapCel(Cel):
    columns: int
    rows: int
    tiles: Tuple[Tile, ...] = attr.ib(repr=False)

    @property
    def tileset(self) -> Tileset:
        assert isinstance(self.layer, TilemapLayer)
        return self.layer.tileset


@attr.frozen(eq=False)
class Frame:
    width: int
    height: int
    duration: int
    cels: Tuple[Cel, ...] = ()


@attr.frozen
class Tag:
    from_frame: int
    to_frame: int
    direction: LoopDirection
    name: str
    chunk_color: Rgba = (0, 0, 0, 255)
    repeat: int = 0
    user_data: Optional[UserData] = None

    @property
    def color(self) -> Rgba:
        if self.user_data and self.user_data.color is not None:
            return self.user_data.color
        return self.chunk_color


@attr.frozen
class SliceKey:
    frame: int
    bounds: Rect
    center: Optional[Rect] = None
    pivot: Optional[Point] = None


@attr.frozen
class Slice:
    name: str
    keys: Tuple[SliceKey, ...]
    nine_patch: bool = False
    has_pivot: bool = False
    user_data: Optional[UserData] = None


@attr.frozen(eq=False)
class Document:
    width: int
    height: int
    color_depth: ColorDepth
    palette: Palette
    frames: Tuple[Frame, ...]
    layers: Tuple[Layer, ...]
    tags: Tuple[Tag, ...] = ()
    slices: Tuple[Slice, ...] = ()
    tilesets: Tuple[Tileset, ...] = ()
    name: str = ""
    pixel_width: int = 1
    pixel_height: int = 1
    user_data: Optional[UserData] = None

    @property
    def root_layers(self) -> List[Layer]:
        # Taken from the tree, so over-nested orphans are still roots
        nested = {
            id(child)
            for layer in self.layers
            if isinstance(layer, GroupLayer)
            for child in layer.children
        }
        return [layer for layer in self.layers if id(layer) not in nested]

    def layer(self, name: str) -> Layer:
        return _by_name(self.layers, name, "layer")

    def tag(self, name: str) -> Tag:
        return _by_name(self.tags, name, "tag")

    def slice(self, name: str) -> Slice:
        return _by_name(self.slices, name, "slice")

    def tileset(self, id: int) -> Tileset:
        by_id: Dict[int, Tileset] = {t.id: t for t in self.tilesets}
        if id not in by_id:
            raise KeyError(f"No tileset #{id}")
        return by_id[id]


def _by_name(items, name: str, what: str):
    for item in items:
        if item.name == name:
            return item
    raise KeyError(f'No {what} named "{name}"')
