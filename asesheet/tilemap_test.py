import pytest

from asesheet.builder import read_document
from asesheet.document import Point
from asesheet.fake_ase import TILE_Y_FLIP, FakeAse, rgba
from asesheet.tilemap import (
    DuplicateLayerName,
    extract_animated_tilemap,
    extract_tilemap,
)

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


def _two_maps(second_name="top", second_flags=1):
    ase = FakeAse(4, 4)
    ase.tileset(0, 1, 1, rgba(RED, BLUE), name="ground")
    ase.tileset(1, 1, 1, rgba(BLUE), name="props")
    ase.layer("art")
    ase.layer("floor", layer_type=2, tileset_index=0)
    ase.layer(second_name, layer_type=2, tileset_index=1, flags=second_flags)
    ase.image_cel(0, 1, 1, rgba(RED))
    ase.tilemap_cel(1, 3, 1, [0, 1, 1 | TILE_Y_FLIP], x=-2, y=1)
    ase.tilemap_cel(2, 1, 1, [0])
    return read_document(bytes(ase), name="level")


def test_extract_tilemap():
    tilemap = extract_tilemap(_two_maps(), 0)
    assert tilemap.name == "level"
    assert [t.name for t in tilemap.tilesets] == ["ground", "props"]

    floor, top = tilemap.layers
    assert floor.name == "floor" and floor.tileset_id == 0
    assert (floor.columns, floor.rows) == (3, 1)
    assert floor.offset == Point(-2, 1)
    assert [tile.tile_id for tile in floor.tiles] == [0, 1, 1]
    assert floor.tile_at(2, 0).y_flip
    with pytest.raises(IndexError):
        floor.tile_at(0, 1)
    assert top.tileset_id == 1


def test_hidden_layers():
    doc = _two_maps(second_flags=0)
    assert [layer.name for layer in extract_tilemap(doc, 0).layers] == [
        "floor"
    ]
    tilemap = extract_tilemap(doc, 0, only_visible=False)
    assert len(tilemap.layers) == 2


def test_duplicate_layer_names():
    with pytest.raises(DuplicateLayerName):
        extract_tilemap(_two_maps(second_name="floor"), 0)


def test_extract_animated_tilemap():
    ase = FakeAse(4, 4).frame(duration=50)
    ase.tileset(0, 1, 1, rgba(RED, BLUE), name="ground")
    ase.layer("floor", layer_type=2, tileset_index=0)
    ase.layer("top", layer_type=2, tileset_index=0)
    ase.tilemap_cel(0, 2, 1, [0, 1]).tilemap_cel(1, 1, 1, [1])
    ase.frame(duration=200).tilemap_cel(0, 2, 1, [1, 0])
    ase.frame(duration=75)
    animated = extract_animated_tilemap(read_document(bytes(ase), "anim"))

    assert animated.name == "anim"
    assert [t.name for t in animated.tilesets] == ["ground"]
    assert [f.duration for f in animated.frames] == [50, 200, 75]
    first, second, third = animated.frames
    assert [layer.name for layer in first.layers] == ["floor", "top"]
    assert [t.tile_id for t in second.layers[0].tiles] == [1, 0]
    assert second.layers[0].name == "floor" and len(second.layers) == 1
    assert third.layers == ()


def test_animated_duplicate_layer_names():
    with pytest.raises(DuplicateLayerName):
        extract_animated_tilemap(_two_maps(second_name="floor"))
