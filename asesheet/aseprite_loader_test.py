import io

import PIL.Image  # type: ignore

from asesheet import aseprite_loader
from asesheet.atlas import pack_frames
from asesheet.fake_ase import FakeAse, rgba

RED = (255, 0, 0, 255)
BLUE = (0, 0, 255, 255)


def _sprite():
    ase = FakeAse(2, 1).layer("a")
    ase.image_cel(0, 1, 1, rgba(RED))
    ase.frame().image_cel(0, 1, 1, rgba(BLUE), x=1)
    return bytes(ase)


def test_image_from_ase():
    image = aseprite_loader.image_from_ase(_sprite())
    assert image.mode == "RGBA"
    assert image.size == (2, 1)
    assert image.getpixel((0, 0)) == RED

    image = aseprite_loader.image_from_ase(_sprite(), frame_index=1)
    assert image.getpixel((0, 0)) == (0, 0, 0, 0)
    assert image.getpixel((1, 0)) == BLUE


def test_atlas_image():
    atlas = pack_frames([rgba(RED), rgba(BLUE)], [1, 1], 1, 1)
    image = aseprite_loader.atlas_image(atlas)
    assert image.size == (2, 1)
    assert image.getpixel((1, 0)) == BLUE


def test_pillow_open():
    with PIL.Image.open(io.BytesIO(_sprite())) as image:
        assert image.size == (2, 1)
        assert image.getpixel((0, 0)) == RED
