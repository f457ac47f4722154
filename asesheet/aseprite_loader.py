# Pillow integration: .ase/.aseprite files as PIL images

from typing import IO, Optional

import PIL.Image  # type: ignore

from asesheet.atlas import Atlas
from asesheet.builder import read_document
from asesheet.compositor import flatten_frame


def image_from_rgba(buffer: bytes, width: int, height: int):
    return PIL.Image.frombytes(mode="RGBA", size=(width, height), data=buffer)


def image_from_ase(data: bytes, frame_index: int = 0, **kwargs):
    """Returns one flattened frame as an RGBA image.

    Extra keyword arguments are passed on to flatten_frame().
    """

    document = read_document(data)
    pixels = flatten_frame(document, frame_index, **kwargs)
    return image_from_rgba(pixels, document.width, document.height)


def atlas_image(atlas: Atlas):
    return image_from_rgba(atlas.pixels, atlas.width, atlas.height)


def _accept(prefix: bytes) -> bool:
    return prefix[4:6] == b"\xe0\xa5"  # header magic, little-endian


def open_factory(fp: Optional[IO], filename: Optional[str]):
    if fp:
        return image_from_ase(fp.read())
    else:
        assert filename is not None
        with open(filename, "rb") as fp:
            return image_from_ase(fp.read())


PIL.Image.register_open("ASE", open_factory, _accept)
PIL.Image.register_extensions("ASE", [".ase", ".aseprite"])
