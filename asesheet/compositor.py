# Flattening of a frame's cels into one canvas-sized RGBA buffer

import logging
from typing import List

from asesheet.blend import BlendMode, blend, mul_un8
from asesheet.document import Document, ImageCel, TilemapCel

logger = logging.getLogger(__name__)


def flatten_frame(
    document: Document,
    frame_index: int,
    only_visible: bool = True,
    include_background: bool = False,
    include_tilemaps: bool = True,
) -> bytes:
    """Returns the RGBA pixels of one frame with all its cels blended.

    Cels are drawn in file order, each with its layer's blend mode and
    the product of cel and layer opacity. Cel pixels that land outside
    the canvas are dropped.
    """

    frame = document.frames[frame_index]
    canvas = bytearray(frame.width * frame.height * 4)
    for cel in frame.cels:
        layer = cel.layer
        if only_visible and not layer.visible:
            continue
        if layer.background and not include_background:
            continue

        if isinstance(cel, TilemapCel):
            if not include_tilemaps:
                continue
            pixels = render_tilemap_cel(cel)
            width = cel.columns * cel.tileset.tile_width
            height = cel.rows * cel.tileset.tile_height
        elif isinstance(cel, ImageCel):
            pixels, width, height = cel.pixels, cel.width, cel.height
        else:
            continue

        _draw(
            canvas=canvas,
            canvas_width=frame.width,
            canvas_height=frame.height,
            pixels=pixels,
            width=width,
            height=height,
            x=cel.x,
            y=cel.y,
            mode=layer.blend_mode,
            opacity=mul_un8(cel.opacity, layer.opacity),
        )

    return bytes(canvas)


def flatten_all(document: Document, **kwargs) -> List[bytes]:
    """Flattens every frame, with the same options as flatten_frame()."""

    frames = [
        flatten_frame(document, index, **kwargs)
        for index in range(len(document.frames))
    ]
    logger.debug(f'Flattened "{document.name}": {len(frames)}fr')
    return frames


def render_tilemap_cel(cel: TilemapCel) -> bytes:
    """Lays out a tilemap cel's tiles into one RGBA buffer.

    Flip and rotation flags are kept on each Tile but not applied here.
    """

    tileset = cel.tileset
    tile_w, tile_h = tileset.tile_width, tileset.tile_height
    row_size = cel.columns * tile_w * 4
    out = bytearray(row_size * cel.rows * tile_h)
    for index, tile in enumerate(cel.tiles):
        column, row = index % cel.columns, index // cel.columns
        pixels = tileset.tile(tile.tile_id)
        for ty in range(tile_h):
            start = (row * tile_h + ty) * row_size + column * tile_w * 4
            out[start : start + tile_w * 4] = pixels[
                ty * tile_w * 4 : (ty + 1) * tile_w * 4
            ]
    return bytes(out)


def _draw(
    *,
    canvas: bytearray,
    canvas_width: int,
    canvas_height: int,
    pixels: bytes,
    width: int,
    height: int,
    x: int,
    y: int,
    mode: BlendMode,
    opacity: int,
):
    # Clip columns and rows separately so nothing wraps to another row
    x_start, x_end = max(0, -x), min(width, canvas_width - x)
    y_start, y_end = max(0, -y), min(height, canvas_height - y)
    for sy in range(y_start, y_end):
        for sx in range(x_start, x_end):
            si = (sy * width + sx) * 4
            di = ((y + sy) * canvas_width + x + sx) * 4
            r, g, b, a = pixels[si : si + 4]
            br, bg, bb, ba = canvas[di : di + 4]
            canvas[di : di + 4] = bytes(
                blend(mode, (br, bg, bb, ba), (r, g, b, a), opacity)
            )
