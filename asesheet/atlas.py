# Packing of flattened frames into a single sprite sheet texture

import logging
import math
from typing import Dict, List, Sequence, Set, Tuple

import attr

from asesheet.colors import Rgba
from asesheet.compositor import flatten_all
from asesheet.config import AtlasOptions, SheetType
from asesheet.cursor import AsepriteError
from asesheet.document import Document, LoopDirection, Rect, Slice, SliceKey

logger = logging.getLogger(__name__)

SLICE_DEFAULT_COLOR: Rgba = (255, 255, 255, 255)


class DuplicateTagName(AsepriteError):
    pass


class DuplicateSliceName(AsepriteError):
    pass


@attr.frozen
class FrameRegion:
    frame_index: int
    rect: Rect
    duration: int


@attr.frozen
class Animation:
    name: str
    frames: Tuple[FrameRegion, ...]
    direction: LoopDirection
    repeat: int = 0
    color: Rgba = (0, 0, 0, 255)


@attr.frozen
class AtlasSlice:
    name: str
    color: Rgba
    keys: Dict[int, SliceKey]  # one per frame from the first key on


@attr.frozen
class Atlas:
    pixels: bytes = attr.ib(repr=False)
    width: int
    height: int
    regions: List[FrameRegion]
    animations: List[Animation] = attr.ib(factory=list)
    slices: List[AtlasSlice] = attr.ib(factory=list)


def pack_atlas(document: Document, options: AtlasOptions) -> Atlas:
    """Flattens every frame of document and packs them into one texture."""

    buffers = flatten_all(
        document,
        only_visible=options.only_visible_layers,
        include_background=options.include_background,
        include_tilemaps=options.include_tilemaps,
    )
    atlas = pack_frames(
        buffers,
        durations=[frame.duration for frame in document.frames],
        frame_width=document.width,
        frame_height=document.height,
        options=options,
    )
    return attr.evolve(
        atlas,
        animations=build_animations(document, atlas.regions),
        slices=build_slices(document),
    )


def pack_frames(
    buffers: Sequence[bytes],
    durations: Sequence[int],
    frame_width: int,
    frame_height: int,
    options: AtlasOptions = AtlasOptions(),
) -> Atlas:
    """Arranges same-size RGBA frame buffers on a grid.

    With merge_duplicates, a frame whose pixels exactly match an earlier
    frame is not placed again; its region reuses the earlier rectangle
    (but keeps its own duration).
    """

    if len(buffers) != len(durations):
        raise ValueError(
            f"{len(buffers)} frame buffers but {len(durations)} durations"
        )
    frame_size = frame_width * frame_height * 4
    for index, buffer in enumerate(buffers):
        if len(buffer) != frame_size:
            raise ValueError(
                f"Frame {index} is {len(buffer)}b,"
                f" expected {frame_width}x{frame_height}px"
            )

    first_seen: Dict[bytes, int] = {}
    unique: List[int] = []  # buffer index of each placed frame
    placement: List[int] = []  # position in unique, per frame
    for index, buffer in enumerate(buffers):
        if options.merge_duplicates:
            if buffer in first_seen:
                placement.append(first_seen[buffer])
                continue
            first_seen[buffer] = len(unique)
        placement.append(len(unique))
        unique.append(index)

    count = len(unique)
    if options.sheet_type == SheetType.HORIZONTAL:
        columns, rows = count, min(count, 1)
    elif options.sheet_type == SheetType.VERTICAL:
        columns, rows = min(count, 1), count
    else:
        columns = math.ceil(math.sqrt(count))
        rows = math.ceil(count / columns) if columns else 0

    border, spacing = options.border_padding, options.spacing
    inner = options.inner_padding
    width = (
        columns * frame_width
        + 2 * border
        + spacing * max(0, columns - 1)
        + 2 * inner * columns
    )
    height = (
        rows * frame_height
        + 2 * border
        + spacing * max(0, rows - 1)
        + 2 * inner * rows
    )

    rects: List[Rect] = []
    pixels = bytearray(width * height * 4)
    row_size = frame_width * 4
    for position, index in enumerate(unique):
        column, row = position % columns, position // columns
        x = column * frame_width + border + spacing * column
        x += inner + 2 * inner * column
        y = row * frame_height + border + spacing * row
        y += inner + 2 * inner * row
        rects.append(Rect(x, y, frame_width, frame_height))

        buffer = buffers[index]
        for fy in range(frame_height):
            start = ((y + fy) * width + x) * 4
            pixels[start : start + row_size] = buffer[
                fy * row_size : (fy + 1) * row_size
            ]

    regions = [
        FrameRegion(frame_index=index, rect=rects[place], duration=duration)
        for index, (place, duration) in enumerate(zip(placement, durations))
    ]
    logger.debug(
        f"Packed {len(buffers)}fr ({len(buffers) - count} duplicates)"
        f" into {columns}x{rows} grid, {width}x{height}px"
    )
    return Atlas(
        pixels=bytes(pixels), width=width, height=height, regions=regions
    )


def build_animations(
    document: Document, regions: Sequence[FrameRegion]
) -> List[Animation]:
    """Returns one Animation per tag, with that tag's frame regions."""

    animations: List[Animation] = []
    names: Set[str] = set()
    for tag in document.tags:
        if tag.name in names:
            raise DuplicateTagName(f'Duplicate tag name "{tag.name}"')
        names.add(tag.name)
        animations.append(
            Animation(
                name=tag.name,
                frames=tuple(regions[tag.from_frame : tag.to_frame + 1]),
                direction=tag.direction,
                repeat=tag.repeat,
                color=tag.color,
            )
        )
    return animations


def build_slices(document: Document) -> List[AtlasSlice]:
    slices: List[AtlasSlice] = []
    names: Set[str] = set()
    for slice in document.slices:
        if slice.name in names:
            raise DuplicateSliceName(f'Duplicate slice name "{slice.name}"')
        names.add(slice.name)
        color = SLICE_DEFAULT_COLOR
        if slice.user_data and slice.user_data.color is not None:
            color = slice.user_data.color
        slices.append(
            AtlasSlice(
                name=slice.name,
                color=color,
                keys=interpolate_slice_keys(slice, len(document.frames)),
            )
        )
    return slices


def interpolate_slice_keys(
    slice: Slice, frame_count: int
) -> Dict[int, SliceKey]:
    """Returns a key for every frame from the slice's first key onward.

    A frame without its own key gets a copy of the most recent earlier
    key with the frame number changed; the last key carries through the
    final frame.
    """

    keys = sorted(slice.keys, key=lambda k: k.frame)
    filled: Dict[int, SliceKey] = {}
    for index, key in enumerate(keys):
        if index + 1 < len(keys):
            end = keys[index + 1].frame
        else:
            end = max(frame_count, key.frame + 1)
        filled[key.frame] = key
        for frame in range(key.frame + 1, end):
            filled[frame] = attr.evolve(key, frame=frame)
    return filled
