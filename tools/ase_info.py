#!/usr/bin/env python3

import argparse
from typing import List

from asesheet import builder, logging_setup
from asesheet.document import (
    GroupLayer,
    ImageCel,
    Layer,
    TilemapCel,
    TilemapLayer,
)

parser = argparse.ArgumentParser()
parser.add_argument("ase_file", help="File to describe")
parser.add_argument("--debug", action="store_true", help="Debug logging")
args = parser.parse_args()
if args.debug:
    logging_setup.enable_debug()

print(f"=== Loading: {args.ase_file}")
doc = builder.load_document(args.ase_file)
print()


def rgba_text(color):
    return "(" + ",".join(str(c) for c in color) + ")"


def user_data_text(user_data):
    if not user_data:
        return ""
    parts: List[str] = []
    if user_data.text is not None:
        parts.append(repr(user_data.text))
    if user_data.color is not None:
        parts.append(f"rgba={rgba_text(user_data.color)}")
    return f" {{{' '.join(parts)}}}"


def layer_flags(layer: Layer):
    found = [
        name
        for flag, name in (
            (layer.visible, "vis"),
            (layer.background, "bg"),
            (layer.reference, "ref"),
        )
        if flag
    ]
    return ",".join(found)


def print_layer(layer: Layer, depth: int):
    if isinstance(layer, GroupLayer):
        typ = "Group"
    elif isinstance(layer, TilemapLayer):
        typ = f"Tilemap(tileset=#{layer.tileset.id})"
    else:
        typ = "Image"
    index = doc.layers.index(layer)
    print(
        f"   {' ->' * depth}"
        f" L{index}: {typ}"
        f" blend={layer.blend_mode.name.lower()}"
        f" opacity={layer.opacity}"
        f" [{layer_flags(layer)}]"
        f' "{layer.name}"{user_data_text(layer.user_data)}'
    )
    if isinstance(layer, GroupLayer):
        for child in layer.children:
            print_layer(child, depth + 1)


print(
    f"=== File:"
    f" {doc.width}x{doc.height}px"
    f" (px={doc.pixel_width}x{doc.pixel_height})"
    f" {doc.color_depth.name}"
    f" ({len(doc.palette.colors)}col"
    f" tr=#{doc.palette.transparent_index})"
    f" {len(doc.frames)}fr{user_data_text(doc.user_data)}"
)

print(f"--- Layers: {len(doc.layers)}")
for layer in doc.root_layers:
    print_layer(layer, 0)

for fi, frame in enumerate(doc.frames):
    print(f"--- Frame F{fi}: t={frame.duration}msec cels={len(frame.cels)}")
    for cel in frame.cels:
        linked = [
            pi
            for pi, prev in enumerate(doc.frames[:fi])
            if any(c is cel for c in prev.cels)
        ]
        if linked:
            print(f'    Linked: "{cel.layer.name}" -> F{linked[0]}')
            continue
        if isinstance(cel, TilemapCel):
            size = f"{cel.columns}x{cel.rows} tiles"
        elif isinstance(cel, ImageCel):
            size = f"{cel.width}x{cel.height}px"
        else:
            size = "?"
        print(
            f'    Cel: "{cel.layer.name}" {size}'
            f" pos=({cel.x},{cel.y}) opacity={cel.opacity}"
            f"{user_data_text(cel.user_data)}"
        )

if doc.tags:
    print(f"--- Tags: {len(doc.tags)}")
    for tag in doc.tags:
        print(
            f'    "{tag.name}": F{tag.from_frame}-F{tag.to_frame}'
            f" {tag.direction.name.lower()}"
            f" repeat={tag.repeat or 'forever'}"
            f" rgba={rgba_text(tag.color)}"
            f"{user_data_text(tag.user_data)}"
        )

if doc.slices:
    print(f"--- Slices: {len(doc.slices)}")
    for slice in doc.slices:
        print(f'    "{slice.name}"{user_data_text(slice.user_data)}')
        for key in slice.keys:
            b = key.bounds
            extra = ""
            if key.center:
                c = key.center
                extra += f" center=({c.x},{c.y} {c.width}x{c.height})"
            if key.pivot:
                extra += f" pivot=({key.pivot.x},{key.pivot.y})"
            print(
                f"      F{key.frame}: ({b.x},{b.y} {b.width}x{b.height})"
                f"{extra}"
            )

if doc.tilesets:
    print(f"--- Tilesets: {len(doc.tilesets)}")
    for tileset in doc.tilesets:
        print(
            f'    #{tileset.id} "{tileset.name}":'
            f" {tileset.tile_count} tiles"
            f" {tileset.tile_width}x{tileset.tile_height}px"
            f"{user_data_text(tileset.user_data)}"
        )

print()
