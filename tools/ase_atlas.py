#!/usr/bin/env python3

import argparse
import json
from pathlib import Path

import attr
import cattr

from asesheet import aseprite_loader, atlas, builder, config, logging_setup

parser = argparse.ArgumentParser()
parser.add_argument("ase_file", type=Path, help="File to pack")
parser.add_argument("--config", type=Path, help="TOML file with [atlas]")
parser.add_argument("--output", type=Path, help="Output base (no suffix)")
parser.add_argument("--sheet", choices=[t.value for t in config.SheetType])
parser.add_argument("--border", type=int, help="Border padding (px)")
parser.add_argument("--spacing", type=int, help="Spacing between frames")
parser.add_argument("--inner", type=int, help="Padding around each frame")
parser.add_argument("--no-merge", action="store_true", help="Keep dupes")
parser.add_argument("--debug", action="store_true", help="Debug logging")
args = parser.parse_args()
if args.debug:
    logging_setup.enable_debug()

options = config.AtlasOptions()
if args.config:
    options = config.load_options(args.config)
overrides = {
    "sheet_type": args.sheet and config.SheetType(args.sheet),
    "border_padding": args.border,
    "spacing": args.spacing,
    "inner_padding": args.inner,
    "merge_duplicates": False if args.no_merge else None,
}
options = attr.evolve(
    options, **{k: v for k, v in overrides.items() if v is not None}
)

doc = builder.load_document(args.ase_file)
sheet = atlas.pack_atlas(doc, options)
out_base = args.output or args.ase_file.with_suffix("")

png_path = out_base.with_suffix(".png")
aseprite_loader.atlas_image(sheet).save(png_path)

converter = cattr.Converter()
table = {
    "image": png_path.name,
    "size": [sheet.width, sheet.height],
    "frames": converter.unstructure(sheet.regions),
    "animations": converter.unstructure(sheet.animations),
    "slices": converter.unstructure(sheet.slices),
}
json_path = out_base.with_suffix(".json")
with open(json_path, "w") as json_file:
    json.dump(table, json_file, indent=2)

print(
    f"{len(doc.frames)}fr => {png_path} ({sheet.width}x{sheet.height}px)"
    f" + {json_path}"
)
