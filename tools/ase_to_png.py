#!/usr/bin/env python3

import argparse
from pathlib import Path

from asesheet import aseprite_loader, builder, compositor, logging_setup

parser = argparse.ArgumentParser()
parser.add_argument("ase_file", type=Path, help="File to convert")
parser.add_argument("png_file", type=Path, nargs="?", help="Output file")
parser.add_argument("--frame", type=int, default=0, help="Frame to convert")
parser.add_argument("--all", action="store_true", help="Convert all frames")
parser.add_argument("--hidden", action="store_true", help="Include hidden")
parser.add_argument("--background", action="store_true", help="Include BG")
parser.add_argument("--debug", action="store_true", help="Debug logging")
args = parser.parse_args()
if args.debug:
    logging_setup.enable_debug()

doc = builder.load_document(args.ase_file)
out_path = args.png_file or args.ase_file.with_suffix(".png")
indexes = range(len(doc.frames)) if args.all else [args.frame]
for index in indexes:
    pixels = compositor.flatten_frame(
        doc,
        index,
        only_visible=not args.hidden,
        include_background=args.background,
    )
    image = aseprite_loader.image_from_rgba(pixels, doc.width, doc.height)
    path = out_path
    if args.all:
        path = out_path.with_name(f"{out_path.stem}.{index}{out_path.suffix}")
    print(f"F{index} => {path}")
    image.save(path)
