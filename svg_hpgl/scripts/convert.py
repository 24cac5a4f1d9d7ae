#!/usr/bin/env python3
"""
Convert Script.

Convert an SVG drawing into an HPGL program for a pen plotter.

Usage:
    python -m svg_hpgl.scripts.convert drawing.svg -o drawing.hpgl
    python -m svg_hpgl.scripts.convert drawing.svg -c plot.yaml --scale 40 -o out.hpgl
    python -m svg_hpgl.scripts.convert drawing.svg --list-colors
    python -m svg_hpgl.scripts.convert drawing.svg --svg-preview check.svg --padding 0.05

Options given on the command line override the ``options`` section of
the configuration file.  Without ``-o`` the program is written to stdout.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from svg_hpgl.configs.loader import ConfigError, ConversionOptions, load_config
from svg_hpgl.diagnostics import Diagnostics
from svg_hpgl.program.builder import svg_to_hpgl
from svg_hpgl.program.serialize import build_hpgl
from svg_hpgl.program.tools import find_bounding_box, program_to_svg
from svg_hpgl.scene.reader import SceneError, read_svg
from svg_hpgl.utils.fs import atomic_write_text
from svg_hpgl.utils.logging_config import install_excepthook, push_context, setup_logging

logger = logging.getLogger(__name__)

# ConversionOptions fields settable from the command line
OPTION_FLAGS = ("segments_per_unit", "scale", "rotation", "offset_x", "offset_y")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="svg-hpgl",
        description="Convert an SVG drawing to HPGL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input", type=str, help="SVG file to convert")
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Plot configuration file (default: bundled plot.yaml)",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        help="HPGL output file (default: stdout)",
    )

    # Conversion overrides
    parser.add_argument(
        "--segments-per-unit",
        type=float,
        help="Curve resolution in segments per document unit",
    )
    parser.add_argument("--scale", type=float, help="Uniform scale into plotter units")
    parser.add_argument("--rotation", type=float, help="Clockwise rotation in degrees")
    parser.add_argument("--offset-x", type=float, help="X offset in document units")
    parser.add_argument("--offset-y", type=float, help="Y offset in document units")
    parser.add_argument(
        "--mirror-x",
        action="store_true",
        default=None,
        help="Mirror around the Y axis",
    )
    parser.add_argument(
        "--mirror-y",
        action="store_true",
        default=None,
        help="Mirror around the X axis",
    )

    # Inspection
    parser.add_argument(
        "--svg-preview",
        type=str,
        help="Also write the program back out as SVG for checking",
    )
    parser.add_argument(
        "--padding",
        type=float,
        default=0.0,
        help="Relative padding around the preview (e.g. 0.05)",
    )
    parser.add_argument(
        "--list-colors",
        action="store_true",
        help="Print the stroke colours found in the drawing and exit",
    )
    parser.add_argument(
        "--bbox",
        action="store_true",
        help="Print the program's bounding box as JSON on stderr",
    )

    # Logging
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level")
    parser.add_argument("--log-file", type=str, help="Also log to this file")
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Write the log file as JSON lines",
    )
    parser.add_argument(
        "--log-rotate",
        choices=("size", "time"),
        help="Rotate the log file by size or daily",
    )
    parser.add_argument(
        "--log-max-bytes",
        type=int,
        default=10_000_000,
        help="Size limit per log file with --log-rotate size",
    )
    parser.add_argument(
        "--log-backups",
        type=int,
        default=5,
        help="Rotated log files to keep",
    )
    return parser


def _options_from_args(base: ConversionOptions, args: argparse.Namespace) -> ConversionOptions:
    overrides: dict[str, Any] = {}
    for name in OPTION_FLAGS:
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    if args.mirror_x:
        overrides["mirror_x"] = True
    if args.mirror_y:
        overrides["mirror_y"] = True
    if not overrides:
        return base
    return ConversionOptions.model_validate({**base.model_dump(), **overrides})


def _rotation_from_args(args: argparse.Namespace) -> Optional[dict[str, Any]]:
    if args.log_rotate is None:
        return None
    if args.log_rotate == "size":
        return {"mode": "size", "max_bytes": args.log_max_bytes, "backup_count": args.log_backups}
    return {"mode": "time", "when": "D", "interval": 1, "backup_count": args.log_backups}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(
        args.log_level,
        args.log_file,
        json=args.log_json,
        rotate=_rotation_from_args(args),
        context={"app": "convert"},
    )
    install_excepthook()
    push_context(input=args.input)

    # Load config
    try:
        config = load_config(args.config)
        options = _options_from_args(config.options, args)
    except (ConfigError, FileNotFoundError, ValidationError) as e:
        logger.error("Error loading config: %s", e)
        return 1

    # Read drawing
    diagnostics = Diagnostics()
    try:
        scene = read_svg(args.input, diagnostics)
    except (SceneError, FileNotFoundError) as e:
        logger.error("Error reading %s: %s", args.input, e)
        return 1

    if args.list_colors:
        for color in scene.stroke_colors():
            print(color)
        return 0

    program = svg_to_hpgl(scene, config.pens, options, diagnostics)
    text = build_hpgl(program, config.output.prefix, config.output.suffix)

    try:
        if args.output:
            atomic_write_text(args.output, text)
            logger.info("HPGL written to: %s", args.output)
        else:
            sys.stdout.write(text + "\n")

        if args.svg_preview:
            atomic_write_text(args.svg_preview, program_to_svg(program, padding=args.padding))
            logger.info("Preview written to: %s", args.svg_preview)
    except RuntimeError as e:
        logger.error("%s", e)
        return 1

    if args.bbox:
        print(json.dumps(find_bounding_box(program).as_dict()), file=sys.stderr)

    logger.info(
        "Program contains %d instructions (%d warning(s))",
        len(program), len(diagnostics),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
