"""
SVG to HPGL Package.

Converts SVG drawings into pen-plotter programs: every stroked shape is
placed through its viewport/transform chain, curves are flattened to
polylines and the result is emitted as absolute PU/PD moves grouped by
pen.

Subpackages:
    path: Path-data parser and segment resolution
    geometry: Affine matrices, viewports, curve flattening
    scene: Typed shape model and the SVG reader
    program: HPGL instructions, builder, serializer, inspection tools
    configs: Plot configuration loading and validation
    utils: Atomic file writes, YAML, logging setup

Usage::

    from svg_hpgl import read_svg, convert, build_hpgl
    result = convert(read_svg("drawing.svg"), pens=[{"pen": 1, "stroke": True}])
    text = build_hpgl(result.program)
"""

from svg_hpgl.configs.loader import ConversionOptions, PenSelector, load_config
from svg_hpgl.diagnostics import Diagnostic, DiagnosticKind, Diagnostics
from svg_hpgl.program.builder import ConversionResult, convert, svg_to_hpgl
from svg_hpgl.program.serialize import build_hpgl, parse_hpgl
from svg_hpgl.program.tools import find_bounding_box, program_to_svg, program_to_svg_paths
from svg_hpgl.scene.reader import read_svg, read_svg_string

__version__ = "0.1.0"

__all__ = [
    "ConversionOptions",
    "PenSelector",
    "load_config",
    "Diagnostic",
    "DiagnosticKind",
    "Diagnostics",
    "ConversionResult",
    "convert",
    "svg_to_hpgl",
    "build_hpgl",
    "parse_hpgl",
    "find_bounding_box",
    "program_to_svg",
    "program_to_svg_paths",
    "read_svg",
    "read_svg_string",
]
