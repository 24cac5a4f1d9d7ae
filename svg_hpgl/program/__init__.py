"""
Program module.

HPGL instruction types, the scene-to-program builder, text
serialization and program inspection tools.
"""

from svg_hpgl.program.builder import (
    ConversionResult,
    ProgramBuilder,
    convert,
    grab_shapes_by_stroke,
    svg_to_hpgl,
)
from svg_hpgl.program.instructions import (
    HPGLProgram,
    Instruction,
    PenDown,
    PenUp,
    PlotAbsolute,
    RawCommand,
    SelectPen,
    split_strokes,
)
from svg_hpgl.program.serialize import HPGLSyntaxError, build_hpgl, parse_hpgl
from svg_hpgl.program.tools import (
    BoundingBox,
    find_bounding_box,
    program_to_svg,
    program_to_svg_paths,
)

__all__ = [
    "ConversionResult",
    "ProgramBuilder",
    "convert",
    "grab_shapes_by_stroke",
    "svg_to_hpgl",
    "HPGLProgram",
    "Instruction",
    "PenDown",
    "PenUp",
    "PlotAbsolute",
    "RawCommand",
    "SelectPen",
    "split_strokes",
    "HPGLSyntaxError",
    "build_hpgl",
    "parse_hpgl",
    "BoundingBox",
    "find_bounding_box",
    "program_to_svg",
    "program_to_svg_paths",
]
