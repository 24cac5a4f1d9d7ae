"""
SVG path-data module.

Parses the path mini-language into absolute, typed commands and resolves
them into self-contained drawing segments.
"""

from svg_hpgl.path.commands import (
    COMMAND_ARITY,
    ArcTo,
    ClosePath,
    CubicCurveTo,
    HorizontalLineTo,
    LineTo,
    MoveTo,
    PathCommand,
    QuadraticCurveTo,
    SmoothCubicCurveTo,
    SmoothQuadraticCurveTo,
    VerticalLineTo,
)
from svg_hpgl.path.parser import (
    RawInstruction,
    format_path,
    key_instruction,
    parse_path,
    parse_path_syntax,
    to_absolute,
)
from svg_hpgl.path.segments import PathState, reflect, resolve_segments

__all__ = [
    "COMMAND_ARITY",
    "ArcTo",
    "ClosePath",
    "CubicCurveTo",
    "HorizontalLineTo",
    "LineTo",
    "MoveTo",
    "PathCommand",
    "QuadraticCurveTo",
    "SmoothCubicCurveTo",
    "SmoothQuadraticCurveTo",
    "VerticalLineTo",
    "RawInstruction",
    "format_path",
    "key_instruction",
    "parse_path",
    "parse_path_syntax",
    "to_absolute",
    "PathState",
    "reflect",
    "resolve_segments",
]
