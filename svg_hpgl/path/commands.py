"""Path commands -- the typed vocabulary of SVG path data.

Every path-data command is an immutable, slotted dataclass carrying
exactly the coordinates its letter defines.  The ``relative`` flag
records whether the source used the lower-case form; the parser's
output contract is that every command it returns is absolute
(``relative=False``).

Coordinate naming
-----------------
Fields whose name starts with ``x`` are horizontal positions and fields
starting with ``y`` are vertical positions.  Both are offset by the
current point during relative-to-absolute resolution.  Arc radii
(``rx``, ``ry``) and rotation are *not* positions and are never offset.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, fields
from typing import ClassVar

# ---------------------------------------------------------------------------
# Argument arity per command letter
# ---------------------------------------------------------------------------

COMMAND_ARITY: dict[str, int] = {
    "M": 2,
    "L": 2,
    "H": 1,
    "V": 1,
    "C": 6,
    "S": 4,
    "Q": 4,
    "T": 2,
    "A": 7,
    "Z": 0,
}
"""Number of values consumed by one argument group of each command."""


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PathCommand(ABC):
    """Base class for all path commands."""

    letter: ClassVar[str] = ""

    @classmethod
    def x_fields(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls) if f.name.startswith("x"))

    @classmethod
    def y_fields(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls) if f.name.startswith("y"))

    def values(self) -> tuple[float, ...]:
        """Argument values in path-data order (flags as 0/1)."""
        return tuple(
            float(getattr(self, f.name))
            for f in fields(self)
            if f.name != "relative"
        )


# ---------------------------------------------------------------------------
# Line commands
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MoveTo(PathCommand):
    """Start a new subpath at ``(x, y)`` without drawing."""

    letter: ClassVar[str] = "M"

    x: float
    y: float
    relative: bool = False


@dataclass(frozen=True, slots=True)
class LineTo(PathCommand):
    """Straight line to ``(x, y)``."""

    letter: ClassVar[str] = "L"

    x: float
    y: float
    relative: bool = False


@dataclass(frozen=True, slots=True)
class HorizontalLineTo(PathCommand):
    """Horizontal line to ``x``; the y coordinate is the current point's."""

    letter: ClassVar[str] = "H"

    x: float
    relative: bool = False


@dataclass(frozen=True, slots=True)
class VerticalLineTo(PathCommand):
    """Vertical line to ``y``; the x coordinate is the current point's."""

    letter: ClassVar[str] = "V"

    y: float
    relative: bool = False


# ---------------------------------------------------------------------------
# Curve commands
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CubicCurveTo(PathCommand):
    """Cubic Bézier with control points ``(x1, y1)``, ``(x2, y2)``."""

    letter: ClassVar[str] = "C"

    x1: float
    y1: float
    x2: float
    y2: float
    x: float
    y: float
    relative: bool = False


@dataclass(frozen=True, slots=True)
class SmoothCubicCurveTo(PathCommand):
    """Cubic Bézier whose first control point is implied.

    The implied point is the reflection of the previous ``C``/``S``
    command's second control point through the current point, or the
    current point itself when the previous command was anything else.
    """

    letter: ClassVar[str] = "S"

    x2: float
    y2: float
    x: float
    y: float
    relative: bool = False


@dataclass(frozen=True, slots=True)
class QuadraticCurveTo(PathCommand):
    """Quadratic Bézier with control point ``(x1, y1)``."""

    letter: ClassVar[str] = "Q"

    x1: float
    y1: float
    x: float
    y: float
    relative: bool = False


@dataclass(frozen=True, slots=True)
class SmoothQuadraticCurveTo(PathCommand):
    """Quadratic Bézier whose control point is implied (see ``T``)."""

    letter: ClassVar[str] = "T"

    x: float
    y: float
    relative: bool = False


@dataclass(frozen=True, slots=True)
class ArcTo(PathCommand):
    """Elliptical arc to ``(x, y)``.

    Parameters
    ----------
    rx, ry : float
        Ellipse radii (enlarged during flattening if too small).
    rotation : float
        X-axis rotation of the ellipse in degrees.
    large_arc, sweep : bool
        SVG ``large-arc-flag`` and ``sweep-flag``.
    x, y : float
        Arc end point.
    """

    letter: ClassVar[str] = "A"

    rx: float
    ry: float
    rotation: float
    large_arc: bool
    sweep: bool
    x: float
    y: float
    relative: bool = False

    @classmethod
    def x_fields(cls) -> tuple[str, ...]:
        return ("x",)

    @classmethod
    def y_fields(cls) -> tuple[str, ...]:
        return ("y",)


@dataclass(frozen=True, slots=True)
class ClosePath(PathCommand):
    """Close the current subpath.  Never relative, moves no cursor."""

    letter: ClassVar[str] = "Z"

    relative: bool = False


COMMAND_TYPES: dict[str, type[PathCommand]] = {
    cls.letter: cls
    for cls in (
        MoveTo,
        LineTo,
        HorizontalLineTo,
        VerticalLineTo,
        CubicCurveTo,
        SmoothCubicCurveTo,
        QuadraticCurveTo,
        SmoothQuadraticCurveTo,
        ArcTo,
        ClosePath,
    )
}
