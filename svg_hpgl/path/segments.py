"""Resolve absolute path commands into self-contained drawing segments.

Path commands depend on carried state: ``H``/``V`` need the current
point, curves start at it, and the smooth variants ``S``/``T`` imply a
control point from the previous command.  :class:`PathState` holds that
state explicitly and :func:`resolve_segments` threads it through the
command list, so that every yielded segment carries all of its points
and the flattener can stay stateless per curve.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Union

from svg_hpgl.path.commands import (
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

Point = tuple[float, float]


def reflect(point: Point, through: Point) -> Point:
    """Point reflection of *point* through *through*: ``2*through - point``."""
    return (2.0 * through[0] - point[0], 2.0 * through[1] - point[1])


# ---------------------------------------------------------------------------
# Segments
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MoveSegment:
    end: Point


@dataclass(frozen=True, slots=True)
class LineSegment:
    start: Point
    end: Point


@dataclass(frozen=True, slots=True)
class CubicSegment:
    start: Point
    control1: Point
    control2: Point
    end: Point


@dataclass(frozen=True, slots=True)
class QuadraticSegment:
    start: Point
    control: Point
    end: Point


@dataclass(frozen=True, slots=True)
class ArcSegment:
    start: Point
    rx: float
    ry: float
    rotation: float
    large_arc: bool
    sweep: bool
    end: Point


@dataclass(frozen=True, slots=True)
class CloseSegment:
    """Straight line from the current point back to the path's origin."""

    start: Point
    end: Point


Segment = Union[
    MoveSegment,
    LineSegment,
    CubicSegment,
    QuadraticSegment,
    ArcSegment,
    CloseSegment,
]


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class PathState:
    """Cursor and smooth-curve bookkeeping for one path.

    Parameters
    ----------
    current : Point
        Most recent absolute end point (``Z`` does not move it).
    close_target : Point
        Where ``Z`` draws back to: the path's initial ``M`` point, or
        the origin when the path does not start with ``M``.
    previous : str
        Letter of the previously processed command (``""`` at start).
    cubic_control : Point | None
        Second control point of the previous ``C``/``S``.
    quadratic_control : Point | None
        Control point of the previous ``Q``/``T``; persists across a run
        of consecutive ``T`` commands.
    """

    current: Point = (0.0, 0.0)
    close_target: Point = (0.0, 0.0)
    previous: str = ""
    cubic_control: Point | None = None
    quadratic_control: Point | None = field(default=None)

    def smooth_cubic_control(self) -> Point:
        """Implied first control point for an ``S`` command."""
        if self.previous in ("C", "S") and self.cubic_control is not None:
            return reflect(self.cubic_control, self.current)
        return self.current

    def smooth_quadratic_control(self) -> Point:
        """Implied control point for a ``T`` command."""
        if self.previous in ("Q", "T") and self.quadratic_control is not None:
            return reflect(self.quadratic_control, self.current)
        return self.current

    def step(self, cmd: PathCommand) -> Segment:
        """Resolve *cmd* into a segment and advance the state."""
        cur = self.current
        segment: Segment

        if isinstance(cmd, MoveTo):
            segment = MoveSegment(end=(cmd.x, cmd.y))
        elif isinstance(cmd, LineTo):
            segment = LineSegment(start=cur, end=(cmd.x, cmd.y))
        elif isinstance(cmd, HorizontalLineTo):
            segment = LineSegment(start=cur, end=(cmd.x, cur[1]))
        elif isinstance(cmd, VerticalLineTo):
            segment = LineSegment(start=cur, end=(cur[0], cmd.y))
        elif isinstance(cmd, CubicCurveTo):
            segment = CubicSegment(
                start=cur,
                control1=(cmd.x1, cmd.y1),
                control2=(cmd.x2, cmd.y2),
                end=(cmd.x, cmd.y),
            )
            self.cubic_control = (cmd.x2, cmd.y2)
        elif isinstance(cmd, SmoothCubicCurveTo):
            segment = CubicSegment(
                start=cur,
                control1=self.smooth_cubic_control(),
                control2=(cmd.x2, cmd.y2),
                end=(cmd.x, cmd.y),
            )
            self.cubic_control = (cmd.x2, cmd.y2)
        elif isinstance(cmd, QuadraticCurveTo):
            segment = QuadraticSegment(
                start=cur, control=(cmd.x1, cmd.y1), end=(cmd.x, cmd.y),
            )
            self.quadratic_control = (cmd.x1, cmd.y1)
        elif isinstance(cmd, SmoothQuadraticCurveTo):
            control = self.smooth_quadratic_control()
            segment = QuadraticSegment(start=cur, control=control, end=(cmd.x, cmd.y))
            self.quadratic_control = control
        elif isinstance(cmd, ArcTo):
            segment = ArcSegment(
                start=cur,
                rx=cmd.rx,
                ry=cmd.ry,
                rotation=cmd.rotation,
                large_arc=cmd.large_arc,
                sweep=cmd.sweep,
                end=(cmd.x, cmd.y),
            )
        elif isinstance(cmd, ClosePath):
            segment = CloseSegment(start=cur, end=self.close_target)
        else:
            raise TypeError(f"Not a path command: {cmd!r}")

        if not isinstance(segment, CloseSegment):
            self.current = segment.end
        self.previous = cmd.letter
        return segment


def resolve_segments(commands: list[PathCommand]) -> Iterator[Segment]:
    """Yield one resolved segment per absolute command.

    Parameters
    ----------
    commands : list[PathCommand]
        Absolute commands, as returned by
        :func:`~svg_hpgl.path.parser.parse_path`.
    """
    state = PathState()
    if commands and isinstance(commands[0], MoveTo):
        state.close_target = (commands[0].x, commands[0].y)
    for cmd in commands:
        yield state.step(cmd)
