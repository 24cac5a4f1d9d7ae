"""Program builder -- scene shapes to an HPGL instruction list.

All geometry (transform resolution, curve flattening, rounding) is
applied **here**; the resulting program carries integer plot
coordinates only.

Ordering
--------
The output order *is* the plot order and is fixed:

1. ``PA`` once.
2. For every pen selector, in declaration order, that matches at least
   one shape: ``SP<n>``, a bare ``PU``, the selector's extra command if
   any, then every matched shape.
3. Within a pen, shapes follow colour-group order (first-seen stroke
   colour first, document order inside a colour; for a colour list, the
   list's order).
4. Within a shape, instructions follow the shape's own geometry.

Every pen-down run starts with a positioned ``PU``.  A curve continuing
from the pen's current position does not repeat that ``PU``.

Resolution
----------
Arcs, circles, ellipses and rounded-rect corners use
``options.segments_per_unit``; Bézier curves are flattened adaptively at
``options.bezier_resolution`` (ten times finer).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence, Union

import numpy as np

from svg_hpgl.configs.loader import ConversionOptions, PenSelector, coerce_options, coerce_pens
from svg_hpgl.diagnostics import DiagnosticSink, Diagnostics
from svg_hpgl.geometry.flatten import (
    ellipse_perimeter,
    ellipse_points,
    flatten_arc,
    flatten_cubic,
    flatten_quadratic,
    segment_count,
)
from svg_hpgl.geometry.viewport import PlotTransform, resolve_transform
from svg_hpgl.path.parser import parse_path
from svg_hpgl.path.segments import (
    ArcSegment,
    CloseSegment,
    CubicSegment,
    LineSegment,
    MoveSegment,
    QuadraticSegment,
    resolve_segments,
)
from svg_hpgl.program.instructions import (
    HPGLProgram,
    PenDown,
    PenUp,
    PlotAbsolute,
    RawCommand,
    SelectPen,
)
from svg_hpgl.scene.reader import normalize_color
from svg_hpgl.scene.shapes import Scene, Shape, ShapeKind
from svg_hpgl.utils.logging_config import log_context

logger = logging.getLogger(__name__)

PenLike = Union[PenSelector, dict]


@dataclass
class ConversionResult:
    """Program plus the soft failures recorded while building it."""

    program: HPGLProgram
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


# ---------------------------------------------------------------------------
# Pen grouping
# ---------------------------------------------------------------------------


def grab_shapes_by_stroke(
    groups: dict[str, list[Shape]],
    selector: PenSelector,
) -> list[Shape]:
    """Shapes matched by one pen selector, in plot order.

    Parameters
    ----------
    groups : dict[str, list[Shape]]
        Stroke colour -> shapes, as from :meth:`Scene.stroked_shapes`.
    selector : PenSelector
        ``stroke: true`` takes every group; otherwise the listed colours
        are normalized and looked up in order.
    """
    colors = selector.colors()
    if colors is None:
        return [shape for shapes in groups.values() for shape in shapes]
    matched: list[Shape] = []
    for color in colors:
        matched.extend(groups.get(normalize_color(color), []))
    return matched


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class ProgramBuilder:
    """Convert scene shapes to HPGL instructions.

    Parameters
    ----------
    options : ConversionOptions
        Resolution and user transform.
    diagnostics : Diagnostics
        Collector for soft failures.

    Notes
    -----
    The builder tracks the physical pen position (last emitted
    coordinate) so that a curve starting where the pen already is
    continues with ``PD`` moves only.
    """

    def __init__(self, options: ConversionOptions, diagnostics: Diagnostics) -> None:
        self._opts = options
        self._diag = diagnostics
        self._program: HPGLProgram = []
        self._pen: tuple[int, int] | None = None
        self._tf = PlotTransform()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, scene: Scene, pens: Sequence[PenSelector]) -> HPGLProgram:
        """Build the complete program for *scene*.

        Parameters
        ----------
        scene : Scene
            Shapes to plot.
        pens : Sequence[PenSelector]
            Pen selectors in plot order.

        Returns
        -------
        HPGLProgram
            ``PA`` followed by one block per matching pen.
        """
        self._program = [PlotAbsolute()]
        groups = scene.stroked_shapes()

        for selector in pens:
            shapes = grab_shapes_by_stroke(groups, selector)
            if not shapes:
                logger.info("Pen %d: no matching shapes, skipped", selector.pen)
                continue

            logger.info("Pen %d: %d shape(s)", selector.pen, len(shapes))
            self._program.append(SelectPen(selector.pen))
            self._program.append(PenUp())
            if selector.cmd:
                self._program.append(RawCommand(selector.cmd))

            with log_context(pen=selector.pen):
                for shape in shapes:
                    self.add_shape(shape)

        return self._program

    def add_shape(self, shape: Shape) -> None:
        """Append one shape's instructions to the program."""
        start = len(self._program)
        self._pen = None
        self._tf = resolve_transform(
            shape.ancestry, self._opts, self._diag, shape.element_id,
        )

        if shape.kind is ShapeKind.LINE:
            self._gen_line(shape)
        elif shape.kind in (ShapeKind.POLYLINE, ShapeKind.POLYGON):
            self._gen_polyline(shape)
        elif shape.kind is ShapeKind.CIRCLE:
            self._gen_circle(shape)
        elif shape.kind is ShapeKind.ELLIPSE:
            self._gen_ellipse(shape)
        elif shape.kind is ShapeKind.RECT:
            self._gen_rect(shape)
        elif shape.kind is ShapeKind.PATH:
            self._gen_path(shape)
        else:
            logger.warning("Unsupported shape kind: %s", shape.kind)

        logger.debug(
            "%s%s: %d instruction(s)",
            shape.kind.value,
            f" #{shape.element_id}" if shape.element_id else "",
            len(self._program) - start,
        )

    # ------------------------------------------------------------------
    # Emission primitives
    # ------------------------------------------------------------------

    def _map(self, points) -> list[tuple[int, int]]:
        arr = np.asarray(points, dtype=float).reshape(-1, 2)
        if arr.shape[0] == 0:
            return []
        return [(int(x), int(y)) for x, y in self._tf.map_points(arr).tolist()]

    def _pen_up(self, pt: tuple[int, int]) -> None:
        self._program.append(PenUp(pt[0], pt[1]))
        self._pen = pt

    def _pen_down(self, pt: tuple[int, int]) -> None:
        self._program.append(PenDown(pt[0], pt[1]))
        self._pen = pt

    def _polyline(self, points) -> None:
        """PU at the first point, PD through the rest."""
        mapped = self._map(points)
        if not mapped:
            return
        self._pen_up(mapped[0])
        for pt in mapped[1:]:
            self._pen_down(pt)

    def _draw_from(self, polyline) -> None:
        """Continue drawing along *polyline* from its first point.

        The first point only produces a ``PU`` when the pen is not
        already there.
        """
        mapped = self._map(polyline)
        if len(mapped) < 2:
            return
        if self._pen != mapped[0]:
            self._pen_up(mapped[0])
        for pt in mapped[1:]:
            self._pen_down(pt)

    # ------------------------------------------------------------------
    # Per-kind generators
    # ------------------------------------------------------------------

    def _gen_line(self, shape: Shape) -> None:
        x1 = shape.attr("x1", self._diag)
        y1 = shape.attr("y1", self._diag)
        x2 = shape.attr("x2", self._diag)
        y2 = shape.attr("y2", self._diag)
        self._polyline([(x1, y1), (x2, y2)])

    def _gen_polyline(self, shape: Shape) -> None:
        points = list(shape.points)
        if shape.kind is ShapeKind.POLYGON and points:
            points.append(points[0])
        self._polyline(points)

    def _gen_circle(self, shape: Shape) -> None:
        cx = shape.attr("cx", self._diag)
        cy = shape.attr("cy", self._diag)
        r = shape.attr("r", self._diag)
        self._ellipse(cx, cy, r, r)

    def _gen_ellipse(self, shape: Shape) -> None:
        cx = shape.attr("cx", self._diag)
        cy = shape.attr("cy", self._diag)
        rx = shape.attr("rx", self._diag)
        ry = shape.attr("ry", self._diag)
        self._ellipse(cx, cy, rx, ry)

    def _ellipse(self, cx: float, cy: float, rx: float, ry: float) -> None:
        # Full revolution starting at the rightmost point
        segments = segment_count(self._opts.segments_per_unit, ellipse_perimeter(rx, ry))
        self._polyline(ellipse_points(cx, cy, rx, ry, 0.0, 2.0 * math.pi, segments))

    def _gen_rect(self, shape: Shape) -> None:
        x = shape.attr("x", self._diag)
        y = shape.attr("y", self._diag)
        w = shape.attr("width", self._diag)
        h = shape.attr("height", self._diag)
        attr_rx = shape.optional_attr("rx") or 0.0
        attr_ry = shape.optional_attr("ry") or 0.0
        rx = max(0.0, min(w / 2.0, attr_rx or attr_ry))
        ry = max(0.0, min(h / 2.0, attr_ry or attr_rx))

        if not rx or not ry:
            self._polyline([(x, y), (x + w, y), (x + w, y + h), (x, y + h), (x, y)])
            return

        segments = segment_count(self._opts.segments_per_unit, ellipse_perimeter(rx, ry) / 4.0)
        corners = [
            ellipse_points(x + rx, y + ry, rx, ry, math.pi, 1.5 * math.pi, segments),
            ellipse_points(x + w - rx, y + ry, rx, ry, 1.5 * math.pi, 2.0 * math.pi, segments),
            ellipse_points(x + w - rx, y + h - ry, rx, ry, 0.0, 0.5 * math.pi, segments),
            ellipse_points(x + rx, y + h - ry, rx, ry, 0.5 * math.pi, math.pi, segments),
            np.array([[x, y + ry]]),
        ]
        self._polyline(np.vstack(corners))

    def _gen_path(self, shape: Shape) -> None:
        if not shape.d or not shape.d.strip():
            return
        commands = parse_path(shape.d, self._diag)
        bez_res = self._opts.bezier_resolution
        arc_res = self._opts.segments_per_unit

        for seg in resolve_segments(commands):
            if isinstance(seg, MoveSegment):
                self._pen_up(self._map([seg.end])[0])
            elif isinstance(seg, (LineSegment, CloseSegment)):
                self._draw_from([seg.start, seg.end])
            elif isinstance(seg, CubicSegment):
                self._draw_from(
                    flatten_cubic(seg.start, seg.control1, seg.control2, seg.end, bez_res)
                )
            elif isinstance(seg, QuadraticSegment):
                self._draw_from(flatten_quadratic(seg.start, seg.control, seg.end, bez_res))
            elif isinstance(seg, ArcSegment):
                self._draw_from(
                    flatten_arc(
                        seg.start, seg.end, seg.rx, seg.ry, seg.rotation,
                        seg.large_arc, seg.sweep, arc_res,
                    )
                )


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def svg_to_hpgl(
    scene: Scene,
    pens: Optional[Iterable[PenLike]] = None,
    options: Union[ConversionOptions, dict, None] = None,
    diagnostics: Diagnostics | None = None,
) -> HPGLProgram:
    """Convert a scene into an HPGL program.

    Parameters
    ----------
    scene : Scene
        Shapes to plot (see :func:`svg_hpgl.scene.read_svg`).
    pens : Iterable[PenSelector | dict], optional
        Pen selectors in plot order.  Default: pen 1 for every stroke.
    options : ConversionOptions | dict, optional
        Resolution and user transform.  Default: identity, 1 segment/unit.
    diagnostics : Diagnostics, optional
        Receives soft-failure records.

    Returns
    -------
    HPGLProgram
        Instructions in plot order; serialize with
        :func:`svg_hpgl.program.serialize.build_hpgl`.

    Raises
    ------
    pydantic.ValidationError
        If a pen selector or the options are invalid.
    """
    selectors = coerce_pens(pens)
    opts = coerce_options(options)
    builder = ProgramBuilder(opts, diagnostics if diagnostics is not None else Diagnostics())
    return builder.build(scene, selectors)


def convert(
    scene: Scene,
    pens: Optional[Iterable[PenLike]] = None,
    options: Union[ConversionOptions, dict, None] = None,
    sink: DiagnosticSink | None = None,
) -> ConversionResult:
    """Like :func:`svg_to_hpgl`, returning the diagnostics alongside."""
    diagnostics = Diagnostics(sink)
    program = svg_to_hpgl(scene, pens, options, diagnostics)
    if diagnostics:
        logger.info("Conversion finished with %d warning(s)", len(diagnostics))
    return ConversionResult(program=program, diagnostics=diagnostics)
