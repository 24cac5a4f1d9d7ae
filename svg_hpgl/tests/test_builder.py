"""Tests for the scene-to-program builder.

Scenes are built directly from :class:`Shape` records so that each test
controls geometry, stroke and ancestry without going through XML.
"""

from __future__ import annotations

import math

import pytest

from svg_hpgl.configs.loader import ConversionOptions, PenSelector
from svg_hpgl.diagnostics import Diagnostic, DiagnosticKind, Diagnostics
from svg_hpgl.geometry.flatten import ellipse_perimeter, segment_count
from svg_hpgl.geometry.viewport import Rect, ViewportFrame
from svg_hpgl.program.builder import convert, grab_shapes_by_stroke, svg_to_hpgl
from svg_hpgl.program.instructions import (
    PenDown,
    PenUp,
    PlotAbsolute,
    RawCommand,
    SelectPen,
)
from svg_hpgl.scene.shapes import Scene, Shape, ShapeKind

BLACK = "rgb(0, 0, 0)"
RED = "rgb(255, 0, 0)"
BLUE = "rgb(0, 0, 255)"

ROOT = (ViewportFrame(Rect(0.0, 0.0, 100.0, 100.0)),)
HEADER = [PlotAbsolute(), SelectPen(1), PenUp()]


def _shape(kind: ShapeKind, stroke: str = BLACK, **kwargs) -> Shape:
    kwargs.setdefault("ancestry", ROOT)
    return Shape(kind=kind, stroke=stroke, **kwargs)


def _line(x1, y1, x2, y2, stroke: str = BLACK, element_id: str | None = None) -> Shape:
    return _shape(
        ShapeKind.LINE,
        stroke,
        attrs={"x1": x1, "y1": y1, "x2": x2, "y2": y2},
        element_id=element_id,
    )


def _body(shape: Shape, **options) -> list:
    """Instructions emitted for *shape* after the pen header."""
    program = svg_to_hpgl(Scene((shape,)), options=options or None)
    assert program[:3] == HEADER
    return program[3:]


def _pen_downs(body: list) -> list:
    return [ins for ins in body if isinstance(ins, PenDown)]


# ---------------------------------------------------------------------------
# Basic shapes
# ---------------------------------------------------------------------------


class TestBasicShapes:
    def test_line(self) -> None:
        program = svg_to_hpgl(Scene((_line(1.0, 2.0, 3.0, 4.0),)))
        assert program == HEADER + [PenUp(1, 2), PenDown(3, 4)]

    def test_polyline_stays_open(self) -> None:
        shape = _shape(ShapeKind.POLYLINE, points=((0.0, 0.0), (10.0, 0.0), (10.0, 10.0)))
        assert _body(shape) == [PenUp(0, 0), PenDown(10, 0), PenDown(10, 10)]

    def test_polygon_closes(self) -> None:
        shape = _shape(ShapeKind.POLYGON, points=((0.0, 0.0), (10.0, 0.0), (10.0, 10.0)))
        assert _body(shape) == [PenUp(0, 0), PenDown(10, 0), PenDown(10, 10), PenDown(0, 0)]

    def test_empty_polyline_draws_nothing(self) -> None:
        assert _body(_shape(ShapeKind.POLYLINE)) == []

    @pytest.mark.parametrize("resolution", [0.0, -1.0])
    def test_non_positive_resolution_keeps_two_segments(self, resolution: float) -> None:
        circle = _shape(ShapeKind.CIRCLE, attrs={"cx": 0.0, "cy": 0.0, "r": 10.0})
        assert _body(circle, segments_per_unit=resolution) == [
            PenUp(10, 0),
            PenDown(-10, 0),
            PenDown(10, 0),
        ]
        curve = _shape(ShapeKind.PATH, d="M0,0 C0,10 10,10 10,0")
        assert _body(curve, segments_per_unit=resolution) == [PenUp(0, 0), PenDown(10, 0)]

    def test_rect_outline(self) -> None:
        shape = _shape(ShapeKind.RECT, attrs={"x": 1.0, "y": 2.0, "width": 10.0, "height": 5.0})
        assert _body(shape) == [
            PenUp(1, 2),
            PenDown(11, 2),
            PenDown(11, 7),
            PenDown(1, 7),
            PenDown(1, 2),
        ]

    def test_rounded_rect(self) -> None:
        shape = _shape(
            ShapeKind.RECT,
            attrs={"x": 0.0, "y": 0.0, "width": 40.0, "height": 20.0, "rx": 5.0},
        )
        body = _body(shape)
        assert body[0] == PenUp(0, 5)
        assert body[-1] == PenDown(0, 5)
        for ins in body:
            assert 0 <= ins.x <= 40
            assert 0 <= ins.y <= 20
        # Straight top edge between the two upper corners
        assert PenDown(5, 0) in body and PenDown(35, 0) in body

    def test_rounded_rect_radius_is_clamped(self) -> None:
        shape = _shape(
            ShapeKind.RECT,
            attrs={"x": 0.0, "y": 0.0, "width": 10.0, "height": 10.0, "rx": 50.0},
        )
        body = _body(shape)
        assert body[0] == PenUp(0, 5)
        assert max(ins.x for ins in body) == 10

    def test_circle(self) -> None:
        shape = _shape(ShapeKind.CIRCLE, attrs={"cx": 50.0, "cy": 50.0, "r": 10.0})
        body = _body(shape)
        assert body[0] == PenUp(60, 50)
        assert body[-1] == PenDown(60, 50)
        expected = segment_count(1.0, 2.0 * math.pi * 10.0)
        assert len(_pen_downs(body)) == expected == 63

    def test_ellipse_segments_follow_perimeter(self) -> None:
        shape = _shape(
            ShapeKind.ELLIPSE, attrs={"cx": 0.0, "cy": 0.0, "rx": 20.0, "ry": 10.0},
        )
        body = _body(shape, segments_per_unit=0.5)
        assert body[0] == PenUp(20, 0)
        assert len(_pen_downs(body)) == segment_count(0.5, ellipse_perimeter(20.0, 10.0))
        assert max(ins.y for ins in body) == 10
        assert min(ins.x for ins in body) == -20

    def test_missing_attribute_reads_zero(self) -> None:
        diagnostics = Diagnostics()
        shape = _shape(ShapeKind.CIRCLE, attrs={"cx": 5.0, "cy": 5.0}, element_id="c")
        program = svg_to_hpgl(Scene((shape,)), diagnostics=diagnostics)
        records = diagnostics.of_kind(DiagnosticKind.MISSING_ATTRIBUTE)
        assert len(records) == 1
        assert "'r'" in records[0].message
        assert records[0].element_id == "c"
        assert set(program[3:]) == {PenUp(5, 5), PenDown(5, 5)}


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------


class TestPaths:
    def _path(self, d: str, **options) -> list:
        return _body(_shape(ShapeKind.PATH, d=d), **options)

    def test_closed_path(self) -> None:
        assert self._path("M10,10 L20,10 Z") == [
            PenUp(10, 10),
            PenDown(20, 10),
            PenDown(10, 10),
        ]

    def test_subpaths_start_with_pen_up(self) -> None:
        assert self._path("M0,0 L5,0 M10,10 L20,10") == [
            PenUp(0, 0),
            PenDown(5, 0),
            PenUp(10, 10),
            PenDown(20, 10),
        ]

    def test_path_without_move_starts_at_origin(self) -> None:
        assert self._path("L10,0") == [PenUp(0, 0), PenDown(10, 0)]

    def test_cubic_continues_without_pen_up(self) -> None:
        body = self._path("M0,0 C0,10 10,10 10,0")
        assert body[0] == PenUp(0, 0)
        assert all(isinstance(ins, PenDown) for ins in body[1:])
        assert len(body) > 3
        assert body[-1] == PenDown(10, 0)
        assert max(ins.y for ins in body) == 8

    def test_smooth_quadratic_chain(self) -> None:
        body = self._path("M0,0 Q5,10 10,0 T20,0")
        assert body[-1] == PenDown(20, 0)
        assert min(ins.y for ins in body) == -5
        assert max(ins.y for ins in body) == 5

    def test_arc(self) -> None:
        body = self._path("M10,0 A10,10 0 0 1 -10,0")
        assert body[0] == PenUp(10, 0)
        assert body[-1] == PenDown(-10, 0)
        assert len(_pen_downs(body)) == 31
        assert max(ins.y for ins in body) == 10

    def test_relative_path(self) -> None:
        assert self._path("m10,10 h10 v10 z") == [
            PenUp(10, 10),
            PenDown(20, 10),
            PenDown(20, 20),
            PenDown(10, 10),
        ]

    def test_empty_path_draws_nothing(self) -> None:
        assert self._path("   ") == []

    def test_malformed_path_reports_and_continues(self) -> None:
        diagnostics = Diagnostics()
        shape = _shape(ShapeKind.PATH, d="M0,0 L10,0 X L10,10")
        program = svg_to_hpgl(Scene((shape,)), diagnostics=diagnostics)
        assert program[3:] == [PenUp(0, 0), PenDown(10, 0), PenDown(10, 10)]
        assert diagnostics.of_kind(DiagnosticKind.UNKNOWN_COMMAND)

    def test_overflowing_coordinate_is_not_plotted(self) -> None:
        diagnostics = Diagnostics()
        shape = _shape(ShapeKind.PATH, d="M0 0 L1e999 0 L10,10")
        program = svg_to_hpgl(Scene((shape,)), diagnostics=diagnostics)
        assert program[3:] == [PenUp(0, 0), PenDown(10, 10)]
        assert diagnostics.of_kind(DiagnosticKind.MALFORMED_NUMBER)


# ---------------------------------------------------------------------------
# Transforms and rounding
# ---------------------------------------------------------------------------


class TestTransforms:
    def test_rounding_half_up(self) -> None:
        assert _body(_line(0.5, 1.5, -0.5, -1.5)) == [PenUp(1, 2), PenDown(0, -1)]

    def test_view_box_scaling(self) -> None:
        ancestry = (ViewportFrame(Rect(0.0, 0.0, 200.0, 200.0), Rect(0.0, 0.0, 100.0, 100.0)),)
        shape = Shape(
            ShapeKind.LINE,
            attrs={"x1": 1.0, "y1": 2.0, "x2": 3.0, "y2": 4.0},
            stroke=BLACK,
            ancestry=ancestry,
        )
        assert _body(shape) == [PenUp(2, 4), PenDown(6, 8)]

    def test_user_scale_and_offset(self) -> None:
        body = _body(_line(1.0, 1.0, 2.0, 3.0), scale=10.0, offset_x=5.0, offset_y=-5.0)
        assert body == [PenUp(15, 5), PenDown(25, 25)]

    def test_user_rotation_about_origin(self) -> None:
        assert _body(_line(0.0, 0.0, 10.0, 0.0), rotation=90.0) == [PenUp(0, 0), PenDown(0, 10)]

    def test_user_mirror(self) -> None:
        body = _body(_line(1.0, 2.0, 3.0, 4.0), mirror_x=True, mirror_y=True)
        assert body == [PenUp(-1, -2), PenDown(-3, -4)]

    def test_detached_shape_uses_identity(self) -> None:
        shape = Shape(
            ShapeKind.LINE,
            attrs={"x1": 1.4, "y1": 0.0, "x2": 2.6, "y2": 0.0},
            stroke=BLACK,
            element_id="orphan",
        )
        result = convert(Scene((shape,)), options={"scale": 100.0})
        assert result.program[3:] == [PenUp(1, 0), PenDown(3, 0)]
        records = result.diagnostics.of_kind(DiagnosticKind.MISSING_VIEWPORT)
        assert [r.element_id for r in records] == ["orphan"]


# ---------------------------------------------------------------------------
# Pens
# ---------------------------------------------------------------------------


class TestPens:
    @pytest.fixture()
    def scene(self) -> Scene:
        return Scene((
            _line(0.0, 0.0, 1.0, 0.0, RED, "a"),
            _line(0.0, 0.0, 2.0, 0.0, BLUE, "b"),
            _line(0.0, 0.0, 3.0, 0.0, RED, "c"),
        ))

    def test_stroke_true_follows_colour_groups(self, scene: Scene) -> None:
        program = svg_to_hpgl(scene)
        ends = [ins.x for ins in program if isinstance(ins, PenDown)]
        assert ends == [1, 3, 2]

    def test_pens_in_declaration_order(self, scene: Scene) -> None:
        pens = [{"pen": 2, "stroke": "blue"}, {"pen": 1, "stroke": "#f00"}]
        program = svg_to_hpgl(scene, pens)
        assert program == [
            PlotAbsolute(),
            SelectPen(2), PenUp(), PenUp(0, 0), PenDown(2, 0),
            SelectPen(1), PenUp(), PenUp(0, 0), PenDown(1, 0), PenUp(0, 0), PenDown(3, 0),
        ]

    def test_colour_list_order(self, scene: Scene) -> None:
        program = svg_to_hpgl(scene, [{"pen": 1, "stroke": ["rgb(0,0,255)", "red"]}])
        ends = [ins.x for ins in program if isinstance(ins, PenDown)]
        assert ends == [2, 1, 3]

    def test_unmatched_pen_contributes_nothing(self, scene: Scene) -> None:
        base = svg_to_hpgl(scene, [{"pen": 1, "stroke": True}])
        extra = svg_to_hpgl(
            scene, [{"pen": 1, "stroke": True}, {"pen": 3, "stroke": "rgb(1, 2, 3)"}]
        )
        assert extra == base
        assert SelectPen(3) not in extra

    def test_pen_command(self, scene: Scene) -> None:
        program = svg_to_hpgl(scene, [PenSelector(pen=4, stroke="blue", cmd="VS10;")])
        assert program[:5] == [PlotAbsolute(), SelectPen(4), PenUp(), RawCommand("VS10"), PenUp(0, 0)]

    def test_unstroked_shapes_are_never_drawn(self) -> None:
        scene = Scene((_line(0.0, 0.0, 1.0, 1.0, stroke=None),))
        assert svg_to_hpgl(scene) == [PlotAbsolute()]

    def test_empty_scene(self) -> None:
        assert svg_to_hpgl(Scene()) == [PlotAbsolute()]

    def test_invalid_pen_raises(self, scene: Scene) -> None:
        with pytest.raises(ValueError):
            svg_to_hpgl(scene, [{"pen": 0, "stroke": True}])

    def test_grab_shapes_by_stroke_normalizes(self, scene: Scene) -> None:
        shapes = grab_shapes_by_stroke(scene.stroked_shapes(), PenSelector(pen=1, stroke="RED"))
        assert [s.element_id for s in shapes] == ["a", "c"]


# ---------------------------------------------------------------------------
# Conversion result
# ---------------------------------------------------------------------------


class TestConvert:
    def test_sink_receives_diagnostics(self) -> None:
        seen: list[Diagnostic] = []
        shape = _shape(ShapeKind.LINE, attrs={"x1": 0.0, "y1": 0.0, "x2": 5.0})
        result = convert(Scene((shape,)), sink=seen.append)
        assert len(seen) == 1
        assert seen[0].kind is DiagnosticKind.MISSING_ATTRIBUTE
        assert list(result.diagnostics) == seen
        assert result.program[3:] == [PenUp(0, 0), PenDown(5, 0)]

    def test_options_model_is_accepted(self) -> None:
        result = convert(Scene((_line(1.0, 1.0, 2.0, 2.0),)), options=ConversionOptions(scale=3.0))
        assert result.program[3:] == [PenUp(3, 3), PenDown(6, 6)]
        assert not result.diagnostics
