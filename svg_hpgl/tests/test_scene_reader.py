"""Tests for reading SVG documents into scenes."""

from __future__ import annotations

from pathlib import Path

import pytest

from svg_hpgl.diagnostics import DiagnosticKind, Diagnostics
from svg_hpgl.geometry.matrix import translation
from svg_hpgl.geometry.viewport import Align, MeetOrSlice, Rect, TransformFrame, ViewportFrame
from svg_hpgl.program.builder import convert
from svg_hpgl.program.serialize import build_hpgl
from svg_hpgl.scene.reader import (
    SceneError,
    normalize_color,
    parse_length,
    parse_transform,
    read_svg,
    read_svg_string,
)
from svg_hpgl.scene.shapes import ShapeKind

RED = "rgb(255, 0, 0)"
BLUE = "rgb(0, 0, 255)"

DOCUMENT = """<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg" width="100" height="100" viewBox="0 0 100 100">
  <!-- comment -->
  <line id="l1" x1="0" y1="0" x2="10" y2="10" stroke="red"/>
  <g stroke="#00f" transform="translate(5,5)">
    <circle id="c1" cx="1" cy="2" r="3"/>
    <rect id="r1" x="0" y="0" width="10" height="5" style="stroke: none"/>
  </g>
  <defs><path id="p0" d="M0,0 L1,1" stroke="black"/></defs>
  <path id="hidden" d="M0,0 L1,1" stroke="black" style="display:none"/>
  <use href="#p0"/>
</svg>
"""


@pytest.fixture()
def diagnostics() -> Diagnostics:
    return Diagnostics()


# ---------------------------------------------------------------------------
# Document walk
# ---------------------------------------------------------------------------


class TestReadSvg:
    def test_collects_drawable_shapes(self, diagnostics: Diagnostics) -> None:
        scene = read_svg_string(DOCUMENT, diagnostics)
        assert [s.element_id for s in scene] == ["l1", "c1", "r1"]
        assert [s.kind for s in scene] == [ShapeKind.LINE, ShapeKind.CIRCLE, ShapeKind.RECT]

    def test_stroke_inheritance_and_override(self) -> None:
        scene = read_svg_string(DOCUMENT)
        strokes = {s.element_id: s.stroke for s in scene}
        assert strokes == {"l1": RED, "c1": BLUE, "r1": None}
        assert scene.stroke_colors() == [RED, BLUE]

    def test_stroked_shapes_groups(self) -> None:
        groups = read_svg_string(DOCUMENT).stroked_shapes()
        assert {k: [s.element_id for s in v] for k, v in groups.items()} == {
            RED: ["l1"],
            BLUE: ["c1"],
        }

    def test_use_is_reported(self, diagnostics: Diagnostics) -> None:
        read_svg_string(DOCUMENT, diagnostics)
        assert len(diagnostics.of_kind(DiagnosticKind.UNSUPPORTED_ELEMENT)) == 1

    def test_geometry_attributes(self) -> None:
        circle = read_svg_string(DOCUMENT).shapes[1]
        assert dict(circle.attrs) == {"cx": 1.0, "cy": 2.0, "r": 3.0}

    def test_ancestry_is_nearest_first(self) -> None:
        circle = read_svg_string(DOCUMENT).shapes[1]
        assert circle.ancestry == (
            TransformFrame(translation(5.0, 5.0)),
            ViewportFrame(Rect(0.0, 0.0, 100.0, 100.0), Rect(0.0, 0.0, 100.0, 100.0)),
        )

    def test_document_without_namespace(self) -> None:
        scene = read_svg_string('<svg><line x1="0" y1="0" x2="1" y2="1" stroke="black"/></svg>')
        assert len(scene) == 1

    def test_display_none_hides_subtree(self) -> None:
        scene = read_svg_string(
            '<svg xmlns="http://www.w3.org/2000/svg"><g display="none">'
            '<line x1="0" y1="0" x2="1" y2="1" stroke="black"/></g></svg>'
        )
        assert len(scene) == 0

    def test_style_beats_attribute(self) -> None:
        scene = read_svg_string(
            '<svg><line x1="0" y1="0" x2="1" y2="1" stroke="red" style="stroke:blue"/></svg>'
        )
        assert scene.shapes[0].stroke == BLUE

    def test_polyline_points(self, diagnostics: Diagnostics) -> None:
        scene = read_svg_string(
            '<svg><polyline points="0,0 10,0 10 10 5" stroke="black"/></svg>', diagnostics,
        )
        assert scene.shapes[0].points == ((0.0, 0.0), (10.0, 0.0), (10.0, 10.0))
        assert len(diagnostics.of_kind(DiagnosticKind.MALFORMED_NUMBER)) == 1

    def test_path_data_is_kept(self) -> None:
        scene = read_svg_string('<svg><path d="M0,0 L5,5" stroke="black"/></svg>')
        assert scene.shapes[0].d == "M0,0 L5,5"

    def test_nested_svg_adds_viewport(self) -> None:
        scene = read_svg_string(
            '<svg width="200" height="200" viewBox="0 0 100 100">'
            '<svg x="10" y="20" width="50" height="50">'
            '<line x1="0" y1="0" x2="1" y2="1" stroke="black"/></svg></svg>'
        )
        ancestry = scene.shapes[0].ancestry
        assert len(ancestry) == 2
        assert ancestry[0].position == Rect(10.0, 20.0, 50.0, 50.0)

    def test_root_size_falls_back_to_view_box(self) -> None:
        scene = read_svg_string(
            '<svg viewBox="0 0 30 40" preserveAspectRatio="xMinYMax slice">'
            '<line x1="0" y1="0" x2="1" y2="1" stroke="black"/></svg>'
        )
        frame = scene.shapes[0].ancestry[0]
        assert frame.position == Rect(0.0, 0.0, 30.0, 40.0)
        assert frame.align == Align("min", "max")
        assert frame.meet_or_slice is MeetOrSlice.SLICE

    def test_root_must_be_svg(self) -> None:
        with pytest.raises(SceneError, match="not <svg>"):
            read_svg_string("<html/>")

    def test_malformed_xml(self) -> None:
        with pytest.raises(SceneError, match="Cannot parse"):
            read_svg_string("<svg><line></svg>")

    def test_read_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "drawing.svg"
        path.write_text(DOCUMENT, encoding="utf-8")
        assert len(read_svg(path)) == 3
        assert len(read_svg(str(path))) == 3

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_svg(tmp_path / "missing.svg")


# ---------------------------------------------------------------------------
# Attribute parsing
# ---------------------------------------------------------------------------


class TestAttributeParsing:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("#F00", RED),
            ("#0000ff", BLUE),
            ("Blue", BLUE),
            ("rgb(255,0,0)", RED),
            ("rgb( 255 , 0 , 0 )", RED),
            ("rgb(100%, 0%, 0%)", RED),
            ("url(#grad)", "url(#grad)"),
        ],
    )
    def test_normalize_color(self, value: str, expected: str) -> None:
        assert normalize_color(value) == expected

    def test_parse_length(self) -> None:
        assert parse_length("100mm") == 100.0
        assert parse_length(" -2.5e1px") == -25.0
        assert parse_length("50%") is None
        assert parse_length("auto") is None
        assert parse_length(None) is None

    def test_transform_list_applies_rightmost_first(self) -> None:
        m = parse_transform("translate(10) scale(2)")
        assert m is not None
        assert m(1.0, 1.0) == (12.0, 2.0)

    def test_rotate_about_point(self) -> None:
        m = parse_transform("rotate(90 5 5)")
        assert m is not None
        assert m(10.0, 5.0) == pytest.approx((5.0, 10.0))

    def test_matrix(self) -> None:
        m = parse_transform("matrix(1,0,0,1,3,4)")
        assert m is not None
        assert m(0.0, 0.0) == (3.0, 4.0)

    def test_empty_and_malformed(self) -> None:
        assert parse_transform(None) is None
        assert parse_transform("") is None
        assert parse_transform("translate()") is None
        m = parse_transform("skewX(1 2) translate(3, 4)")
        assert m is not None
        assert m(0.0, 0.0) == (3.0, 4.0)


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


class TestEndToEnd:
    def test_view_box_scaled_line(self) -> None:
        scene = read_svg_string(
            '<svg xmlns="http://www.w3.org/2000/svg" width="100" height="100" viewBox="0 0 10 10">'
            '<line x1="1" y1="1" x2="2" y2="2" stroke="black"/></svg>'
        )
        result = convert(scene)
        assert build_hpgl(result.program) == "PA;SP1;PU;PU10,10;PD20,20;"
        assert not result.diagnostics

    def test_pen_per_colour(self) -> None:
        scene = read_svg_string(DOCUMENT)
        result = convert(scene, pens=[{"pen": 2, "stroke": "blue"}, {"pen": 1, "stroke": "red"}])
        text = build_hpgl(result.program)
        assert text.startswith("PA;SP2;PU;PU9,7;")
        assert text.endswith("SP1;PU;PU0,0;PD10,10;")
