"""
Geometry module.

Affine matrices, viewport/transform resolution and curve flattening.
All coordinates are in the source document's local units until mapped
through a :class:`PlotTransform`.
"""

from svg_hpgl.geometry.flatten import (
    ArcCenter,
    arc_endpoint_to_center,
    ellipse_perimeter,
    ellipse_points,
    flatten_arc,
    flatten_cubic,
    flatten_quadratic,
    sample_cubic,
    sample_line,
    sample_quadratic,
    segment_count,
)
from svg_hpgl.geometry.matrix import (
    IDENTITY,
    AffineMatrix,
    apply,
    apply_points,
    compose,
    compose_all,
    flip_x,
    flip_y,
    invert,
    rotate,
    rotation,
    scale,
    scaling,
    skewing_x,
    skewing_y,
    translate,
    translation,
)
from svg_hpgl.geometry.viewport import (
    Align,
    Frame,
    MeetOrSlice,
    PlotTransform,
    Rect,
    TransformFrame,
    ViewportFrame,
    document_matrix,
    resolve_transform,
    user_matrix,
    viewport_matrix,
)

__all__ = [
    "ArcCenter",
    "arc_endpoint_to_center",
    "ellipse_perimeter",
    "ellipse_points",
    "flatten_arc",
    "flatten_cubic",
    "flatten_quadratic",
    "sample_cubic",
    "sample_line",
    "sample_quadratic",
    "segment_count",
    "IDENTITY",
    "AffineMatrix",
    "apply",
    "apply_points",
    "compose",
    "compose_all",
    "flip_x",
    "flip_y",
    "invert",
    "rotate",
    "rotation",
    "scale",
    "scaling",
    "skewing_x",
    "skewing_y",
    "translate",
    "translation",
    "Align",
    "Frame",
    "MeetOrSlice",
    "PlotTransform",
    "Rect",
    "TransformFrame",
    "ViewportFrame",
    "document_matrix",
    "resolve_transform",
    "user_matrix",
    "viewport_matrix",
]
