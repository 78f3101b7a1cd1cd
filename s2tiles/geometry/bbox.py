"""Axis-aligned bounding box helpers. No tile or projection imports."""

from __future__ import annotations

import math
from collections.abc import Iterable

import numpy as np

from s2tiles.geometry.types import (
    BBox,
    GeometryType,
    VectorGeometry,
    VectorLineString,
    VectorMultiLineString,
    VectorMultiPolygon,
    VectorPoint,
    VectorPolygon,
    iter_points,
)

EMPTY_BBOX: BBox = (math.inf, math.inf, -math.inf, -math.inf)


def from_point(point: VectorPoint) -> BBox:
    """Degenerate box around a single point, 3D if the point has a z."""
    x, y, z = point.x, point.y, point.z
    if z is not None:
        return (x, y, x, y, z, z)
    return (x, y, x, y)


def from_points(points: Iterable[VectorPoint]) -> BBox:
    """Box over any number of points.

    Returns ``EMPTY_BBOX`` when there are no points. The z range is only
    reported if at least one point carries a z; points without one count as 0.
    """
    pts = list(points)
    if not pts:
        return EMPTY_BBOX
    xy = np.array([(p.x, p.y) for p in pts], dtype=np.float64)
    lo = xy.min(axis=0)
    hi = xy.max(axis=0)
    box = (float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1]))
    if any(p.z is not None for p in pts):
        z = np.array([p.z if p.z is not None else 0.0 for p in pts], dtype=np.float64)
        box += (float(z.min()), float(z.max()))
    return box


def from_line_string(line: VectorLineString) -> BBox:
    return from_points(line)


def from_multi_line_string(lines: VectorMultiLineString) -> BBox:
    return from_points(p for line in lines for p in line)


def from_polygon(polygon: VectorPolygon) -> BBox:
    return from_multi_line_string(polygon)


def from_multi_polygon(polygons: VectorMultiPolygon) -> BBox:
    return from_points(p for poly in polygons for line in poly for p in line)


def from_geometry(geometry: VectorGeometry) -> BBox:
    if geometry.type == GeometryType.POINT:
        return from_point(geometry.coordinates)
    return from_points(iter_points(geometry))


def point_overlap(bbox: BBox, point: VectorPoint) -> bool:
    """Inclusive containment test of a point against the 2D part of a box."""
    left, bottom, right, top = bbox[:4]
    return left <= point.x <= right and bottom <= point.y <= top


def bbox_overlap(b1: BBox, b2: BBox) -> BBox | None:
    """Intersection of two boxes in 2D, or None when they are disjoint."""
    if b2[2] < b1[0] or b1[2] < b2[0] or b2[3] < b1[1] or b1[3] < b2[1]:
        return None
    return (max(b1[0], b2[0]), max(b1[1], b2[1]), min(b1[2], b2[2]), min(b1[3], b2[3]))


def merge_bboxes(b1: BBox | None, b2: BBox) -> BBox:
    """Smallest box covering both inputs.

    When only one of the two is 3D the missing z range is taken as 0.
    """
    if b1 is None:
        return tuple(b2)
    merged = (
        min(b1[0], b2[0]),
        min(b1[1], b2[1]),
        max(b1[2], b2[2]),
        max(b1[3], b2[3]),
    )
    if len(b1) > 4 or len(b2) > 4:
        z1 = b1[4:6] if len(b1) > 4 else (0.0, 0.0)
        z2 = b2[4:6] if len(b2) > 4 else (0.0, 0.0)
        merged += (min(z1[0], z2[0]), max(z1[1], z2[1]))
    return merged


def extend_bbox(bbox: BBox | None, point: VectorPoint) -> BBox:
    return merge_bboxes(bbox if bbox is not None else from_point(point), from_point(point))


def clip_bbox(bbox: BBox | None, axis: int, k1: float, k2: float) -> BBox:
    """Clamp one axis (0 = x, 1 = y) of a box to ``[k1, k2]``."""
    box = list(bbox) if bbox is not None else [0.0, 0.0, 0.0, 0.0]
    if axis == 0:
        box[0] = max(box[0], k1)
        box[2] = min(box[2], k2)
    else:
        box[1] = max(box[1], k1)
        box[3] = min(box[3], k2)
    return tuple(box)
