"""Axis-aligned clipping of vector geometry and the quad split of a tile.

All coordinates are expected in the unit square of a face (or of Web
Mercator). Points are clipped against half-open ranges without buffer so a
point lands in exactly one child; lines and polygons are clipped against the
buffered closed range so neighbouring tiles overlap by ``buffer``.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from s2tiles.geometry.bbox import clip_bbox, extend_bbox
from s2tiles.geometry.types import (
    BBox,
    GeometryType,
    LineStringGeometry,
    MultiLineStringGeometry,
    MultiPointGeometry,
    MultiPolygonGeometry,
    PointGeometry,
    PolygonGeometry,
    VectorFeatures,
    VectorLineString,
    VectorPoint,
)
from s2tiles.s2.cell_id import children_ij

if TYPE_CHECKING:
    from s2tiles.tile import Tile

logger = logging.getLogger(__name__)


@dataclass
class TileChild:
    id: int
    tile: Tile


@dataclass
class ClipLineResult:
    """One surviving piece of a clipped line."""

    line: VectorLineString
    # Arc length along the source line where this piece starts
    offset: float
    vec_bbox: BBox | None = None


def split_tile(tile: Tile, buffer: float = 0.0625) -> list[TileChild]:
    """Split a tile's features into its four children.

    Children come back as bottom-left, bottom-right, top-left, top-right.
    Layer names are carried over.
    """
    face, zoom, i, j = tile.face, tile.zoom, tile.i, tile.j
    ids = children_ij(face, zoom, i, j)
    children = [TileChild(cid, type(tile)(cid)) for cid in ids]
    scale = 1 << zoom

    for name, layer in tile.layers.items():
        left = _clip(layer.features, scale, i, i + 0.5, 0, buffer)
        right = _clip(layer.features, scale, i + 0.5, i + 1, 0, buffer)

        if left is not None:
            for child_index, (k1, k2) in ((0, (j, j + 0.5)), (2, (j + 0.5, j + 1))):
                for feature in _clip(left, scale, k1, k2, 1, buffer) or []:
                    children[child_index].tile.add_feature(feature, name)

        if right is not None:
            for child_index, (k1, k2) in ((1, (j, j + 0.5)), (3, (j + 0.5, j + 1))):
                for feature in _clip(right, scale, k1, k2, 1, buffer) or []:
                    children[child_index].tile.add_feature(feature, name)

    logger.debug("Split tile face=%d zoom=%d i=%d j=%d", face, zoom, i, j)
    return children


def _clip(
    features: list[VectorFeatures],
    scale: int,
    k1: float,
    k2: float,
    axis: int,
    base_buffer: float,
) -> list[VectorFeatures] | None:
    """Clip every feature to ``[k1, k2] / scale`` along ``axis``; None if nothing survives."""
    k1 /= scale
    k2 /= scale
    buffer = base_buffer / scale
    k1b = k1 - buffer
    k2b = k2 + buffer
    clipped = []

    for feature in features:
        geometry = feature.geometry
        gtype = geometry.type
        if gtype == GeometryType.POINT:
            new_geometry = clip_point(geometry, axis, k1, k2)
        elif gtype == GeometryType.MULTI_POINT:
            new_geometry = clip_multi_point(geometry, axis, k1, k2)
        elif gtype == GeometryType.LINE_STRING:
            new_geometry = clip_line_string(geometry, axis, k1b, k2b)
        elif gtype == GeometryType.MULTI_LINE_STRING:
            new_geometry = clip_multi_line_string(geometry, axis, k1b, k2b)
        elif gtype == GeometryType.POLYGON:
            new_geometry = clip_polygon(geometry, axis, k1b, k2b)
        elif gtype == GeometryType.MULTI_POLYGON:
            new_geometry = clip_multi_polygon(geometry, axis, k1b, k2b)
        else:
            raise ValueError(f"Cannot clip geometry type: {gtype}")

        if new_geometry is not None:
            new_geometry.vec_bbox = clip_bbox(new_geometry.vec_bbox, axis, k1b, k2b)
            clipped.append(dataclasses.replace(feature, geometry=new_geometry))

    return clipped or None


def _axis_value(point: VectorPoint, axis: int) -> float:
    return point.x if axis == 0 else point.y


def clip_point(geometry: PointGeometry, axis: int, k1: float, k2: float) -> PointGeometry | None:
    value = _axis_value(geometry.coordinates, axis)
    if k1 <= value < k2:
        return PointGeometry(
            geometry.coordinates.copy(),
            is_3d=geometry.is_3d,
            bbox=geometry.bbox,
            vec_bbox=geometry.vec_bbox,
        )
    return None


def clip_multi_point(
    geometry: MultiPointGeometry, axis: int, k1: float, k2: float
) -> MultiPointGeometry | None:
    points = [p.copy() for p in geometry.coordinates if k1 <= _axis_value(p, axis) < k2]
    if not points:
        return None
    vec_bbox = None
    for p in points:
        vec_bbox = extend_bbox(vec_bbox, p)
    return MultiPointGeometry(points, is_3d=geometry.is_3d, bbox=geometry.bbox, vec_bbox=vec_bbox)


def clip_line_string(
    geometry: LineStringGeometry, axis: int, k1: float, k2: float
) -> MultiLineStringGeometry | None:
    """Clip a line; the pieces always come back as a MultiLineString."""
    offset = geometry.offset if geometry.offset is not None else 0
    pieces = _clip_line(ClipLineResult(geometry.coordinates, offset), k1, k2, axis, False)
    if not pieces:
        return None
    return MultiLineStringGeometry(
        [piece.line for piece in pieces],
        is_3d=geometry.is_3d,
        bbox=geometry.bbox,
        vec_bbox=geometry.vec_bbox,
        offset=[piece.offset for piece in pieces],
    )


def clip_multi_line_string(
    geometry: MultiLineStringGeometry | PolygonGeometry,
    axis: int,
    k1: float,
    k2: float,
    is_polygon: bool = False,
) -> MultiLineStringGeometry | PolygonGeometry | None:
    coordinates = geometry.coordinates
    offsets = geometry.offset if geometry.offset is not None else [0] * len(coordinates)
    new_lines = []
    new_offsets = []
    for line, offset in zip(coordinates, offsets):
        for piece in _clip_line(ClipLineResult(line, offset), k1, k2, axis, is_polygon):
            new_lines.append(piece.line)
            new_offsets.append(piece.offset)

    if not new_lines or (is_polygon and not new_lines[0]):
        return None
    cls = PolygonGeometry if is_polygon else MultiLineStringGeometry
    return cls(
        new_lines,
        is_3d=geometry.is_3d,
        bbox=geometry.bbox,
        vec_bbox=geometry.vec_bbox,
        offset=new_offsets,
    )


def clip_polygon(
    geometry: PolygonGeometry, axis: int, k1: float, k2: float
) -> PolygonGeometry | None:
    return clip_multi_line_string(geometry, axis, k1, k2, True)


def clip_multi_polygon(
    geometry: MultiPolygonGeometry, axis: int, k1: float, k2: float
) -> MultiPolygonGeometry | None:
    coordinates = geometry.coordinates
    offsets = (
        geometry.offset
        if geometry.offset is not None
        else [[0] * len(polygon) for polygon in coordinates]
    )
    new_coordinates = []
    new_offsets = []
    for polygon, offset in zip(coordinates, offsets):
        new_polygon = clip_polygon(
            PolygonGeometry(polygon, is_3d=geometry.is_3d, bbox=geometry.bbox, offset=offset),
            axis,
            k1,
            k2,
        )
        if new_polygon is not None:
            new_coordinates.append(new_polygon.coordinates)
            if new_polygon.offset is not None:
                new_offsets.append(new_polygon.offset)

    if not new_coordinates:
        return None
    return MultiPolygonGeometry(
        new_coordinates,
        is_3d=geometry.is_3d,
        bbox=geometry.bbox,
        vec_bbox=geometry.vec_bbox,
        offset=new_offsets,
    )


def clip_line(
    line: VectorLineString,
    bbox: BBox,
    is_polygon: bool,
    offset: float = 0,
    buffer: float = 0.0625,
) -> list[ClipLineResult]:
    """Clip a line to ``bbox`` grown by ``buffer``.

    Works on unit-square coordinates; the default buffer is 64 units of a
    1024 extent tile. Every result carries a ``vec_bbox`` of its own points.
    """
    left, bottom, right, top = bbox[:4]
    res = []
    for piece in _clip_line(
        ClipLineResult(line, offset, (0, 0, 0, 0)), left - buffer, right + buffer, 0, is_polygon
    ):
        res.extend(_clip_line(piece, bottom - buffer, top + buffer, 1, is_polygon))

    for piece in res:
        vec_bbox = None
        for p in piece.line:
            vec_bbox = extend_bbox(vec_bbox, p)
        piece.vec_bbox = vec_bbox
    return res


def _clip_line(
    source: ClipLineResult, k1: float, k2: float, axis: int, is_polygon: bool
) -> list[ClipLineResult]:
    geom = source.line
    new_geom: list[ClipLineResult] = []
    if not geom:
        return new_geom

    slice_: VectorLineString = []
    last = len(geom) - 1
    intersect = _intersect_x if axis == 0 else _intersect_y

    cur_offset = source.offset
    acc_offset = source.offset
    prev_p = geom[0]
    first_enter = False

    for i in range(last):
        pa = geom[i]
        pb = geom[i + 1]
        a = _axis_value(pa, axis)
        b = _axis_value(pb, axis)
        entered = False
        exited = False
        int_p = None

        if a < k1:
            # enters from the low side
            if b > k1:
                int_p = intersect(pa, pb, k1, pb.z, pb.m)
                slice_.append(int_p)
                entered = True
        elif a > k2:
            # enters from the high side
            if b < k2:
                int_p = intersect(pa, pb, k2, pb.z, pb.m)
                slice_.append(int_p)
                entered = True
        else:
            int_p = pa.copy()
            slice_.append(int_p)

        # the first entry decides where this piece starts along the line
        if int_p is not None and entered and not first_enter:
            cur_offset = acc_offset + _distance(prev_p, int_p)
            first_enter = True

        if b < k1 <= a:
            slice_.append(intersect(pa, pb, k1, pb.z, pb.m if pb.m is not None else pa.m))
            exited = True
        if b > k2 >= a:
            slice_.append(intersect(pa, pb, k2, pa.z, pb.m if pb.m is not None else pa.m))
            exited = True

        acc_offset += _distance(prev_p, pb)
        prev_p = pb

        # lines are cut into parts; polygon rings keep tracking the edge
        if not is_polygon and exited:
            new_geom.append(ClipLineResult(slice_, cur_offset))
            slice_ = []
            first_enter = False

    last_point = geom[last]
    a = _axis_value(last_point, axis)
    if k1 <= a <= k2:
        slice_.append(last_point.copy())

    # re-close rings that were cut open
    if slice_ and is_polygon:
        end = len(slice_) - 1
        first_p = slice_[0]
        if end >= 1 and (slice_[end].x != first_p.x or slice_[end].y != first_p.y):
            slice_.append(first_p.copy())

    if slice_:
        new_geom.append(ClipLineResult(slice_, cur_offset))
    return new_geom


def _intersect_x(pa: VectorPoint, pb: VectorPoint, x: float, z, m) -> VectorPoint:
    t = (x - pa.x) / (pb.x - pa.x)
    return VectorPoint(x, pa.y + (pb.y - pa.y) * t, z, m, 1)


def _intersect_y(pa: VectorPoint, pb: VectorPoint, y: float, z, m) -> VectorPoint:
    t = (y - pa.y) / (pb.y - pa.y)
    return VectorPoint(pa.x + (pb.x - pa.x) * t, y, z, m, 1)


def _distance(p1: VectorPoint, p2: VectorPoint) -> float:
    return math.hypot(p2.x - p1.x, p2.y - p1.y)

