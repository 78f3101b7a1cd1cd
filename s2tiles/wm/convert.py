"""GeoJSON ingestion and the lon/lat <-> S2 face and unit-square projections."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from typing import Any

from shapely.geometry import mapping

from s2tiles.geometry.bbox import extend_bbox, from_point, merge_bboxes
from s2tiles.geometry.clip import clip_line
from s2tiles.geometry.types import (
    BBox,
    Face,
    Feature,
    GeometryType,
    LineStringGeometry,
    MultiLineStringGeometry,
    MultiPointGeometry,
    MultiPolygonGeometry,
    PointGeometry,
    PolygonGeometry,
    S2Feature,
    VectorFeature,
    VectorGeometry,
    VectorLineString,
    VectorPoint,
)
from s2tiles.s2 import point as s2point

logger = logging.getLogger(__name__)

# FACE_RULE_SET[target_face][current_face] = (rotation, move_x, move_y)
# Opposite faces are reachable but not mirrored; they are only hit by lines
# that travel more than a full face width.
FACE_RULE_SET: tuple[tuple[tuple[int, int, int], ...], ...] = (
    ((0, 0, 0), (0, 1, 0), (90, 0, 1), (-90, 2, 0), (-90, -1, 0), (0, 0, -1)),
    ((0, -1, 0), (0, 0, 0), (0, 0, 1), (-90, 1, 0), (-90, 2, 0), (90, 0, -1)),
    ((-90, -1, 0), (0, 0, -1), (0, 0, 0), (0, 1, 0), (90, 0, 1), (-90, 2, 0)),
    ((-90, 2, 0), (90, 0, -1), (0, -1, 0), (0, 0, 0), (0, 0, 1), (-90, 1, 0)),
    ((90, 0, 1), (-90, 2, 0), (-90, -1, 0), (0, 0, -1), (0, 0, 0), (0, 1, 0)),
    ((0, 0, 1), (-90, 1, 0), (-90, 2, 0), (90, 0, -1), (0, -1, 0), (0, 0, 0)),
)


# ---------------------------------------------------------------------------
# GeoJSON -> vector geometry
# ---------------------------------------------------------------------------


def to_vector(data: Feature, build_bbox: bool | None = None) -> VectorFeature:
    """Convert a GeoJSON feature into a ``VectorFeature`` (still lon/lat)."""
    geometry = _convert_geometry(data.geometry, build_bbox)
    return VectorFeature(geometry, data.properties, data.id, data.metadata)


def _geometry_mapping(geometry: Any) -> dict[str, Any]:
    if isinstance(geometry, dict):
        return geometry
    if hasattr(geometry, "__geo_interface__"):
        return dict(mapping(geometry))
    raise ValueError(f"Unsupported GeoJSON geometry: {type(geometry).__name__}")


def _m_at(m_values: Any, *index: int) -> Any:
    for i in index:
        if m_values is None:
            return None
        try:
            m_values = m_values[i]
        except (IndexError, KeyError, TypeError):
            return None
    return m_values


def _convert_geometry(raw: Any, build_bbox: bool | None) -> VectorGeometry:
    geometry = _geometry_mapping(raw)
    raw_type = geometry.get("type")
    coords = geometry.get("coordinates")
    m_values = geometry.get("mValues")
    bbox = geometry.get("bbox")
    if bbox is not None:
        bbox = tuple(bbox)
    tracked: list[BBox | None] = [None]
    track = build_bbox is not False and bbox is None

    def point_of(values: Any, m: Any) -> VectorPoint:
        z = values[2] if len(values) > 2 else None
        p = VectorPoint(values[0], values[1], z, m)
        if track:
            tracked[0] = extend_bbox(tracked[0], p)
        return p

    if not isinstance(raw_type, str):
        raise ValueError(f"Invalid GeoJSON type: {raw_type!r}")
    is_3d = raw_type.endswith("3D")
    gtype = raw_type[:-2] if is_3d else raw_type

    if gtype == "Point":
        result = PointGeometry(point_of(coords, m_values))
    elif gtype == "MultiPoint":
        result = MultiPointGeometry([point_of(p, _m_at(m_values, i)) for i, p in enumerate(coords)])
    elif gtype == "LineString":
        result = LineStringGeometry([point_of(p, _m_at(m_values, i)) for i, p in enumerate(coords)])
    elif gtype in ("MultiLineString", "Polygon"):
        lines = [
            [point_of(p, _m_at(m_values, i, j)) for j, p in enumerate(line)]
            for i, line in enumerate(coords)
        ]
        if gtype == "Polygon":
            result = PolygonGeometry(lines)
        else:
            result = MultiLineStringGeometry(lines)
    elif gtype == "MultiPolygon":
        result = MultiPolygonGeometry(
            [
                [
                    [point_of(p, _m_at(m_values, i, j, k)) for k, p in enumerate(line)]
                    for j, line in enumerate(polygon)
                ]
                for i, polygon in enumerate(coords)
            ]
        )
    else:
        raise ValueError(f"Invalid GeoJSON type: {raw_type!r}")

    result.is_3d = is_3d
    result.bbox = tracked[0] if track else bbox
    return result


# ---------------------------------------------------------------------------
# lon/lat -> S2 faces
# ---------------------------------------------------------------------------


def to_s2(data: Feature | VectorFeature, build_bbox: bool | None = None) -> list[S2Feature]:
    """Project a lon/lat feature onto the cube, one ``S2Feature`` per face it touches."""
    if data.type == "VectorFeature":
        geometry = data.geometry
    else:
        geometry = _convert_geometry(data.geometry, build_bbox)
    res = [
        S2Feature(face, geo, data.properties, data.id, data.metadata)
        for face, geo in _convert_vector_geometry(geometry)
    ]
    logger.debug("Projected %s onto faces %s", geometry.type.value, [f.face for f in res])
    return res


def _convert_vector_geometry(geometry: VectorGeometry) -> list[tuple[Face, VectorGeometry]]:
    gtype = geometry.type
    if gtype == GeometryType.POINT:
        return _convert_point(geometry)
    if gtype == GeometryType.MULTI_POINT:
        return [
            converted
            for p in geometry.coordinates
            for converted in _convert_point(
                PointGeometry(p, is_3d=geometry.is_3d, bbox=geometry.bbox)
            )
        ]
    if gtype == GeometryType.LINE_STRING:
        return [
            (
                face,
                LineStringGeometry(
                    piece.line,
                    is_3d=geometry.is_3d,
                    bbox=geometry.bbox,
                    vec_bbox=piece.vec_bbox,
                    offset=piece.offset,
                ),
            )
            for face, piece in _convert_line_string(geometry.coordinates, False)
        ]
    if gtype == GeometryType.MULTI_LINE_STRING:
        return [
            (
                face,
                LineStringGeometry(
                    piece.line,
                    is_3d=geometry.is_3d,
                    bbox=geometry.bbox,
                    vec_bbox=piece.vec_bbox,
                    offset=piece.offset,
                ),
            )
            for line in geometry.coordinates
            for face, piece in _convert_line_string(line, False)
        ]
    if gtype == GeometryType.POLYGON:
        return _convert_polygon(geometry)
    if gtype == GeometryType.MULTI_POLYGON:
        return [
            converted
            for polygon in geometry.coordinates
            for converted in _convert_polygon(
                PolygonGeometry(polygon, is_3d=geometry.is_3d, bbox=geometry.bbox)
            )
        ]
    raise ValueError(f"Invalid vector geometry type: {gtype}")


def _convert_point(geometry: PointGeometry) -> list[tuple[Face, VectorGeometry]]:
    p = geometry.coordinates
    face, s, t = s2point.to_st(s2point.from_lonlat(p))
    st = VectorPoint(s, t, p.z, p.m)
    return [
        (
            face,
            PointGeometry(st, is_3d=geometry.is_3d, bbox=geometry.bbox, vec_bbox=from_point(st)),
        )
    ]


def _convert_polygon(geometry: PolygonGeometry) -> list[tuple[Face, VectorGeometry]]:
    rings = geometry.coordinates
    if not rings:
        return []
    outer = _convert_line_string(rings[0], True)
    inner = [piece for ring in rings[1:] for piece in _convert_line_string(ring, True)]

    res = []
    for face, piece in outer:
        polygon = [piece.line]
        offsets = [piece.offset]
        vec_bbox = piece.vec_bbox
        for inner_face, inner_piece in inner:
            if inner_face == face:
                polygon.append(inner_piece.line)
                offsets.append(inner_piece.offset)
                vec_bbox = merge_bboxes(vec_bbox, inner_piece.vec_bbox)
        res.append(
            (
                face,
                PolygonGeometry(
                    polygon,
                    is_3d=geometry.is_3d,
                    bbox=geometry.bbox,
                    vec_bbox=vec_bbox,
                    offset=offsets,
                ),
            )
        )
    return res


def _convert_line_string(line: VectorLineString, is_polygon: bool):
    """Re-express a lon/lat line on every face it visits and clip it to that face."""
    faces: list[Face] = []
    st_points = []
    for p in line:
        face, s, t = s2point.to_st(s2point.from_lonlat(VectorPoint(p.x, p.y)))
        if face not in faces:
            faces.append(face)
        st_points.append((face, s, t, p.z, p.m))

    res = []
    for face in faces:
        face_line = [_st_point_to_face(face, *st) for st in st_points]
        for piece in clip_line(face_line, (0, 0, 1, 1), is_polygon):
            res.append((face, piece))
    return res


def _st_point_to_face(
    target_face: Face, cur_face: Face, s: float, t: float, z: float | None, m: Any
) -> VectorPoint:
    if target_face == cur_face:
        return VectorPoint(s, t, z, m)
    rot, move_x, move_y = FACE_RULE_SET[target_face][cur_face]
    new_s, new_t = _rotate(rot, s, t)
    return VectorPoint(new_s + move_x, new_t + move_y, z, m)


def _rotate(rot: int, s: float, t: float) -> tuple[float, float]:
    if rot == 90:
        return t, 1 - s
    if rot == -90:
        return 1 - t, s
    return s, t


# ---------------------------------------------------------------------------
# S2 faces -> lon/lat
# ---------------------------------------------------------------------------


def to_wm(data: S2Feature) -> VectorFeature:
    """Bring an ``S2Feature`` back to lon/lat. The source feature is left untouched."""
    face = data.face

    def unproject(p: VectorPoint) -> VectorPoint:
        ll = s2point.to_lonlat(s2point.from_st(face, p.x, p.y))
        return VectorPoint(ll.x, ll.y, p.z, p.m, p.t)

    geometry = _map_points(data.geometry, unproject)
    return VectorFeature(geometry, data.properties, data.id, data.metadata)


def _map_points(
    geometry: VectorGeometry, fn: Callable[[VectorPoint], VectorPoint]
) -> VectorGeometry:
    gtype = geometry.type
    coords = geometry.coordinates
    if gtype == GeometryType.POINT:
        new_coords = fn(coords)
    elif gtype in (GeometryType.MULTI_POINT, GeometryType.LINE_STRING):
        new_coords = [fn(p) for p in coords]
    elif gtype in (GeometryType.MULTI_LINE_STRING, GeometryType.POLYGON):
        new_coords = [[fn(p) for p in line] for line in coords]
    elif gtype == GeometryType.MULTI_POLYGON:
        new_coords = [[[fn(p) for p in line] for line in polygon] for polygon in coords]
    else:
        raise ValueError(f"Invalid vector geometry type: {gtype}")
    cls = type(geometry)
    kwargs = {"is_3d": geometry.is_3d, "bbox": geometry.bbox}
    if hasattr(geometry, "offset"):
        kwargs["offset"] = geometry.offset
    return cls(new_coords, **kwargs)


# ---------------------------------------------------------------------------
# lon/lat <-> Web Mercator unit square
# ---------------------------------------------------------------------------


def project_x(x: float) -> float:
    return x / 360 + 0.5


def project_y(y: float) -> float:
    """Latitude to Web Mercator y in [0, 1], north at 0."""
    sin = math.sin(math.radians(y))
    if sin >= 1:
        return 0.0
    if sin <= -1:
        return 1.0
    y2 = 0.5 - 0.25 * math.log((1 + sin) / (1 - sin)) / math.pi
    return min(1.0, max(0.0, y2))


def _for_each_point(geometry: VectorGeometry, fn: Callable[[VectorPoint], None]) -> None:
    gtype = geometry.type
    coords = geometry.coordinates
    if gtype == GeometryType.POINT:
        fn(coords)
    elif gtype in (GeometryType.MULTI_POINT, GeometryType.LINE_STRING):
        for p in coords:
            fn(p)
    elif gtype in (GeometryType.MULTI_LINE_STRING, GeometryType.POLYGON):
        for line in coords:
            for p in line:
                fn(p)
    elif gtype == GeometryType.MULTI_POLYGON:
        for polygon in coords:
            for line in polygon:
                for p in line:
                    fn(p)
    else:
        raise ValueError(f"Invalid vector geometry type: {gtype}")


def to_unit_scale(feature: VectorFeature) -> None:
    """Project lon/lat coordinates to the Web Mercator unit square in place."""
    geometry = feature.geometry

    def project(p: VectorPoint) -> None:
        p.x = project_x(p.x)
        p.y = project_y(p.y)
        geometry.vec_bbox = extend_bbox(geometry.vec_bbox, p)

    _for_each_point(geometry, project)


def to_lonlat(feature: VectorFeature) -> None:
    """Inverse of ``to_unit_scale``, in place."""

    def unproject(p: VectorPoint) -> None:
        p.x = (p.x - 0.5) * 360
        p.y = math.degrees(math.atan(math.sinh(math.pi * (0.5 - p.y) * 2)))

    _for_each_point(feature.geometry, unproject)
