"""Vector geometry model shared by the clipper, simplifier, converters and tiles.

Every geometry variant is its own dataclass tagged with a ``GeometryType``.
Coordinates are ``VectorPoint`` objects that the simplifier and the tile
transform mutate in place, so a geometry must not be shared between two
tile requests running at the same time.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Literal

# (min_x, min_y, max_x, max_y) or (min_x, min_y, max_x, max_y, min_z, max_z)
BBox = tuple[float, ...]

Face = int
Projection = Literal["WG", "S2"]
Properties = dict[str, Any]


class GeometryType(str, enum.Enum):
    POINT = "Point"
    MULTI_POINT = "MultiPoint"
    LINE_STRING = "LineString"
    MULTI_LINE_STRING = "MultiLineString"
    POLYGON = "Polygon"
    MULTI_POLYGON = "MultiPolygon"


@dataclass
class VectorPoint:
    """A point in whatever space the owning geometry currently lives in."""

    x: float
    y: float
    z: float | None = None
    # Arbitrary per-vertex payload
    m: Any = None
    # Douglas-Peucker significance (squared distance), set by build_sq_dists
    t: float | None = None

    def copy(self) -> VectorPoint:
        return VectorPoint(self.x, self.y, self.z, self.m, self.t)


VectorLineString = list[VectorPoint]
VectorMultiLineString = list[VectorLineString]
VectorPolygon = list[VectorLineString]
VectorMultiPolygon = list[VectorPolygon]


@dataclass
class PointGeometry:
    coordinates: VectorPoint
    is_3d: bool = False
    bbox: BBox | None = None
    vec_bbox: BBox | None = None
    type: GeometryType = field(default=GeometryType.POINT, init=False)


@dataclass
class MultiPointGeometry:
    coordinates: list[VectorPoint]
    is_3d: bool = False
    bbox: BBox | None = None
    vec_bbox: BBox | None = None
    type: GeometryType = field(default=GeometryType.MULTI_POINT, init=False)


@dataclass
class LineStringGeometry:
    coordinates: VectorLineString
    is_3d: bool = False
    bbox: BBox | None = None
    vec_bbox: BBox | None = None
    # Arc length already travelled before the first vertex
    offset: float | None = None
    type: GeometryType = field(default=GeometryType.LINE_STRING, init=False)


@dataclass
class MultiLineStringGeometry:
    coordinates: VectorMultiLineString
    is_3d: bool = False
    bbox: BBox | None = None
    vec_bbox: BBox | None = None
    # One offset per line
    offset: list[float] | None = None
    type: GeometryType = field(default=GeometryType.MULTI_LINE_STRING, init=False)


@dataclass
class PolygonGeometry:
    coordinates: VectorPolygon
    is_3d: bool = False
    bbox: BBox | None = None
    vec_bbox: BBox | None = None
    # One offset per ring
    offset: list[float] | None = None
    type: GeometryType = field(default=GeometryType.POLYGON, init=False)


@dataclass
class MultiPolygonGeometry:
    coordinates: VectorMultiPolygon
    is_3d: bool = False
    bbox: BBox | None = None
    vec_bbox: BBox | None = None
    # One list of ring offsets per polygon
    offset: list[list[float]] | None = None
    type: GeometryType = field(default=GeometryType.MULTI_POLYGON, init=False)


VectorGeometry = (
    PointGeometry
    | MultiPointGeometry
    | LineStringGeometry
    | MultiLineStringGeometry
    | PolygonGeometry
    | MultiPolygonGeometry
)


@dataclass
class Feature:
    """GeoJSON feature in lon/lat degrees.

    ``geometry`` is a GeoJSON geometry mapping (``{"type": ..., "coordinates": ...}``,
    optionally with ``mValues`` and a ``*3D`` type) or any object exposing
    ``__geo_interface__`` such as a shapely geometry.
    """

    geometry: Any
    properties: Properties = field(default_factory=dict)
    id: int | str | None = None
    metadata: dict[str, Any] | None = None
    type: str = field(default="Feature", init=False)


@dataclass
class VectorFeature:
    geometry: VectorGeometry
    properties: Properties = field(default_factory=dict)
    id: int | str | None = None
    metadata: dict[str, Any] | None = None
    type: str = field(default="VectorFeature", init=False)


@dataclass
class S2Feature:
    """A feature whose geometry is expressed in the S-T space of one cube face."""

    face: Face
    geometry: VectorGeometry
    properties: Properties = field(default_factory=dict)
    id: int | str | None = None
    metadata: dict[str, Any] | None = None
    type: str = field(default="S2Feature", init=False)


@dataclass
class FeatureCollection:
    features: list[Feature | VectorFeature] = field(default_factory=list)
    type: str = field(default="FeatureCollection", init=False)


@dataclass
class S2FeatureCollection:
    features: list[S2Feature] = field(default_factory=list)
    faces: list[Face] = field(default_factory=list)
    type: str = field(default="S2FeatureCollection", init=False)


VectorFeatures = VectorFeature | S2Feature
JSONCollection = Feature | VectorFeature | FeatureCollection | S2Feature | S2FeatureCollection


def iter_points(geometry: VectorGeometry):
    """Yield every vertex of a geometry, outer to inner, in storage order."""
    gtype = geometry.type
    coords = geometry.coordinates
    if gtype == GeometryType.POINT:
        yield coords
    elif gtype in (GeometryType.MULTI_POINT, GeometryType.LINE_STRING):
        yield from coords
    elif gtype in (GeometryType.MULTI_LINE_STRING, GeometryType.POLYGON):
        for line in coords:
            yield from line
    elif gtype == GeometryType.MULTI_POLYGON:
        for polygon in coords:
            for line in polygon:
                yield from line
    else:
        raise ValueError(f"Invalid vector geometry type: {gtype}")


def is_empty(geometry: VectorGeometry) -> bool:
    """True when a non-point geometry has lost all of its coordinates."""
    if geometry.type == GeometryType.POINT:
        return False
    return len(geometry.coordinates) == 0
