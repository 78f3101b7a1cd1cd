"""Shared test fixtures."""

from __future__ import annotations

import pytest

from s2tiles.geometry.types import (
    Feature,
    FeatureCollection,
    LineStringGeometry,
    PointGeometry,
    PolygonGeometry,
    VectorFeature,
    VectorPoint,
)

SIMPLIFY_MAXZOOM = 16
TOLERANCE = 3 / 4096

# Face-0 unit-square geometry
SQUARE_LINE = [(0.25, 0.25), (0.75, 0.25), (0.75, 0.75), (0.25, 0.75)]
INNER_RING = [(0.5, 0.5), (0.5, 0.25), (0.75, 0.25), (0.75, 0.5), (0.5, 0.5)]

# GeoJSON in lon/lat degrees
POINT_GEOJSON = {"type": "Point", "coordinates": [10.0, 20.0]}

LINE_GEOJSON = {
    "type": "LineString",
    "coordinates": [[-10.0, -10.0], [0.0, 5.0], [10.0, 10.0]],
}

# Straddles the face 0 / face 1 boundary at 45 degrees east
CROSSING_LINE_GEOJSON = {
    "type": "LineString",
    "coordinates": [[30.0, 0.0], [60.0, 0.0]],
}

SQUARE_POLYGON_GEOJSON = {
    "type": "Polygon",
    "coordinates": [
        [[-20.0, -20.0], [20.0, -20.0], [20.0, 20.0], [-20.0, 20.0], [-20.0, -20.0]],
        [[-5.0, -5.0], [-5.0, 5.0], [5.0, 5.0], [5.0, -5.0], [-5.0, -5.0]],
    ],
}


def points(coords: list[tuple[float, float]]) -> list[VectorPoint]:
    return [VectorPoint(x, y) for x, y in coords]


def unit_feature(geometry, **kwargs) -> VectorFeature:
    return VectorFeature(geometry, properties=kwargs.pop("properties", {"a": 2}), **kwargs)


@pytest.fixture
def square_line() -> LineStringGeometry:
    return LineStringGeometry(points(SQUARE_LINE), vec_bbox=(0.25, 0.25, 0.75, 0.75))


@pytest.fixture
def square_polygon() -> PolygonGeometry:
    return PolygonGeometry(
        [points(SQUARE_LINE), points(INNER_RING)], vec_bbox=(0.25, 0.25, 0.75, 0.75)
    )


@pytest.fixture
def quadrant_points() -> list[VectorFeature]:
    """One point in the middle of each level-1 quadrant of a face."""
    return [
        unit_feature(PointGeometry(VectorPoint(x, y), vec_bbox=(x, y, x, y)))
        for x, y in ((0.25, 0.25), (0.75, 0.75), (0.75, 0.25), (0.25, 0.75))
    ]


@pytest.fixture
def point_feature() -> Feature:
    return Feature(POINT_GEOJSON, properties={"name": "point"}, id=1)


@pytest.fixture
def line_feature() -> Feature:
    return Feature(LINE_GEOJSON, properties={"name": "line"}, id=2)


@pytest.fixture
def polygon_feature() -> Feature:
    return Feature(SQUARE_POLYGON_GEOJSON, properties={"name": "square"}, id=3)


@pytest.fixture
def feature_collection(point_feature, line_feature, polygon_feature) -> FeatureCollection:
    return FeatureCollection([point_feature, line_feature, polygon_feature])
