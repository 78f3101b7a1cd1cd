"""Tests for line/point clipping and the quad split of a tile."""

from __future__ import annotations

import pytest
from shapely.geometry import Polygon

from s2tiles.geometry.clip import (
    clip_line,
    clip_line_string,
    clip_multi_line_string,
    clip_multi_point,
    clip_multi_polygon,
    clip_point,
    clip_polygon,
    split_tile,
)
from s2tiles.geometry.types import (
    GeometryType,
    LineStringGeometry,
    MultiLineStringGeometry,
    MultiPointGeometry,
    MultiPolygonGeometry,
    PointGeometry,
    PolygonGeometry,
    VectorPoint,
)
from s2tiles.s2.cell_id import from_face
from s2tiles.tile import Tile
from tests.conftest import points, unit_feature


def _diagonal_line():
    return [
        VectorPoint(0, 0, 0),
        VectorPoint(5, 5, 4, {"a": 1}),
        VectorPoint(10, 10, -2, {"a": 2}),
        VectorPoint(15, 15, 3, {"a": 3}),
    ]


def test_clip_point():
    geometry = PointGeometry(VectorPoint(0.5, 0.5))
    assert clip_point(geometry, 0, 0, 1) == geometry
    assert clip_point(geometry, 0, 0, 0.1) is None


def test_clip_point_range_is_half_open():
    geometry = PointGeometry(VectorPoint(0.5, 0.5))
    assert clip_point(geometry, 1, 0, 0.5) is None
    assert clip_point(geometry, 1, 0.5, 1) is not None


def test_clip_line_simple():
    res = clip_line(_diagonal_line(), (0, 0, 10.5, 10.5), False, 0, 0)
    assert len(res) == 1
    assert res[0].line == [
        VectorPoint(0, 0, 0),
        VectorPoint(5, 5, 4, {"a": 1}),
        VectorPoint(10, 10, -2, {"a": 2}),
        VectorPoint(10.5, 10.5, -2, {"a": 3}, 1),
    ]
    assert res[0].offset == 0
    assert res[0].vec_bbox == (0, 0, 10.5, 10.5, -2, 4)


def test_clip_line_simple_polygon_is_closed():
    res = clip_line(_diagonal_line(), (0, 0, 10.5, 10.5), True, 0, 0)
    assert len(res) == 1
    assert len(res[0].line) == 5
    assert res[0].line[-1] == VectorPoint(0, 0, 0)


def test_clip_line_starts_outside_left():
    line = _diagonal_line()
    line[0].t = 1
    res = clip_line(line, (2.5, 2.5, 10.5, 10.5), False, 0, 0.5)
    assert len(res) == 1
    assert res[0].line == [
        VectorPoint(2, 2, 4, {"a": 1}, 1),
        VectorPoint(5, 5, 4, {"a": 1}),
        VectorPoint(10, 10, -2, {"a": 2}),
        VectorPoint(11, 11, -2, {"a": 3}, 1),
    ]
    assert res[0].offset == pytest.approx(2.8284271247461903)
    assert res[0].vec_bbox == (2, 2, 11, 11, -2, 4)

    polygon = clip_line(line, (2.5, 2.5, 10.5, 10.5), True, 0, 0.5)
    assert polygon[0].line[-1] == VectorPoint(2, 2, 4, {"a": 1}, 1)


def test_clip_line_starts_outside_right():
    line = list(reversed(_diagonal_line()))
    res = clip_line(line, (2.5, 2.5, 10.5, 10.5), False, 0, 0)
    assert len(res) == 1
    assert res[0].line == [
        VectorPoint(10.5, 10.5, -2, {"a": 2}, 1),
        VectorPoint(10, 10, -2, {"a": 2}),
        VectorPoint(5, 5, 4, {"a": 1}),
        VectorPoint(2.5, 2.5, 0, {"a": 1}, 1),
    ]
    assert res[0].offset == pytest.approx(6.363961030678928)
    assert res[0].vec_bbox == (2.5, 2.5, 10.5, 10.5, -2, 4)


def test_clip_line_only_vertically():
    line = [
        VectorPoint(4, 0, 0),
        VectorPoint(5, 5, 4, {"a": 1}),
        VectorPoint(7, 10, -2, {"a": 2}),
        VectorPoint(9, 15, 3, {"a": 3}),
    ]
    res = clip_line(line, (2.5, 2.5, 10.5, 10.5), False, 0, 0)
    assert len(res) == 1
    first, *_, last = res[0].line
    assert (first.x, first.y, first.z, first.m) == (4.5, 2.5, 4, {"a": 1})
    assert (last.x, last.y, last.z, last.m) == (pytest.approx(7.2), 10.5, -2, {"a": 3})
    assert res[0].offset == pytest.approx(2.5495097567963922)


def test_clip_line_string_returns_pieces():
    # leaves and re-enters the band [0, 1] on x
    line = LineStringGeometry(points([(0.5, 0.0), (2.0, 0.0), (2.0, 1.0), (0.5, 1.0)]))
    clipped = clip_line_string(line, 0, 0, 1)
    assert clipped.type == GeometryType.MULTI_LINE_STRING
    assert len(clipped.coordinates) == 2
    assert [(p.x, p.y) for p in clipped.coordinates[0]] == [(0.5, 0.0), (1.0, 0.0)]
    assert [(p.x, p.y) for p in clipped.coordinates[1]] == [(1.0, 1.0), (0.5, 1.0)]
    assert clipped.offset == [0, pytest.approx(3.5)]


def test_clip_line_string_outside_is_none():
    line = LineStringGeometry(points([(2.0, 0.0), (3.0, 0.0)]))
    assert clip_line_string(line, 0, 0, 1) is None


def test_split_tile_quadrants(quadrant_points):
    tile = Tile(from_face(0))
    for feature in quadrant_points:
        tile.add_feature(feature)

    children = split_tile(tile)
    assert [child.id for child in children] == [
        288230376151711744,
        2017612633061982208,
        864691128455135232,
        1441151880758558720,
    ]
    expected = [(0.25, 0.25), (0.75, 0.25), (0.25, 0.75), (0.75, 0.75)]
    for child, (x, y) in zip(children, expected):
        assert child.tile.zoom == 1
        features = child.tile.layers["default"].features
        assert len(features) == 1
        p = features[0].geometry.coordinates
        assert (p.x, p.y) == (x, y)
        assert features[0].properties == {"a": 2}


def test_split_tile_keeps_layer_names():
    tile = Tile(from_face(0))
    feature = unit_feature(PointGeometry(VectorPoint(0.1, 0.1), vec_bbox=(0.1, 0.1, 0.1, 0.1)))
    tile.add_feature(feature, "roads")
    children = split_tile(tile)
    assert list(children[0].tile.layers) == ["roads"]
    assert all(child.tile.is_empty() for child in children[1:])


def test_split_tile_polygon_area_is_conserved():
    ring = points([(0.1, 0.1), (0.9, 0.1), (0.9, 0.9), (0.1, 0.9), (0.1, 0.1)])
    tile = Tile(from_face(0))
    tile.add_feature(unit_feature(PolygonGeometry([ring], vec_bbox=(0.1, 0.1, 0.9, 0.9))))

    children = split_tile(tile, 0)
    area = 0.0
    for child in children:
        (feature,) = child.tile.layers["default"].features
        assert feature.geometry.type == GeometryType.POLYGON
        outer = feature.geometry.coordinates[0]
        area += Polygon([(p.x, p.y) for p in outer]).area
    assert area == pytest.approx(0.64)


def test_split_tile_does_not_mutate_parent(quadrant_points):
    tile = Tile(from_face(0))
    for feature in quadrant_points:
        tile.add_feature(feature)
    split_tile(tile)
    p = tile.layers["default"].features[0].geometry.coordinates
    assert (p.x, p.y) == (0.25, 0.25)


def test_clip_multi_point():
    geometry = MultiPointGeometry(points([(0.1, 0.2), (0.5, 0.9), (0.7, 0.4)]))

    left = clip_multi_point(geometry, 0, 0, 0.5)
    assert [(p.x, p.y) for p in left.coordinates] == [(0.1, 0.2)]
    assert left.vec_bbox == (0.1, 0.2, 0.1, 0.2)

    right = clip_multi_point(geometry, 0, 0.5, 1)
    assert [(p.x, p.y) for p in right.coordinates] == [(0.5, 0.9), (0.7, 0.4)]
    assert right.vec_bbox == (0.5, 0.4, 0.7, 0.9)

    assert clip_multi_point(geometry, 0, 2, 3) is None


def test_clip_multi_line_string_offsets():
    geometry = MultiLineStringGeometry(
        [points([(2, 0), (0, 0)]), points([(0, 1), (0.5, 1)])],
        offset=[5, 0],
    )
    clipped = clip_multi_line_string(geometry, 0, 0, 1)
    assert clipped.type == GeometryType.MULTI_LINE_STRING
    assert [[(p.x, p.y) for p in line] for line in clipped.coordinates] == [
        [(1, 0), (0, 0)],
        [(0, 1), (0.5, 1)],
    ]
    # the first line enters one unit in, on top of its existing offset
    assert clipped.offset == [6, 0]


def test_clip_polygon_outside_is_none():
    square = PolygonGeometry([points([(2, 2), (3, 2), (3, 3), (2, 3), (2, 2)])])
    assert clip_polygon(square, 0, 0, 1) is None
    assert clip_polygon(square, 1, 0, 1) is None


def test_clip_multi_polygon():
    inside = [points([(0.1, 0.1), (0.3, 0.1), (0.3, 0.3), (0.1, 0.3), (0.1, 0.1)])]
    outside = [points([(2, 2), (3, 2), (3, 3), (2, 3), (2, 2)])]
    with_hole = [
        points([(0.1, 0.1), (0.9, 0.1), (0.9, 0.9), (0.1, 0.9), (0.1, 0.1)]),
        points([(0.4, 0.4), (0.4, 0.6), (0.6, 0.6), (0.6, 0.4), (0.4, 0.4)]),
    ]
    geometry = MultiPolygonGeometry([inside, outside, with_hole], offset=[[0], [3], [7, 2]])

    clipped = clip_multi_polygon(geometry, 0, 0, 1)
    assert clipped.type == GeometryType.MULTI_POLYGON
    assert len(clipped.coordinates) == 2
    assert [len(polygon) for polygon in clipped.coordinates] == [1, 2]
    assert clipped.offset == [[0], [7, 2]]

    assert clip_multi_polygon(geometry, 0, 5, 6) is None


def test_point_on_far_face_edge_is_not_split():
    # child ranges are half-open, so x == 1 falls outside every right-hand child
    tile = Tile(from_face(0))
    tile.add_feature(unit_feature(PointGeometry(VectorPoint(1.0, 0.25))))
    children = split_tile(tile)
    assert all(child.tile.is_empty() for child in children)
