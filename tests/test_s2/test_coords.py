"""Tests for the cube-face coordinate transforms."""

from __future__ import annotations

import pytest

from s2tiles.geometry.types import VectorPoint
from s2tiles.s2 import coords
from s2tiles.s2.coords import K_LIMIT_IJ


def test_ij_st_round_trip_limits():
    assert coords.ij_to_st(0) == 0
    assert coords.ij_to_st(1) == 1 / K_LIMIT_IJ
    assert coords.ij_to_st(K_LIMIT_IJ - 1) == 1 - 1 / K_LIMIT_IJ
    assert coords.st_to_ij(0) == 0
    assert coords.st_to_ij(1 / K_LIMIT_IJ) == 1
    assert coords.st_to_ij(1 - 1 / K_LIMIT_IJ) == K_LIMIT_IJ - 1


def test_st_to_ij_clamps():
    assert coords.st_to_ij(-0.5) == 0
    assert coords.st_to_ij(1.0) == K_LIMIT_IJ - 1
    assert coords.st_to_ij(2.0) == K_LIMIT_IJ - 1


def test_si_ti_to_st():
    assert coords.si_ti_to_st(0) == 0
    assert coords.si_ti_to_st(1) == 1 / 2_147_483_648
    assert coords.si_ti_to_st(2_147_483_647) == 0.9999999995343387


def test_quadratic_exact_fixed_points():
    assert coords.quadratic_st_to_uv(0) == -1
    assert coords.quadratic_st_to_uv(0.5) == 0
    assert coords.quadratic_st_to_uv(1) == 1
    assert coords.quadratic_uv_to_st(-1) == 0
    assert coords.quadratic_uv_to_st(0) == 0.5
    assert coords.quadratic_uv_to_st(1) == 1


def test_linear_and_tan():
    assert coords.linear_st_to_uv(0) == -1
    assert coords.linear_st_to_uv(0.5) == 0
    assert coords.linear_uv_to_st(1) == 1
    assert coords.tan_st_to_uv(0.5) == 0
    assert coords.tan_st_to_uv(0) == pytest.approx(-1)
    assert coords.tan_uv_to_st(0) == 0.5
    assert coords.tan_uv_to_st(1) == 1


@pytest.mark.parametrize("s", [0.0, 0.1, 0.3, 0.5, 0.77, 1.0])
def test_quadratic_inverse(s):
    assert coords.quadratic_uv_to_st(coords.quadratic_st_to_uv(s)) == pytest.approx(s)


@pytest.mark.parametrize(
    "xyz, face",
    [
        ((1, 0, 0), 0),
        ((0, 1, 0), 1),
        ((0, 0, 1), 2),
        ((-1, 0, 0), 3),
        ((0, -1, 0), 4),
        ((0, 0, -1), 5),
    ],
)
def test_xyz_to_face(xyz, face):
    assert coords.xyz_to_face(VectorPoint(*xyz)) == face
    assert coords.xyz_to_face_uv(VectorPoint(*xyz)) == (face, 0, 0)


def test_face_uv_to_xyz_centres():
    assert coords.face_uv_to_xyz(0, 0, 0) == VectorPoint(1, 0, 0)
    assert coords.face_uv_to_xyz(1, 0, 0) == VectorPoint(0, 1, 0)
    assert coords.face_uv_to_xyz(2, 0, 0) == VectorPoint(0, 0, 1)
    assert coords.face_uv_to_xyz(3, 0, 0) == VectorPoint(-1, 0, 0)
    assert coords.face_uv_to_xyz(4, 0, 0) == VectorPoint(0, -1, 0)
    assert coords.face_uv_to_xyz(5, 0, 0) == VectorPoint(0, 0, -1)


@pytest.mark.parametrize("face", range(6))
def test_face_uv_xyz_inverse(face):
    xyz = coords.face_uv_to_xyz(face, 0.3, -0.6)
    u, v = coords.face_xyz_to_uv(face, xyz)
    assert (u, v) == pytest.approx((0.3, -0.6))
    assert coords.xyz_to_face(xyz) == face


def test_lonlat_xyz():
    assert coords.lonlat_to_xyz(VectorPoint(0, 0)) == VectorPoint(1, 0, 0)
    p = coords.lonlat_to_xyz(VectorPoint(90, 0))
    assert (p.x, p.y, p.z) == pytest.approx((0, 1, 0))
    p = coords.lonlat_to_xyz(VectorPoint(0, -90))
    assert (p.x, p.y, p.z) == pytest.approx((0, 0, -1))


def test_xyz_to_lonlat():
    assert coords.xyz_to_lonlat(VectorPoint(1, 0, 0)) == VectorPoint(0, 0)
    assert coords.xyz_to_lonlat(VectorPoint(0, 1, 0)) == VectorPoint(90, 0)
    assert coords.xyz_to_lonlat(VectorPoint(0, 0, 1)) == VectorPoint(0, 90)
    assert coords.xyz_to_lonlat(VectorPoint(-1, 0, 0)) == VectorPoint(180, 0)
    assert coords.xyz_to_lonlat(VectorPoint(0, -1, 0)) == VectorPoint(-90, 0)
    assert coords.xyz_to_lonlat(VectorPoint(0, 0, -1)) == VectorPoint(0, -90)


def test_tile_xy_from_st_and_uv():
    assert coords.tile_xy_from_st_zoom(0, 0, 0) == (0, 0)
    assert coords.tile_xy_from_st_zoom(0.5, 0, 1) == (1, 0)
    assert coords.tile_xy_from_st_zoom(0.5, 0.5, 2) == (2, 2)
    assert coords.tile_xy_from_uv_zoom(-1, -1, 0) == (0, 0)
    assert coords.tile_xy_from_uv_zoom(0, -1, 1) == (1, 0)
    assert coords.tile_xy_from_uv_zoom(0, 0, 2) == (2, 2)


def test_bbox_st_and_uv():
    assert coords.bbox_st(0, 0, 0) == (0, 0, 1, 1)
    assert coords.bbox_st(1, 0, 1) == (0.5, 0, 1, 0.5)
    assert coords.bbox_st(2, 0, 2) == (0.5, 0, 0.75, 0.25)
    assert coords.bbox_uv(0, 0, 0) == (-1, -1, 1, 1)
    assert coords.bbox_uv(1, 0, 1) == (0, -1, 1, 0)
    assert coords.bbox_uv(2, 0, 2) == (0, -1, 0.5, -0.5)


def test_neighbors_ij_wraps_faces():
    assert coords.neighbors_ij(0, 0, 0) == [
        (5, 0, 1073741823),
        (0, 1, 0),
        (0, 0, 1),
        (4, 1073741823, 1073741823),
    ]


def test_neighbors_ij_at_level():
    assert coords.neighbors_ij(0, 1, 1, 3) == [(0, 1, 0), (0, 2, 1), (0, 1, 2), (0, 0, 1)]


def test_edge_normals():
    assert coords.get_u_norm(0, -1) == VectorPoint(-1, -1, 0)
    assert coords.get_u_norm(0, 1) == VectorPoint(1, -1, 0)
    assert coords.get_u_norm(5, 0) == VectorPoint(0, -1, 0)
    assert coords.get_v_norm(0, -1) == VectorPoint(1, 0, 1)
    assert coords.get_v_norm(0, 1) == VectorPoint(-1, 0, 1)
    assert coords.get_v_norm(2, 0) == VectorPoint(0, -1, 0)
