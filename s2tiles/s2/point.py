"""Composed conversions between unit-sphere points and face coordinates."""

from __future__ import annotations

import math
from typing import Any

from s2tiles.geometry.types import Face, VectorPoint
from s2tiles.s2.coords import (
    face_uv_to_xyz,
    ij_to_st,
    lonlat_to_xyz,
    st_to_ij,
    st_to_uv,
    uv_to_st,
    xyz_to_face_uv,
    xyz_to_lonlat,
)


def normalize(xyz: VectorPoint) -> VectorPoint:
    """Scale to unit length. The zero vector is returned unchanged."""
    z = xyz.z if xyz.z is not None else 0.0
    length = math.sqrt(xyz.x * xyz.x + xyz.y * xyz.y + z * z)
    if length == 0:
        return VectorPoint(xyz.x, xyz.y, z, xyz.m)
    return VectorPoint(xyz.x / length, xyz.y / length, z / length, xyz.m)


def invert(xyz: VectorPoint) -> VectorPoint:
    z = xyz.z if xyz.z is not None else 0.0
    return VectorPoint(-xyz.x, -xyz.y, -z, xyz.m)


def from_lonlat(ll: VectorPoint) -> VectorPoint:
    return lonlat_to_xyz(ll)


def from_uv(face: Face, u: float, v: float, m: Any = None) -> VectorPoint:
    return normalize(face_uv_to_xyz(face, u, v, m))


def from_st(face: Face, s: float, t: float, m: Any = None) -> VectorPoint:
    return from_uv(face, st_to_uv(s), st_to_uv(t), m)


def from_ij(face: Face, i: int, j: int) -> VectorPoint:
    return from_st(face, ij_to_st(i), ij_to_st(j))


def to_uv(xyz: VectorPoint) -> tuple[Face, float, float]:
    return xyz_to_face_uv(xyz)


def to_st(xyz: VectorPoint) -> tuple[Face, float, float]:
    face, u, v = to_uv(xyz)
    return face, uv_to_st(u), uv_to_st(v)


def to_ij(xyz: VectorPoint, level: int | None = None) -> tuple[Face, int, int]:
    """Leaf i-j of a point, optionally shifted down to ``level``."""
    face, s, t = to_st(xyz)
    i = st_to_ij(s)
    j = st_to_ij(t)
    if level is not None:
        i >>= 30 - level
        j >>= 30 - level
    return face, i, j


def to_lonlat(xyz: VectorPoint) -> VectorPoint:
    return xyz_to_lonlat(xyz)
