"""Cube-face coordinate systems.

Per face the chain is::

    I-J (integer grid, 30 bits)  <->  S-T ([0, 1])  <->  U-V ([-1, 1])  <->  XYZ  <->  lon/lat

XYZ points follow the left-hand rule used by the cell ids. Every function here
is total over its domain and never raises.
"""

from __future__ import annotations

import math
from typing import Any

from s2tiles.geometry.types import BBox, Face, VectorPoint

K_LIMIT_IJ = 1 << 30
K_MAX_SIZE = K_LIMIT_IJ


def linear_st_to_uv(s: float) -> float:
    return 2 * s - 1


def linear_uv_to_st(u: float) -> float:
    return 0.5 * (u + 1)


def tan_st_to_uv(s: float) -> float:
    return math.tan(math.pi / 2 * s - math.pi / 4)


def tan_uv_to_st(u: float) -> float:
    return 2 * (1 / math.pi) * (math.atan(u) + math.pi / 4)


def quadratic_st_to_uv(s: float) -> float:
    """Quadratic warp, symmetric about 0.5: f(0) = -1, f(0.5) = 0, f(1) = 1."""
    if s >= 0.5:
        return (1 / 3) * (4 * s * s - 1)
    return (1 / 3) * (1 - 4 * (1 - s) * (1 - s))


def quadratic_uv_to_st(u: float) -> float:
    if u >= 0:
        return 0.5 * math.sqrt(1 + 3 * u)
    return 1 - 0.5 * math.sqrt(1 - 3 * u)


st_to_uv = quadratic_st_to_uv
uv_to_st = quadratic_uv_to_st


def st_to_ij(s: float) -> int:
    return max(0, min(K_LIMIT_IJ - 1, math.floor(K_LIMIT_IJ * s)))


def ij_to_st(i: int) -> float:
    return i / K_LIMIT_IJ


def si_ti_to_st(si: int) -> float:
    return (1 / 2_147_483_648) * si


def face_uv_to_xyz(face: Face, u: float, v: float, m: Any = None) -> VectorPoint:
    if face == 0:
        return VectorPoint(1, u, v, m)
    if face == 1:
        return VectorPoint(-u, 1, v, m)
    if face == 2:
        return VectorPoint(-u, -v, 1, m)
    if face == 3:
        return VectorPoint(-1, -v, -u, m)
    if face == 4:
        return VectorPoint(v, -1, -u, m)
    return VectorPoint(v, u, -1, m)


def face_xyz_to_uv(face: Face, xyz: VectorPoint) -> tuple[float, float]:
    x, y = xyz.x, xyz.y
    z = xyz.z if xyz.z is not None else 1
    if face == 0:
        return y / x, z / x
    if face == 1:
        return -x / y, z / y
    if face == 2:
        return -x / z, -y / z
    if face == 3:
        return z / x, y / x
    if face == 4:
        return z / y, -x / y
    return -y / z, -x / z


def xyz_to_face(xyz: VectorPoint) -> Face:
    """Face of the dominant axis; negative axes map to faces 3-5."""
    coords = (xyz.x, xyz.y, xyz.z if xyz.z is not None else 1)
    ax, ay, az = (abs(n) for n in coords)
    if ax > ay:
        face = 0 if ax > az else 2
    else:
        face = 1 if ay > az else 2
    if coords[face] < 0:
        face += 3
    return face


def xyz_to_face_uv(xyz: VectorPoint) -> tuple[Face, float, float]:
    face = xyz_to_face(xyz)
    u, v = face_xyz_to_uv(face, xyz)
    return face, u, v


def xyz_to_lonlat(xyz: VectorPoint) -> VectorPoint:
    x, y = xyz.x, xyz.y
    z = xyz.z if xyz.z is not None else 1
    lon = math.degrees(math.atan2(y, x))
    lat = math.degrees(math.atan2(z, math.sqrt(x * x + y * y)))
    return VectorPoint(lon, lat, m=xyz.m)


def lonlat_to_xyz(ll: VectorPoint) -> VectorPoint:
    lon = math.radians(ll.x)
    lat = math.radians(ll.y)
    return VectorPoint(
        math.cos(lat) * math.cos(lon),
        math.cos(lat) * math.sin(lon),
        math.sin(lat),
        ll.m,
    )


def tile_xy_from_st_zoom(s: float, t: float, zoom: int) -> tuple[int, int]:
    division = (2 / (1 << zoom)) * 0.5
    return math.floor(s / division), math.floor(t / division)


def tile_xy_from_uv_zoom(u: float, v: float, zoom: int) -> tuple[int, int]:
    return tile_xy_from_st_zoom(quadratic_uv_to_st(u), quadratic_uv_to_st(v), zoom)


def bbox_uv(u: int, v: int, zoom: int) -> BBox:
    """Linear U-V bounds of tile (zoom, u, v)."""
    division = 2 / (1 << zoom)
    return (
        division * u - 1,
        division * v - 1,
        division * (u + 1) - 1,
        division * (v + 1) - 1,
    )


def bbox_st(s: int, t: int, zoom: int) -> BBox:
    division = (2 / (1 << zoom)) * 0.5
    return (division * s, division * t, division * (s + 1), division * (t + 1))


def wrap_ij(face: Face, i: int, j: int) -> tuple[Face, int, int]:
    """Reproject a leaf i-j that may sit just past the face edge onto the right face.

    The coordinates are clamped to one leaf outside the face, pushed through
    XYZ with a linear projection and brought back on whichever face the point
    lands on.
    """
    i = max(-1, min(K_MAX_SIZE, i))
    j = max(-1, min(K_MAX_SIZE, j))
    scale = 1 / K_MAX_SIZE
    limit = 1 + 2.2204460492503131e-16
    u = max(-limit, min(limit, scale * (2 * (i - K_MAX_SIZE / 2) + 1)))
    v = max(-limit, min(limit, scale * (2 * (j - K_MAX_SIZE / 2) + 1)))
    n_face, n_u, n_v = xyz_to_face_uv(face_uv_to_xyz(face, u, v))
    return n_face, st_to_ij(0.5 * (n_u + 1)), st_to_ij(0.5 * (n_v + 1))


def neighbors_ij(face: Face, i: int, j: int, level: int = 30) -> list[tuple[Face, int, int]]:
    """Face-i-j of the down, right, up and left neighbours at ``level``."""
    shift = 30 - level
    size = 1 << shift
    i <<= shift
    j <<= shift

    def resolve(ni: int, nj: int, same_face: bool) -> tuple[Face, int, int]:
        if same_face:
            return face, ni >> shift, nj >> shift
        n_face, wi, wj = wrap_ij(face, ni, nj)
        return n_face, wi >> shift, wj >> shift

    return [
        resolve(i, j - size, j - size >= 0),
        resolve(i + size, j, i + size < K_MAX_SIZE),
        resolve(i, j + size, j + size < K_MAX_SIZE),
        resolve(i - size, j, i - size >= 0),
    ]


def get_u_norm(face: Face, u: float) -> VectorPoint:
    """Right-handed normal of the edge along +v at ``u`` (not unit length)."""
    if face == 0:
        return VectorPoint(u, -1.0, 0.0)
    if face == 1:
        return VectorPoint(1.0, u, 0.0)
    if face == 2:
        return VectorPoint(1.0, 0.0, u)
    if face == 3:
        return VectorPoint(-u, 0.0, 1.0)
    if face == 4:
        return VectorPoint(0.0, -u, 1.0)
    return VectorPoint(0.0, -1.0, -u)


def get_v_norm(face: Face, v: float) -> VectorPoint:
    """Right-handed normal of the edge along +u at ``v`` (not unit length)."""
    if face == 0:
        return VectorPoint(-v, 0.0, 1.0)
    if face == 1:
        return VectorPoint(0.0, -v, 1.0)
    if face == 2:
        return VectorPoint(0.0, -1.0, -v)
    if face == 3:
        return VectorPoint(v, -1.0, 0.0)
    if face == 4:
        return VectorPoint(1.0, v, 0.0)
    return VectorPoint(1.0, 0.0, v)
