"""64-bit cell ids on the cube sphere.

A cell id is a plain ``int`` laid out as::

    [face: 3 bits][position: 2 bits per level][1][0 ...]

The position walks a Hilbert curve over the face; the single trailing ``1``
(the sentinel) marks the level, so for a cell at level ``k`` the lowest set
bit is ``2 * (30 - k)``. A parent id sits in the middle of the id range of
its descendants, which makes containment an interval test.

Alternating faces use opposite Hilbert orientations so every face keeps a
right-handed frame.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any

import numpy as np

from s2tiles.geometry.types import BBox, Face, VectorPoint
from s2tiles.s2 import point as s2point
from s2tiles.s2.coords import (
    K_MAX_SIZE,
    face_uv_to_xyz,
    get_u_norm,
    get_v_norm,
    ij_to_st,
    lonlat_to_xyz,
    quadratic_uv_to_st,
    si_ti_to_st,
    st_to_ij,
    st_to_uv,
    wrap_ij,
    xyz_to_lonlat,
)

logger = logging.getLogger(__name__)

FACE_BITS = 3
NUM_FACES = 6
MAX_LEVEL = 30
POS_BITS = 61
K_WRAP_OFFSET = NUM_FACES << POS_BITS
MASK_64 = (1 << 64) - 1
# Sentinel positions that flip the Hilbert orientation (odd levels)
_SWAP_MASK = 1229782938247303424

_LOOKUP_BITS = 4
_POS_TO_ORIENTATION = (1, 0, 0, 3)
_POS_TO_IJ = (
    (0, 1, 3, 2),
    (0, 2, 3, 1),
    (3, 2, 0, 1),
    (3, 1, 0, 2),
)


def _init_lookup_cell(
    level: int,
    i: int,
    j: int,
    orig_orientation: int,
    pos: int,
    orientation: int,
    lookup_pos: np.ndarray,
    lookup_ij: np.ndarray,
) -> None:
    if level == _LOOKUP_BITS:
        ij = (i << 4) + j
        lookup_pos[(ij << 2) + orig_orientation] = (pos << 2) + orientation
        lookup_ij[(pos << 2) + orig_orientation] = (ij << 2) + orientation
        return
    level += 1
    i <<= 1
    j <<= 1
    pos <<= 2
    r = _POS_TO_IJ[orientation]
    for index in range(4):
        _init_lookup_cell(
            level,
            i + (r[index] >> 1),
            j + (r[index] & 1),
            orig_orientation,
            pos + index,
            orientation ^ _POS_TO_ORIENTATION[index],
            lookup_pos,
            lookup_ij,
        )


@functools.lru_cache(maxsize=None)
def _lookup_tables() -> tuple[np.ndarray, np.ndarray]:
    """Build the Hilbert tables once per process.

    ``lookup_pos`` maps ``iiiijjjjoo`` to ``ppppppppoo`` and ``lookup_ij`` the
    reverse (i, j, position and orientation bits). Both are read-only. A
    concurrent first call may build them twice; the result is identical.
    """
    size = 1 << (2 * _LOOKUP_BITS + 2)
    lookup_pos = np.zeros(size, dtype=np.uint16)
    lookup_ij = np.zeros(size, dtype=np.uint16)
    for orientation in range(4):
        _init_lookup_cell(0, 0, 0, orientation, 0, orientation, lookup_pos, lookup_ij)
    lookup_pos.flags.writeable = False
    lookup_ij.flags.writeable = False
    logger.debug("Built Hilbert lookup tables (%d entries each)", size)
    return lookup_pos, lookup_ij


def _check_face(face: int) -> None:
    if not 0 <= face < NUM_FACES:
        raise ValueError(f"face must be in 0..5, got {face}")


def _check_level(level: int) -> None:
    if not 0 <= level <= MAX_LEVEL:
        raise ValueError(f"level must be in 0..30, got {level}")


def _lsb(cid: int) -> int:
    return cid & -cid


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def from_face(face: Face) -> int:
    """Level 0 cell covering a whole face."""
    _check_face(face)
    return (face << POS_BITS) + (1 << 60)


def from_face_pos_level(face: Face, pos: int, level: int) -> int:
    _check_face(face)
    return parent((face << POS_BITS) + (pos | 1), level)


def from_distance(distance: int, level: int = MAX_LEVEL) -> int:
    shift = 2 * (MAX_LEVEL - level)
    return (distance << (shift + 1)) + (1 << shift)


def from_ij(face: Face, i: int, j: int, level: int | None = None) -> int:
    """Cell containing leaf (i, j) on ``face``.

    With ``level`` the i-j are read at that level and the result is the cell
    at that level.
    """
    _check_face(face)
    lookup_pos, _ = _lookup_tables()
    if level is not None:
        _check_level(level)
        i <<= MAX_LEVEL - level
        j <<= MAX_LEVEL - level
    n = face << 60
    bits = face & 1
    # 4 bits of i and j per step into 8 bits of curve position
    for k in range(7, -1, -1):
        kk = k * 4
        bits += ((i >> kk) & 15) << 6
        bits += ((j >> kk) & 15) << 2
        bits = int(lookup_pos[bits])
        n |= (bits >> 2) << (k * 8)
        bits &= FACE_BITS
    cid = n * 2 + 1
    if level is not None:
        return parent(cid, level)
    return cid


def from_ij_wrap(face: Face, i: int, j: int) -> int:
    """Like ``from_ij`` but reprojects an i-j that fell off the face onto its neighbour."""
    n_face, n_i, n_j = wrap_ij(face, i, j)
    return from_ij(n_face, n_i, n_j)


def from_ij_same(face: Face, i: int, j: int, same_face: bool) -> int:
    if same_face:
        return from_ij(face, i, j)
    return from_ij_wrap(face, i, j)


def from_st(face: Face, s: float, t: float, level: int | None = None) -> int:
    cid = from_ij(face, st_to_ij(s), st_to_ij(t))
    if level is not None:
        return parent(cid, level)
    return cid


def from_uv(
    face: Face,
    u: float,
    v: float,
    level: int | None = None,
    uv_to_st: Callable[[float], float] = quadratic_uv_to_st,
) -> int:
    return from_st(face, uv_to_st(u), uv_to_st(v), level)


def from_s2_point(xyz: VectorPoint, level: int | None = None) -> int:
    face, i, j = s2point.to_ij(xyz)
    cid = from_ij(face, i, j)
    if level is not None:
        return parent(cid, level)
    return cid


def from_lonlat(ll: VectorPoint, level: int | None = None) -> int:
    return from_s2_point(lonlat_to_xyz(ll), level)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def to_ij(cid: int, level: int | None = None) -> tuple[Face, int, int, int]:
    """Return ``(face, i, j, orientation)`` of the cell's centre leaf.

    With ``level`` the i-j are shifted down to that level's grid.
    """
    _, lookup_ij = _lookup_tables()
    i = 0
    j = 0
    face = cid >> POS_BITS
    bits = face & 1
    # 8 bits of curve position per step into 4 bits each of i and j; the
    # first step only reads 4 bits so the face is skipped
    for k in range(7, -1, -1):
        nbits = 2 if k == 7 else 4
        bits += ((cid >> (k * 8 + 1)) & ((1 << (2 * nbits)) - 1)) << 2
        bits = int(lookup_ij[bits])
        i += (bits >> 6) << (k * 4)
        j += ((bits >> 2) & 15) << (k * 4)
        bits &= FACE_BITS

    if _lsb(cid) & _SWAP_MASK:
        bits ^= 1

    if level is not None:
        i >>= MAX_LEVEL - level
        j >>= MAX_LEVEL - level
    return face, i, j, bits


def to_face_ij(cid: int) -> tuple[Face, int, int, int]:
    """Return ``(face, zoom, i, j)`` with i-j on the cell's own level grid."""
    zoom = get_level(cid)
    face, i, j, _ = to_ij(cid, zoom)
    return face, zoom, i, j


def to_st(cid: int) -> tuple[Face, float, float]:
    face, i, j, _ = to_ij(cid)
    return face, ij_to_st(i), ij_to_st(j)


def to_uv(cid: int) -> tuple[Face, float, float]:
    face, s, t = to_st(cid)
    return face, st_to_uv(s), st_to_uv(t)


def to_s2_point(cid: int, m: Any = None) -> VectorPoint:
    face, u, v = to_uv(cid)
    return s2point.from_uv(face, u, v, m)


def to_lonlat(cid: int, m: Any = None) -> VectorPoint:
    return xyz_to_lonlat(to_s2_point(cid, m))


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


def get_face(cid: int) -> Face:
    return cid >> POS_BITS


def get_pos(cid: int) -> int:
    return cid & ((1 << POS_BITS) - 1)


def get_level(cid: int) -> int:
    if cid == 0:
        return 0
    low = _lsb(cid).bit_length() - 1
    return MAX_LEVEL - min(low, 60) // 2


def get_distance(cid: int, level: int | None = None) -> int:
    """Position of the cell along the curve, counted in cells of ``level``."""
    if level is None:
        level = get_level(cid)
    return cid >> (2 * (MAX_LEVEL - level) + 1)


def is_face(cid: int) -> bool:
    return cid & ((1 << 60) - 1) == 0


def is_leaf(cid: int) -> bool:
    return cid & 1 == 1


def child_position(cid: int, level: int) -> int:
    """Which of its parent's four children (0-3) the level-``level`` ancestor is."""
    return (cid >> (2 * (MAX_LEVEL - level) + 1)) & FACE_BITS


def size_ij(level: int) -> int:
    return 1 << (MAX_LEVEL - level)


def size_st(level: int) -> float:
    return ij_to_st(size_ij(level))


def get_size_ij(cid: int) -> int:
    return size_ij(get_level(cid))


def center_st(cid: int) -> tuple[Face, float, float]:
    face, i, j, _ = to_ij(cid)
    if cid & 1:
        delta = 1
    elif (i ^ (cid >> 2)) & 1:
        delta = 2
    else:
        delta = 0
    return face, si_ti_to_st(2 * i + delta), si_ti_to_st(2 * j + delta)


def bounds_st(cid: int, level: int | None = None) -> BBox:
    """S-T box ``(s_min, t_min, s_max, t_max)`` of the cell."""
    if level is None:
        level = get_level(cid)
    _, s, t = center_st(cid)
    half = size_st(level) * 0.5
    return (s - half, t - half, s + half, t + half)


def get_bound_uv(cid: int) -> BBox:
    """U-V bounds as ``(u_low, u_high, v_low, v_high)``."""
    _, i, j, _ = to_ij(cid)
    cell_size = get_size_ij(cid)
    i_low = i & -cell_size
    j_low = j & -cell_size
    return tuple(
        st_to_uv(ij_to_st(n)) for n in (i_low, i_low + cell_size, j_low, j_low + cell_size)
    )


def get_vertices_raw(cid: int) -> list[VectorPoint]:
    """Corners in CCW order (low-low, high-low, high-high, low-high in U-V), not normalized."""
    face = get_face(cid)
    u_low, u_high, v_low, v_high = get_bound_uv(cid)
    return [
        face_uv_to_xyz(face, u_low, v_low),
        face_uv_to_xyz(face, u_high, v_low),
        face_uv_to_xyz(face, u_high, v_high),
        face_uv_to_xyz(face, u_low, v_high),
    ]


def get_vertices(cid: int) -> list[VectorPoint]:
    return [s2point.normalize(p) for p in get_vertices_raw(cid)]


def get_edges_raw(cid: int) -> list[VectorPoint]:
    """Inward normals of the great circles through each edge k -> k+1."""
    face = get_face(cid)
    u_low, u_high, v_low, v_high = get_bound_uv(cid)
    return [
        get_v_norm(face, v_low),
        get_u_norm(face, u_high),
        s2point.invert(get_v_norm(face, v_high)),
        s2point.invert(get_u_norm(face, u_low)),
    ]


def get_edges(cid: int) -> list[VectorPoint]:
    return [s2point.normalize(p) for p in get_edges_raw(cid)]


# ---------------------------------------------------------------------------
# Hierarchy
# ---------------------------------------------------------------------------


def parent(cid: int, level: int | None = None) -> int:
    """Ancestor at ``level``, or the immediate parent."""
    if level is not None:
        _check_level(level)
        new_lsb = 1 << (2 * (MAX_LEVEL - level))
    else:
        new_lsb = _lsb(cid) << 2
    return (cid & -new_lsb) | new_lsb


def child(cid: int, pos: int) -> int:
    """Child 0-3 along the curve, one level deeper."""
    new_lsb = _lsb(cid) >> 2
    return cid + (2 * pos - FACE_BITS) * new_lsb


def children(cid: int, orientation: int = 0) -> list[int]:
    """The four children; positions 1 and 3 swap unless ``orientation`` is 1."""
    childs = [child(cid, 0), child(cid, 3), child(cid, 2), child(cid, 1)]
    if orientation == 0:
        childs[1], childs[3] = childs[3], childs[1]
    return childs


def children_ij(face: Face, level: int, i: int, j: int) -> tuple[int, int, int, int]:
    """Children of tile (face, level, i, j) as bottom-left, bottom-right, top-left, top-right."""
    i <<= 1
    j <<= 1
    return (
        from_ij(face, i, j, level + 1),
        from_ij(face, i + 1, j, level + 1),
        from_ij(face, i, j + 1, level + 1),
        from_ij(face, i + 1, j + 1, level + 1),
    )


def cell_range(cid: int) -> tuple[int, int]:
    """Inclusive range of every leaf id below the cell."""
    lsb = _lsb(cid)
    return cid - (lsb - 1), cid + (lsb - 1)


def contains(a: int, b: int) -> bool:
    lo, hi = cell_range(a)
    return lo <= b <= hi


def contains_s2_point(a: int, xyz: VectorPoint) -> bool:
    return contains(a, from_s2_point(xyz))


def intersects(a: int, b: int) -> bool:
    """True if the two cells share any leaf (one contains the other)."""
    a_min, a_max = cell_range(a)
    b_min, b_max = cell_range(b)
    return b_min <= a_max and b_max >= a_min


def next_cell(cid: int) -> int:
    """Next cell on the curve at the same level, wrapping from face 5 to face 0."""
    n = (cid + (_lsb(cid) << 1)) & MASK_64
    if n < K_WRAP_OFFSET:
        return n
    return (n - K_WRAP_OFFSET) & MASK_64


def prev_cell(cid: int) -> int:
    """Previous cell on the curve at the same level, wrapping from face 0 to face 5."""
    p = (cid - (_lsb(cid) << 1)) & MASK_64
    if p < K_WRAP_OFFSET:
        return p
    return (p + K_WRAP_OFFSET) & MASK_64


def compare(a: int, b: int) -> int:
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


# ---------------------------------------------------------------------------
# Neighbours
# ---------------------------------------------------------------------------


def neighbors(cid: int) -> list[int]:
    """Edge neighbours at the same level: down, right, up, left."""
    level = get_level(cid)
    size = size_ij(level)
    face, i, j, _ = to_ij(cid)
    return [
        parent(from_ij_same(face, i, j - size, j - size >= 0), level),
        parent(from_ij_same(face, i + size, j, i + size < K_MAX_SIZE), level),
        parent(from_ij_same(face, i, j + size, j + size < K_MAX_SIZE), level),
        parent(from_ij_same(face, i - size, j, i - size >= 0), level),
    ]


def neighbors_ij(face: Face, i: int, j: int, level: int) -> list[int]:
    """Edge neighbours (down, right, up, left) of tile (face, level, i, j)."""
    _check_level(level)
    size = size_ij(level)
    i <<= MAX_LEVEL - level
    j <<= MAX_LEVEL - level
    return [
        parent(from_ij_same(face, i, j - size, j - size >= 0), level),
        parent(from_ij_same(face, i + size, j, i + size < K_MAX_SIZE), level),
        parent(from_ij_same(face, i, j + size, j + size < K_MAX_SIZE), level),
        parent(from_ij_same(face, i - size, j, i - size >= 0), level),
    ]


def vertex_neighbors(cid: int, level: int | None = None) -> list[int]:
    """Cells at ``level`` sharing the vertex closest to this cell.

    Three cells come back when that vertex is a cube corner, four otherwise.
    The quadrant the cell occupies in its level parent is read from the next
    bit of i and j.
    """
    if level is None:
        level = get_level(cid)
    if not 0 <= level < MAX_LEVEL:
        raise ValueError(f"vertex neighbours need a level in 0..29, got {level}")
    face, i, j, _ = to_ij(cid)

    halfsize = size_ij(level + 1)
    size = halfsize << 1
    if i & halfsize:
        ioffset = size
        isame = i + size < K_MAX_SIZE
    else:
        ioffset = -size
        isame = i - size >= 0
    if j & halfsize:
        joffset = size
        jsame = j + size < K_MAX_SIZE
    else:
        joffset = -size
        jsame = j - size >= 0

    res = [
        parent(cid, level),
        parent(from_ij_same(face, i + ioffset, j, isame), level),
        parent(from_ij_same(face, i, j + joffset, jsame), level),
    ]
    if isame or jsame:
        res.append(parent(from_ij_same(face, i + ioffset, j + joffset, isame and jsame), level))
    return res
