"""Douglas-Peucker simplification in two phases.

``build_sq_dists`` runs once per feature and stores each vertex's squared
significance in ``VectorPoint.t``. ``simplify`` later keeps the vertices
whose ``t`` beats the zoom's tolerance, so a tile can be simplified without
re-running the recursion.
"""

from __future__ import annotations

from s2tiles.geometry.types import GeometryType, VectorGeometry, VectorLineString


def build_sq_dists(geometry: VectorGeometry, tolerance: float, maxzoom: int = 16) -> None:
    """Annotate every vertex of a (multi)line or (multi)polygon with its significance."""
    tol = (tolerance / (1 << maxzoom)) ** 2
    gtype = geometry.type
    coords = geometry.coordinates
    if gtype == GeometryType.LINE_STRING:
        build_sq_dist(coords, 0, len(coords) - 1, tol)
    elif gtype in (GeometryType.MULTI_LINE_STRING, GeometryType.POLYGON):
        for line in coords:
            build_sq_dist(line, 0, len(line) - 1, tol)
    elif gtype == GeometryType.MULTI_POLYGON:
        for polygon in coords:
            for line in polygon:
                build_sq_dist(line, 0, len(line) - 1, tol)


def build_sq_dist(coords: VectorLineString, first: int, last: int, sq_tolerance: float) -> None:
    if last < first:
        return
    coords[first].t = 1
    _build_sq_dist(coords, first, last, sq_tolerance)
    coords[last].t = 1


def _build_sq_dist(coords: VectorLineString, first: int, last: int, sq_tolerance: float) -> None:
    max_sq_dist = sq_tolerance
    # Relative midpoint compared against absolute indices; keeps ties stable
    mid = (last - first) >> 1
    min_pos_to_mid = last - first
    index = None

    a = coords[first]
    b = coords[last]

    for i in range(first, last):
        p = coords[i]
        d = _get_sq_seg_dist(p.x, p.y, a.x, a.y, b.x, b.y)
        if d > max_sq_dist:
            index = i
            max_sq_dist = d
        elif d == max_sq_dist:
            # prefer a pivot near the middle to bound recursion on degenerate input
            pos_to_mid = abs(i - mid)
            if pos_to_mid < min_pos_to_mid:
                index = i
                min_pos_to_mid = pos_to_mid

    if index is not None and max_sq_dist > sq_tolerance:
        if index - first > 1:
            _build_sq_dist(coords, first, index, sq_tolerance)
        coords[index].t = max_sq_dist
        if last - index > 1:
            _build_sq_dist(coords, index, last, sq_tolerance)


def _get_sq_seg_dist(px: float, py: float, x: float, y: float, bx: float, by: float) -> float:
    """Squared distance from (px, py) to segment (x, y)-(bx, by)."""
    dx = bx - x
    dy = by - y
    if dx != 0 or dy != 0:
        m = ((px - x) * dx + (py - y) * dy) / (dx * dx + dy * dy)
        if m > 1:
            x = bx
            y = by
        elif m > 0:
            x += dx * m
            y += dy * m
    dx = px - x
    dy = py - y
    return dx * dx + dy * dy


def simplify(geometry: VectorGeometry, tolerance: float, zoom: int, maxzoom: int = 16) -> None:
    """Drop vertices that are insignificant at ``zoom``, in place.

    Lines that fall under 2 points and rings under 4 are removed. A polygon
    whose outer ring degenerates is emptied entirely.
    """
    gtype = geometry.type
    if gtype in (GeometryType.POINT, GeometryType.MULTI_POINT):
        return
    zoom_tol = 0 if zoom >= maxzoom else tolerance / (1 << zoom)
    coords = geometry.coordinates

    if gtype == GeometryType.LINE_STRING:
        geometry.coordinates = _simplify_line(coords, zoom_tol, False, False)
    elif gtype == GeometryType.MULTI_LINE_STRING:
        lines = [_simplify_line(line, zoom_tol, False, False) for line in coords]
        geometry.coordinates = [line for line in lines if line]
    elif gtype == GeometryType.POLYGON:
        geometry.coordinates = _simplify_polygon(coords, zoom_tol)
    elif gtype == GeometryType.MULTI_POLYGON:
        polygons = [_simplify_polygon(polygon, zoom_tol) for polygon in coords]
        geometry.coordinates = [polygon for polygon in polygons if polygon]


def _simplify_polygon(polygon: list[VectorLineString], tolerance: float) -> list[VectorLineString]:
    rings = [_simplify_line(ring, tolerance, True, i == 0) for i, ring in enumerate(polygon)]
    if not rings or not rings[0]:
        return []
    return [ring for ring in rings if ring]


def _simplify_line(
    line: VectorLineString, tolerance: float, is_polygon: bool, is_outer: bool
) -> VectorLineString:
    sq_tolerance = tolerance * tolerance
    if tolerance > 0 and len(line) < (sq_tolerance if is_polygon else tolerance):
        return line

    ring = [
        point.copy()
        for point in line
        if tolerance == 0 or (point.t if point.t is not None else 0) > sq_tolerance
    ]
    if is_polygon:
        rewind(ring, is_outer)

    if not is_polygon and len(ring) < 2:
        return []
    if is_polygon and len(ring) < 4:
        return []
    return ring


def rewind(ring: VectorLineString, clockwise: bool) -> None:
    """Reverse ``ring`` in place unless its winding already matches ``clockwise``."""
    if len(ring) < 4:
        return
    area = 0.0
    length = len(ring)
    i = 0
    j = length - 2
    while i < length:
        area += (ring[i].x - ring[j].x) * (ring[i].y + ring[j].y)
        j = i
        i += 2
    if (area > 0) == clockwise:
        ring.reverse()
