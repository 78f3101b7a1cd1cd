"""Tiles, layers and the in-memory tile store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pydantic import BaseModel, Field

from s2tiles.config import settings
from s2tiles.convert import convert
from s2tiles.geometry.clip import split_tile
from s2tiles.geometry.simplify import build_sq_dists, simplify
from s2tiles.geometry.types import (
    Face,
    JSONCollection,
    Projection,
    VectorFeatures,
    VectorGeometry,
    VectorPoint,
    is_empty,
    iter_points,
)
from s2tiles.s2.cell_id import contains, from_face, get_face, get_level, is_face, parent, to_face_ij

logger = logging.getLogger(__name__)


@dataclass
class Layer:
    name: str
    features: list[VectorFeatures] = field(default_factory=list)
    extent: int = 1

    def __len__(self) -> int:
        return len(self.features)


class Tile:
    """Features of one cell, grouped by layer.

    Coordinates stay in face (or unit square) space until ``transform`` moves
    them to the tile's own ``[0, 1]`` frame.
    """

    extent = 1

    def __init__(self, id: int, layers: dict[str, Layer] | None = None, transformed: bool = False):
        self.id = id
        self.face, self.zoom, self.i, self.j = to_face_ij(id)
        self.layers: dict[str, Layer] = layers if layers is not None else {}
        self.transformed = transformed

    def __repr__(self) -> str:
        return f"Tile(face={self.face}, zoom={self.zoom}, i={self.i}, j={self.j})"

    def is_empty(self) -> bool:
        return all(len(layer) == 0 for layer in self.layers.values())

    def add_feature(self, feature: VectorFeatures, layer: str | None = None) -> None:
        """Store a feature under ``metadata["layer"]``, else ``layer``, else "default"."""
        metadata = feature.metadata or {}
        layer_name = metadata.get("layer") or layer or "default"
        if layer_name not in self.layers:
            self.layers[layer_name] = Layer(layer_name)
        self.layers[layer_name].features.append(feature)

    def transform(self, tolerance: float, maxzoom: int | None = None) -> None:
        """Simplify for this zoom and move coordinates into tile space. Runs once."""
        if self.transformed:
            return

        for layer in self.layers.values():
            for feature in layer.features:
                if tolerance > 0:
                    if maxzoom is None:
                        simplify(feature.geometry, tolerance, self.zoom)
                    else:
                        simplify(feature.geometry, tolerance, self.zoom, maxzoom)
                _transform(feature.geometry, self.zoom, self.i, self.j)
            layer.features = [f for f in layer.features if not is_empty(f.geometry)]

        self.transformed = True


def _transform(geometry: VectorGeometry, zoom: int, ti: int, tj: int) -> None:
    scale = 1 << zoom
    for p in iter_points(geometry):
        transform_point(p, scale, ti, tj)


def transform_point(vp: VectorPoint, zoom: int, ti: int, tj: int) -> None:
    """Map a point in place; ``zoom`` here is the tile count per axis (``1 << level``)."""
    vp.x = vp.x * zoom - ti
    vp.y = vp.y * zoom - tj


class TileStoreOptions(BaseModel):
    """Tiling parameters. Unset fields fall back to ``Settings``."""

    projection: Projection | None = None  # inferred from the input when None
    minzoom: int = Field(default_factory=lambda: settings.minzoom, ge=0, le=20)
    maxzoom: int = Field(default_factory=lambda: settings.maxzoom, ge=0, le=20)
    index_maxzoom: int = Field(default_factory=lambda: settings.index_maxzoom, ge=0, le=20)
    tolerance: float = Field(default_factory=lambda: settings.tolerance, ge=0)  # in 1/4096 of a tile
    buffer: float = Field(default_factory=lambda: settings.buffer, ge=0)
    build_bbox: bool = Field(default_factory=lambda: settings.build_bbox)


class TileStore:
    """Index of tiles built lazily from one input collection.

    Construction converts the input, stores one tile per used face and splits
    down to ``index_maxzoom``. Deeper tiles are cut on demand by ``get_tile``,
    which only splits along the path to the requested id.
    """

    def __init__(self, data: JSONCollection, options: TileStoreOptions | None = None):
        options = options or TileStoreOptions()
        self.minzoom = options.minzoom
        self.maxzoom = options.maxzoom
        self.index_maxzoom = options.index_maxzoom
        self.tolerance = options.tolerance / 4096
        self.buffer = options.buffer
        self.build_bbox = options.build_bbox
        self.faces: set[Face] = set()
        self.tiles: dict[int, Tile] = {}

        if options.projection is not None:
            self.projection: Projection = options.projection
        elif data.type in ("Feature", "FeatureCollection"):
            self.projection = "WG"
        else:
            self.projection = "S2"

        if not 0 <= self.maxzoom <= 20:
            raise ValueError("maxzoom should be in the 0-20 range")

        features = convert(self.projection, data, self.build_bbox, True)
        for feature in features:
            self._add_feature(feature)
        for face in range(6):
            self._split_tile(from_face(face))

        logger.info(
            "Built tile store: projection=%s features=%d faces=%s tiles=%d",
            self.projection,
            len(features),
            sorted(self.faces),
            len(self.tiles),
        )

    def get_tile(self, id: int) -> Tile | None:
        """Return the transformed tile for ``id``, or None if it holds no data."""
        zoom = get_level(id)
        face = get_face(id)
        if (
            zoom < 0
            or zoom > 20
            or face not in self.faces
            or zoom < self.minzoom
            or zoom > self.maxzoom
        ):
            return None

        # closest stored ancestor
        pid = id
        while pid not in self.tiles and not is_face(pid):
            pid = parent(pid)
        self._split_tile(pid, id, zoom)

        tile = self.tiles.get(id)
        if tile is None or tile.is_empty():
            return None
        tile.transform(self.tolerance, self.maxzoom)
        return tile

    def _add_feature(self, feature: VectorFeatures) -> None:
        # t-values for the Douglas-Peucker pass done per tile later
        build_sq_dists(feature.geometry, self.tolerance, self.maxzoom)
        face = getattr(feature, "face", 0)
        id = from_face(face)
        tile = self.tiles.get(id)
        if tile is None:
            self.faces.add(face)
            tile = Tile(id)
            self.tiles[id] = tile
        tile.add_feature(feature)

    def _split_tile(self, start_id: int, end_id: int | None = None, end_zoom: int | None = None) -> None:
        if end_zoom is None:
            end_zoom = self.maxzoom
        stack = [start_id]
        while stack:
            stack_id = stack.pop()
            tile = self.tiles.get(stack_id)
            if tile is None or tile.is_empty() or tile.transformed:
                continue
            tile_zoom = tile.zoom
            # stop at maxzoom, at index_maxzoom on the first pass, or off the path to end_id
            if (
                tile_zoom >= self.maxzoom
                or (end_id is None and tile_zoom >= self.index_maxzoom)
                or (end_id is not None and (tile_zoom > end_zoom or not contains(stack_id, end_id)))
            ):
                continue

            children = split_tile(tile, self.buffer)
            for child in children:
                self.tiles[child.id] = child.tile
            tile.transform(self.tolerance, self.maxzoom)
            stack.extend(child.id for child in children)

