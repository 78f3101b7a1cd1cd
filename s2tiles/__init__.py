"""Cube-sphere cell ids and vector tiling."""

from s2tiles.convert import convert
from s2tiles.geometry.types import (
    Feature,
    FeatureCollection,
    S2Feature,
    S2FeatureCollection,
    VectorFeature,
    VectorPoint,
)
from s2tiles.tile import Layer, Tile, TileStore, TileStoreOptions

__all__ = [
    "convert",
    "Feature",
    "FeatureCollection",
    "S2Feature",
    "S2FeatureCollection",
    "VectorFeature",
    "VectorPoint",
    "Layer",
    "Tile",
    "TileStore",
    "TileStoreOptions",
]
