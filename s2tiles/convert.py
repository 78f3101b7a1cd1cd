"""Projection dispatch: any supported input collection to vector features."""

from __future__ import annotations

import logging

from s2tiles.geometry.types import (
    Feature,
    JSONCollection,
    Projection,
    S2Feature,
    VectorFeature,
    VectorFeatures,
)
from s2tiles.wm.convert import to_s2, to_unit_scale, to_vector, to_wm

logger = logging.getLogger(__name__)


def convert(
    projection: Projection,
    data: JSONCollection,
    build_bbox: bool | None = None,
    to_unit_scale: bool = False,
) -> list[VectorFeatures]:
    """Convert ``data`` into features of the requested projection.

    ``"WG"`` yields ``VectorFeature`` objects in lon/lat (or the Web Mercator
    unit square when ``to_unit_scale`` is set). ``"S2"`` yields ``S2Feature``
    objects in face S-T space; one input feature may touch several faces.
    """
    if projection not in ("WG", "S2"):
        raise ValueError(f"Unknown projection: {projection!r}")

    res: list[VectorFeatures] = []
    dtype = data.type
    if dtype == "Feature":
        res.extend(_convert_feature(projection, data, to_unit_scale, build_bbox))
    elif dtype == "VectorFeature":
        res.extend(_convert_vector_feature(projection, data, to_unit_scale, build_bbox))
    elif dtype == "FeatureCollection":
        for feature in data.features:
            if feature.type == "Feature":
                res.extend(_convert_feature(projection, feature, to_unit_scale, build_bbox))
            elif feature.type == "VectorFeature":
                res.extend(
                    _convert_vector_feature(projection, feature, to_unit_scale, build_bbox)
                )
            else:
                raise ValueError(f"Unsupported feature type in collection: {feature.type!r}")
    elif dtype == "S2Feature":
        res.append(_convert_s2_feature(projection, data, to_unit_scale))
    elif dtype == "S2FeatureCollection":
        for feature in data.features:
            res.append(_convert_s2_feature(projection, feature, to_unit_scale))
    else:
        raise ValueError(f"Unsupported data type: {dtype!r}")

    logger.debug("Converted %s to %d %s feature(s)", dtype, len(res), projection)
    return res


def _convert_feature(
    projection: Projection, data: Feature, to_us: bool, build_bbox: bool | None
) -> list[VectorFeatures]:
    return _convert_vector_feature(projection, to_vector(data, build_bbox), to_us, build_bbox)


def _convert_vector_feature(
    projection: Projection, data: VectorFeature, to_us: bool, build_bbox: bool | None
) -> list[VectorFeatures]:
    if projection == "WG":
        if to_us:
            to_unit_scale(data)
        return [data]
    return to_s2(data, build_bbox)


def _convert_s2_feature(projection: Projection, data: S2Feature, to_us: bool) -> VectorFeatures:
    if projection == "WG":
        vf = to_wm(data)
        if to_us:
            to_unit_scale(vf)
        return vf
    return data
