"""Delaunay triangulation of contour + bone points, filtered by the alpha mask."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np
from numpy.typing import NDArray
from scipy.spatial import Delaunay, QhullError

from contourrig.constants import TRIANGLE_INSIDE_THRESHOLD
from contourrig.core.math_utils import Point
from contourrig.core.mesh import Triangle, bone_sample_id, contour_vertex_id
from contourrig.mesh.contour import sample_alpha
from contourrig.skeleton.poses import BoneNodePosition

logger = logging.getLogger(__name__)


@dataclass
class PointSet:
    """Indexed points shared by the triangulation and the mesh vertices."""
    ids: list[str]
    points: NDArray[np.float64]  # (N, 2)


def build_point_set(contour: Sequence[Point], bone_nodes: Iterable[BoneNodePosition]) -> PointSet:
    """Contour points (``c<i>``) followed by bone points (``s_<boneId>``)."""
    ids = [contour_vertex_id(i) for i in range(len(contour))]
    pts = [tuple(p) for p in contour]
    for node in bone_nodes:
        ids.append(bone_sample_id(node.id))
        pts.append(node.position)
    arr = np.array(pts, dtype=np.float64).reshape(-1, 2)
    return PointSet(ids=ids, points=arr)


def delaunay_simplices(points: NDArray[np.float64]) -> NDArray[np.int64]:
    """(T, 3) Delaunay triangles; empty when the points span no area."""
    if len(points) < 3:
        return np.zeros((0, 3), dtype=np.int64)
    try:
        tri = Delaunay(points)
    except (QhullError, ValueError) as e:
        logger.debug("Delaunay failed: %s", e)
        return np.zeros((0, 3), dtype=np.int64)
    return tri.simplices.astype(np.int64)


def filter_triangles_by_mask(
    simplices: NDArray[np.int64],
    points: NDArray[np.float64],
    alpha: NDArray[np.uint8],
    inside_threshold: int = TRIANGLE_INSIDE_THRESHOLD,
) -> NDArray[np.int64]:
    """Keep triangles whose three vertices and centroid all sample alpha >= threshold."""
    if len(simplices) == 0:
        return simplices
    corners = points[simplices]                     # (T, 3, 2)
    centroids = corners.mean(axis=1)                # (T, 2)
    vert_ok = sample_alpha(alpha, corners.reshape(-1, 2)).reshape(-1, 3) >= inside_threshold
    cent_ok = sample_alpha(alpha, centroids) >= inside_threshold
    keep = vert_ok.all(axis=1) & cent_ok
    return simplices[keep]


def triangulate_silhouette(
    alpha: NDArray[np.uint8],
    contour: Sequence[Point],
    bone_nodes: Iterable[BoneNodePosition],
    *,
    inside_threshold: int = TRIANGLE_INSIDE_THRESHOLD,
) -> tuple[PointSet, list[Triangle]]:
    """Triangulate contour + bone points and drop triangles leaving the silhouette.

    Triangles keep the vertex order produced by the triangulation.
    """
    point_set = build_point_set(contour, bone_nodes)
    simplices = delaunay_simplices(point_set.points)
    kept = filter_triangles_by_mask(simplices, point_set.points, alpha, inside_threshold)
    ids = point_set.ids
    triangles = [(ids[a], ids[b], ids[c]) for a, b, c in kept.tolist()]
    logger.debug("Triangulation: %d points, %d triangles, %d inside mask",
                 len(ids), len(simplices), len(triangles))
    return point_set, triangles
