"""Silhouette contour extraction from an alpha mask.

The contour is an ordered approximation of the character outline in
normalized [0, 1]² coordinates:

1. inside pixels: alpha >= threshold
2. boundary pixels: inside with a 4-neighbour outside (or off-image)
3. boundary points sorted by angle around the centroid of inside pixels
4. stride subsample to at most ``max_points``
5. Douglas-Peucker simplification
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from contourrig.constants import ALPHA_THRESHOLD, CONTOUR_TOLERANCE, MAX_CONTOUR_POINTS
from contourrig.core.math_utils import Point, point_segment_distance
from contourrig.loaders.image_loader import ImageLike, as_rgba_array

logger = logging.getLogger(__name__)


def inside_mask(alpha: NDArray[np.uint8], threshold: int) -> NDArray[np.bool_]:
    return np.asarray(alpha) >= threshold


def boundary_mask(inside: NDArray[np.bool_]) -> NDArray[np.bool_]:
    """Inside pixels with at least one 4-connected neighbour outside the mask."""
    padded = np.pad(inside, 1, mode="constant", constant_values=False)
    interior = (
        padded[:-2, 1:-1] & padded[2:, 1:-1] & padded[1:-1, :-2] & padded[1:-1, 2:]
    )
    return inside & ~interior


def simplify_contour(points: Sequence[Point], tolerance: float) -> list[Point]:
    """Douglas-Peucker polyline simplification.

    Keeps the first and last point and every point that deviates more than
    ``tolerance`` from the chord of its span. Never returns more points
    than it was given.
    """
    pts = [(float(p[0]), float(p[1])) for p in points]
    n = len(pts)
    if n <= 2:
        return pts

    keep = [False] * n
    keep[0] = keep[-1] = True
    stack = [(0, n - 1)]
    while stack:
        start, end = stack.pop()
        if end - start < 2:
            continue
        a, b = pts[start], pts[end]
        max_dist, max_idx = 0.0, start
        for i in range(start + 1, end):
            d = point_segment_distance(pts[i], a, b)
            if d > max_dist:
                max_dist, max_idx = d, i
        if max_dist < tolerance:
            continue
        keep[max_idx] = True
        stack.append((start, max_idx))
        stack.append((max_idx, end))
    return [p for p, k in zip(pts, keep) if k]


def extract_contour(
    image: ImageLike,
    threshold: int = ALPHA_THRESHOLD,
    *,
    max_points: int = MAX_CONTOUR_POINTS,
    tolerance: float = CONTOUR_TOLERANCE,
) -> list[Point]:
    """Ordered, simplified silhouette boundary points in normalized coordinates.

    Returns whatever was found, possibly fewer than 3 points; callers decide
    whether that is usable.
    """
    rgba = as_rgba_array(image)
    height, width = rgba.shape[:2]
    if width == 0 or height == 0:
        return []

    inside = inside_mask(rgba[..., 3], threshold)
    ys, xs = np.nonzero(boundary_mask(inside))  # row-major scan order
    contour = np.column_stack([xs / width, ys / height]).astype(np.float64)
    if len(contour) < 3:
        return [(float(x), float(y)) for x, y in contour]

    in_ys, in_xs = np.nonzero(inside)
    cx = in_xs.mean() / width
    cy = in_ys.mean() / height

    angles = np.arctan2(contour[:, 1] - cy, contour[:, 0] - cx)
    contour = contour[np.argsort(angles, kind="stable")]

    step = max(1, math.ceil(len(contour) / max_points))
    sampled = contour[::step]
    source = sampled if len(sampled) >= 3 else contour
    result = simplify_contour([tuple(p) for p in source], tolerance)
    logger.debug(
        "Contour: %d boundary px -> %d sampled -> %d simplified (threshold %d)",
        len(contour), len(sampled), len(result), threshold,
    )
    return result


def sample_alpha(alpha: NDArray[np.uint8], points: NDArray) -> NDArray[np.int64]:
    """Alpha at normalized points (floor to pixel); 0 outside the image."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    height, width = alpha.shape[:2]
    px = np.floor(pts[:, 0] * width)
    py = np.floor(pts[:, 1] * height)
    valid = np.isfinite(px) & np.isfinite(py) & (px >= 0) & (px < width) & (py >= 0) & (py < height)
    out = np.zeros(len(pts), dtype=np.int64)
    out[valid] = alpha[py[valid].astype(np.int64), px[valid].astype(np.int64)]
    return out
