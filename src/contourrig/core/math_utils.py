"""NumPy-backed 2D geometry helpers.

Points are ``(x, y)`` tuples or length-2 arrays in normalized image space
unless noted. Affine transforms are 2x3 arrays ``[[a, c, e], [b, d, f]]``
mapping ``(x, y) -> (a*x + c*y + e, b*x + d*y + f)`` (canvas convention).
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from contourrig.constants import AFFINE_DET_EPSILON

# Type aliases
Point = tuple[float, float]
Affine = NDArray[np.float64]  # (2, 3)


def dist2(a: Sequence[float], b: Sequence[float]) -> float:
    return (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2


def point_segment_distance(p: Sequence[float], a: Sequence[float], b: Sequence[float]) -> float:
    """Distance from p to the closed segment ab."""
    abx, aby = b[0] - a[0], b[1] - a[1]
    apx, apy = p[0] - a[0], p[1] - a[1]
    t = (apx * abx + apy * aby) / (abx * abx + aby * aby + 1e-10)
    t = max(0.0, min(1.0, t))
    return math.hypot(p[0] - (a[0] + t * abx), p[1] - (a[1] + t * aby))


def point_in_polygon(
    p: Sequence[float],
    polygon: Sequence[Sequence[float]],
    boundary_tol: float = 1e-9,
) -> bool:
    """Crossing-number test; points within ``boundary_tol`` of an edge count as inside."""
    n = len(polygon)
    if n < 3:
        return False
    px, py = p[0], p[1]
    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i][0], polygon[i][1]
        xj, yj = polygon[j][0], polygon[j][1]
        if point_segment_distance(p, polygon[j], polygon[i]) <= boundary_tol:
            return True
        if (yi > py) != (yj > py) and px < (xj - xi) * (py - yi) / (yj - yi) + xi:
            inside = not inside
        j = i
    return inside


def centroid(points: Sequence[Sequence[float]]) -> Point:
    """Arithmetic mean of a point list (vertex centroid, not area centroid)."""
    arr = np.asarray(points, dtype=np.float64)
    return float(arr[:, 0].mean()), float(arr[:, 1].mean())


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def lerp_point(a: Sequence[float], b: Sequence[float], t: float) -> Point:
    return a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t


# ── Affine transforms ────────────────────────────────────────────────

def affine_from_triangles(
    src: Sequence[Sequence[float]],
    dst: Sequence[Sequence[float]],
) -> Optional[Affine]:
    """Solve the affine transform mapping three source points onto three destination points.

    Returns None when the source triangle is degenerate (colinear points),
    since no unique transform exists.
    """
    (sx0, sy0), (sx1, sy1), (sx2, sy2) = src
    (dx0, dy0), (dx1, dy1), (dx2, dy2) = dst
    det = sx0 * (sy1 - sy2) - sy0 * (sx1 - sx2) + (sx1 * sy2 - sx2 * sy1)
    if abs(det) < AFFINE_DET_EPSILON:
        return None
    a = (dx0 * (sy1 - sy2) - dx1 * (sy0 - sy2) + dx2 * (sy0 - sy1)) / det
    b = (dy0 * (sy1 - sy2) - dy1 * (sy0 - sy2) + dy2 * (sy0 - sy1)) / det
    c = (dx0 * (sx2 - sx1) - dx1 * (sx2 - sx0) + dx2 * (sx1 - sx0)) / det
    d = (dy0 * (sx2 - sx1) - dy1 * (sx2 - sx0) + dy2 * (sx1 - sx0)) / det
    e = dx0 - a * sx0 - c * sy0
    f = dy0 - b * sx0 - d * sy0
    m = np.array([[a, c, e], [b, d, f]], dtype=np.float64)
    if not np.all(np.isfinite(m)):
        return None
    return m


def affine_inverse(m: Affine) -> Optional[Affine]:
    """Invert a 2x3 affine; None if its linear part is singular."""
    lin = m[:, :2]
    det = lin[0, 0] * lin[1, 1] - lin[0, 1] * lin[1, 0]
    if abs(det) < AFFINE_DET_EPSILON:
        return None
    inv_lin = np.array(
        [[lin[1, 1], -lin[0, 1]], [-lin[1, 0], lin[0, 0]]], dtype=np.float64,
    ) / det
    inv_t = -inv_lin @ m[:, 2]
    return np.hstack([inv_lin, inv_t[:, None]])


def affine_apply(m: Affine, points: NDArray) -> NDArray[np.float64]:
    """Apply a 2x3 affine to an (N, 2) point array."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    return pts @ m[:, :2].T + m[:, 2]


def inflate_triangle(tri: NDArray, amount: float) -> NDArray[np.float64]:
    """Push each vertex ``amount`` units away from the triangle centroid."""
    tri = np.asarray(tri, dtype=np.float64).reshape(3, 2)
    c = tri.mean(axis=0)
    offsets = tri - c
    lengths = np.linalg.norm(offsets, axis=1, keepdims=True)
    lengths[lengths == 0] = 1.0
    return tri + offsets / lengths * amount
