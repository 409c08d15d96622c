"""Piecewise-affine warp of the source image through the deformed contour mesh.

Each mesh triangle maps its bind-pose region of the source image onto its
deformed position with a single affine transform. The destination
triangle is inflated by about one pixel before clipping so neighbouring
triangles overlap and no hairline seams appear between them. Triangles
whose source or destination collapses to a line are skipped.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import numpy as np
from numpy.typing import NDArray
from PIL import Image, ImageChops, ImageDraw

from contourrig.constants import SEAM_OVERLAP_PX
from contourrig.core.math_utils import affine_from_triangles, affine_inverse, inflate_triangle
from contourrig.core.mesh import ContourMesh, Triangle, VertexBoneWeight
from contourrig.core.results import RigFailure, singular_affine
from contourrig.loaders.image_loader import ImageLike, as_pil_rgba
from contourrig.skinning.deform import deform_vertices

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RasterFrame:
    """One rendered frame and the triangles that could not be drawn."""
    image: Image.Image
    skipped_triangles: tuple[Triangle, ...] = ()

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    @property
    def failure(self) -> Optional[RigFailure]:
        if not self.skipped_triangles:
            return None
        return singular_affine(len(self.skipped_triangles))

    def to_array(self) -> NDArray[np.uint8]:
        return np.asarray(self.image, dtype=np.uint8)


@dataclass(frozen=True)
class CanvasLayout:
    """Fit-and-centre placement of the source image on the canvas."""
    width: int
    height: int
    scale: float
    offset_x: float
    offset_y: float

    @classmethod
    def fit(cls, source_size: tuple[int, int],
            canvas_size: Optional[tuple[int, int]] = None) -> "CanvasLayout":
        src_w, src_h = source_size
        if canvas_size is None:
            return cls(src_w, src_h, 1.0, 0.0, 0.0)
        w, h = int(canvas_size[0]), int(canvas_size[1])
        scale = min(w / max(src_w, 1), h / max(src_h, 1))
        return cls(w, h, scale, (w - src_w * scale) / 2, (h - src_h * scale) / 2)

    def to_canvas(self, normalized: NDArray, source_size: tuple[int, int]) -> NDArray[np.float64]:
        """Normalized image coordinates -> canvas pixels."""
        pts = np.asarray(normalized, dtype=np.float64).reshape(-1, 2)
        size = np.array(source_size, dtype=np.float64) * self.scale
        return pts * size + np.array([self.offset_x, self.offset_y])


def _pil_affine_coefficients(inverse: NDArray, origin_x: int, origin_y: int) -> tuple[float, ...]:
    """PIL AFFINE data for a patch whose top-left sits at ``origin`` on the canvas."""
    (a, b, c), (d, e, f) = inverse
    return (a, b, a * origin_x + b * origin_y + c,
            d, e, d * origin_x + e * origin_y + f)


def _draw_triangle(
    canvas: Image.Image,
    source: Image.Image,
    src_tri: NDArray,
    dst_tri: NDArray,
    overlap: float,
) -> bool:
    """Warp one triangle onto the canvas. Returns False if it was singular."""
    forward = affine_from_triangles(src_tri, dst_tri)
    if forward is None:
        return False
    inverse = affine_inverse(forward)
    if inverse is None:
        return False

    clip = inflate_triangle(dst_tri, overlap)
    x0 = max(0, int(math.floor(clip[:, 0].min())))
    y0 = max(0, int(math.floor(clip[:, 1].min())))
    x1 = min(canvas.width, int(math.ceil(clip[:, 0].max())) + 1)
    y1 = min(canvas.height, int(math.ceil(clip[:, 1].max())) + 1)
    if x1 <= x0 or y1 <= y0:
        return True  # off-canvas, nothing to draw

    size = (x1 - x0, y1 - y0)
    patch = source.transform(
        size,
        Image.Transform.AFFINE,
        _pil_affine_coefficients(inverse, x0, y0),
        resample=Image.Resampling.BILINEAR,
    )
    mask = Image.new("L", size, 0)
    ImageDraw.Draw(mask).polygon(
        [(float(x - x0), float(y - y0)) for x, y in clip], fill=255,
    )
    patch.putalpha(ImageChops.multiply(patch.getchannel("A"), mask))
    canvas.alpha_composite(patch, dest=(x0, y0))
    return True


def deform_and_composite(
    mesh: ContourMesh,
    bind_pose: Mapping[str, Sequence[float]],
    current_pose: Mapping[str, Sequence[float]],
    source_image: ImageLike,
    *,
    weights: Optional[Mapping[str, Sequence[VertexBoneWeight]]] = None,
    canvas_size: Optional[tuple[int, int]] = None,
    overlap: float = SEAM_OVERLAP_PX,
) -> RasterFrame:
    """Render the source image deformed by ``current_pose`` relative to ``bind_pose``.

    Parameters
    ----------
    mesh : contour mesh in bind pose
    bind_pose, current_pose : bone id -> normalized position
    source_image : path, PIL image or RGBA array
    weights : optional per-vertex weights overriding the mesh's own
    canvas_size : (width, height); defaults to the source size. The image
        is scaled to fit and centred.
    overlap : seam overlap in canvas pixels

    Returns
    -------
    RasterFrame with an RGBA image on a transparent background.
    """
    source = as_pil_rgba(source_image)
    src_size = source.size
    layout = CanvasLayout.fit(src_size, canvas_size)
    canvas = Image.new("RGBA", (layout.width, layout.height), (0, 0, 0, 0))
    if not mesh.triangles:
        return RasterFrame(canvas)

    src_px = mesh.positions() * np.array(src_size, dtype=np.float64)
    dst_px = layout.to_canvas(deform_vertices(mesh, bind_pose, current_pose, weights), src_size)
    finite = np.all(np.isfinite(dst_px), axis=1)

    skipped: list[Triangle] = []
    for tri, idx in zip(mesh.triangles, mesh.triangle_indices()):
        if not finite[idx].all() or not _draw_triangle(canvas, source, src_px[idx], dst_px[idx], overlap):
            skipped.append(tri)

    if skipped:
        logger.debug("Skipped %d singular triangle(s) of %d", len(skipped), mesh.triangle_count)
    return RasterFrame(canvas, tuple(skipped))
