"""Rendering subsystem -- Pillow piecewise-affine warp and animation preview."""

from contourrig.rendering.preview import FrameSnapshot, SkinningPreview, motion_pose
from contourrig.rendering.warp import CanvasLayout, RasterFrame, deform_and_composite

__all__ = [
    "CanvasLayout",
    "FrameSnapshot",
    "RasterFrame",
    "SkinningPreview",
    "deform_and_composite",
    "motion_pose",
]
