"""Tests for the piecewise-affine mesh warp."""

import numpy as np
import pytest

from contourrig.core.mesh import ContourMesh, ContourMeshVertex, VertexBoneWeight
from contourrig.core.results import FailureKind
from contourrig.rendering.warp import CanvasLayout, deform_and_composite

ROOT = {"root": (0.5, 0.5)}


def _quad_mesh():
    w = (VertexBoneWeight("root", 1.0),)
    return ContourMesh(
        vertices=(
            ContourMeshVertex("c0", (0.0, 0.0), w),
            ContourMeshVertex("c1", (1.0, 0.0), w),
            ContourMeshVertex("c2", (1.0, 1.0), w),
            ContourMeshVertex("c3", (0.0, 1.0), w),
        ),
        triangles=(("c0", "c1", "c2"), ("c0", "c2", "c3")),
    )


def test_identity_pose_reproduces_the_source(block_image):
    frame = deform_and_composite(_quad_mesh(), ROOT, ROOT, block_image)
    assert frame.size == (200, 200)
    assert frame.skipped_triangles == ()
    assert frame.failure is None
    out = frame.to_array().astype(int)
    src = block_image.astype(int)
    np.testing.assert_allclose(out[20:180, 20:180], src[20:180, 20:180], atol=3)
    # Transparent border stays transparent
    assert out[2, 2, 3] == 0


def test_translation_moves_pixels(block_image):
    frame = deform_and_composite(_quad_mesh(), ROOT, {"root": (0.6, 0.5)}, block_image)
    out = frame.to_array().astype(int)
    # Red channel is a horizontal ramp: output x=100 shows source x=80
    assert abs(out[100, 100, 0] - int(block_image[100, 80, 0])) <= 3
    assert out[100, 100, 3] == 255
    # Vacated strip on the left is empty
    assert out[100, 10, 3] == 0


def test_canvas_size_fits_and_centres(block_image):
    frame = deform_and_composite(_quad_mesh(), ROOT, ROOT, block_image, canvas_size=(100, 50))
    assert frame.size == (100, 50)
    out = frame.to_array()
    assert out[25, 50, 3] == 255
    # Letterboxed columns left and right are empty
    assert out[25, 5, 3] == 0 and out[25, 95, 3] == 0


def test_collapsed_triangles_are_skipped(block_image):
    mesh = ContourMesh(
        vertices=(
            ContourMeshVertex("c0", (0.1, 0.1), (VertexBoneWeight("a", 1.0),)),
            ContourMeshVertex("c1", (0.9, 0.1), (VertexBoneWeight("b", 1.0),)),
            ContourMeshVertex("c2", (0.5, 0.9), (VertexBoneWeight("c", 1.0),)),
        ),
        triangles=(("c0", "c1", "c2"),),
    )
    bind = {"a": (0.1, 0.1), "b": (0.9, 0.1), "c": (0.5, 0.9)}
    posed = dict(bind, c=(0.5, 0.1))
    frame = deform_and_composite(mesh, bind, posed, block_image)
    assert frame.skipped_triangles == (("c0", "c1", "c2"),)
    assert frame.failure.kind is FailureKind.SINGULAR_AFFINE
    assert frame.to_array()[..., 3].max() == 0


def test_colinear_bind_triangle_is_skipped(block_image):
    w = (VertexBoneWeight("root", 1.0),)
    mesh = ContourMesh(
        vertices=(
            ContourMeshVertex("c0", (0.1, 0.1), w),
            ContourMeshVertex("c1", (0.5, 0.5), w),
            ContourMeshVertex("c2", (0.9, 0.9), w),
            ContourMeshVertex("c3", (0.9, 0.1), w),
        ),
        triangles=(("c0", "c1", "c2"), ("c0", "c3", "c2")),
    )
    frame = deform_and_composite(mesh, ROOT, {"root": (0.55, 0.5)}, block_image)
    assert frame.skipped_triangles == (("c0", "c1", "c2"),)
    assert frame.failure.kind is FailureKind.SINGULAR_AFFINE
    # The well-formed triangle still renders
    assert frame.to_array()[60, 140, 3] == 255


def test_non_finite_positions_are_skipped(block_image):
    frame = deform_and_composite(_quad_mesh(), ROOT, {"root": (float("nan"), 0.5)}, block_image)
    assert len(frame.skipped_triangles) == 2


def test_empty_mesh_renders_blank_canvas(block_image):
    frame = deform_and_composite(ContourMesh(vertices=(), triangles=()), ROOT, ROOT, block_image)
    assert frame.size == (200, 200)
    assert frame.to_array()[..., 3].max() == 0


def test_canvas_layout_fit():
    layout = CanvasLayout.fit((200, 100), (100, 100))
    assert layout.scale == pytest.approx(0.5)
    assert (layout.offset_x, layout.offset_y) == pytest.approx((0.0, 25.0))
    np.testing.assert_allclose(layout.to_canvas([[1.0, 1.0]], (200, 100)), [[100.0, 75.0]])
    assert CanvasLayout.fit((30, 40)).scale == 1.0
