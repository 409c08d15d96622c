"""Tests for silhouette contour extraction."""

import numpy as np
import pytest
from PIL import Image

from contourrig.mesh.contour import boundary_mask, extract_contour, sample_alpha, simplify_contour


def test_circle_contour_lies_on_the_rim(disc_image):
    contour = extract_contour(disc_image)
    assert 3 <= len(contour) <= 180
    pts = np.array(contour) * 200
    r = np.hypot(pts[:, 0] - 100, pts[:, 1] - 100)
    assert r.min() >= 78
    assert r.max() <= 82
    # Covers every quadrant
    dx, dy = pts[:, 0] - 100, pts[:, 1] - 100
    for sx, sy in [(1, 1), (1, -1), (-1, 1), (-1, -1)]:
        assert np.any((np.sign(dx) == sx) & (np.sign(dy) == sy))


def test_contour_is_angularly_ordered(disc_image):
    pts = np.array(extract_contour(disc_image))
    angles = np.arctan2(pts[:, 1] - 0.5, pts[:, 0] - 0.5)
    assert np.all(np.diff(angles) >= -1e-9)


@pytest.mark.parametrize("radius", [35, 60, 80, 95])
def test_point_cap_holds_without_simplification(make_disc, radius):
    contour = extract_contour(make_disc(radius=radius), tolerance=0.0)
    assert 3 <= len(contour) <= 180


@pytest.mark.parametrize("max_points", [7, 50, 100])
def test_custom_point_cap(make_disc, max_points):
    contour = extract_contour(make_disc(radius=60), tolerance=0.0, max_points=max_points)
    assert 3 <= len(contour) <= max_points


def test_transparent_image_has_no_contour():
    assert extract_contour(np.zeros((20, 20, 4), dtype=np.uint8)) == []


def test_single_pixel_is_too_small():
    img = np.zeros((1, 1, 4), dtype=np.uint8)
    img[0, 0, 3] = 255
    assert len(extract_contour(img)) < 3


def test_threshold_controls_inside():
    img = np.zeros((40, 40, 4), dtype=np.uint8)
    img[10:30, 10:30, 3] = 100
    assert extract_contour(img) == []
    assert len(extract_contour(img, threshold=64)) >= 3


def test_accepts_pil_images(disc_image):
    from_pil = extract_contour(Image.fromarray(disc_image))
    assert from_pil == extract_contour(disc_image)


def test_boundary_mask_edges_and_image_border():
    inside = np.ones((5, 5), dtype=bool)
    boundary = boundary_mask(inside)
    # Pixels on the image border count as boundary
    assert boundary[0].all() and boundary[:, 0].all()
    assert not boundary[2, 2]


def test_simplify_never_grows():
    rng = np.random.default_rng(0)
    pts = [tuple(p) for p in rng.random((50, 2))]
    for tol in (0.0, 0.001, 0.05, 0.5):
        out = simplify_contour(pts, tol)
        assert len(out) <= len(pts)
        assert out[0] == pts[0] and out[-1] == pts[-1]


def test_simplify_drops_colinear_points():
    line = [(i / 10, 0.5) for i in range(11)]
    assert simplify_contour(line, 0.001) == [(0.0, 0.5), (1.0, 0.5)]


def test_simplify_keeps_corners():
    pts = [(0.0, 0.0), (0.5, 0.0), (1.0, 0.0), (1.0, 0.5), (1.0, 1.0)]
    assert (1.0, 0.0) in simplify_contour(pts, 0.01)


def test_sample_alpha_outside_is_zero():
    alpha = np.full((10, 10), 200, dtype=np.uint8)
    values = sample_alpha(alpha, np.array([[0.5, 0.5], [1.0, 0.5], [-0.01, 0.2], [np.nan, 0.1]]))
    np.testing.assert_array_equal(values, [200, 0, 0, 0])
