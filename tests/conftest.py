"""Shared fixtures: synthetic RGBA silhouettes and bound skeletons."""

import numpy as np
import pytest

from contourrig.skeleton.poses import AngleView, get_rest_pose, nodes_from_pose


def disc_rgba(size=200, radius=80, center=(100, 100)):
    """Opaque red disc on a transparent background."""
    ys, xs = np.mgrid[0:size, 0:size]
    inside = (xs - center[0]) ** 2 + (ys - center[1]) ** 2 <= radius ** 2
    img = np.zeros((size, size, 4), dtype=np.uint8)
    img[inside] = (220, 40, 40, 255)
    return img


def block_rgba(size=200, margin=6):
    """Opaque rectangle covering all but a ``margin`` px border, with a colour gradient."""
    img = np.zeros((size, size, 4), dtype=np.uint8)
    ramp = np.linspace(0, 255, size, dtype=np.uint8)
    img[..., 0] = ramp[None, :]
    img[..., 1] = ramp[:, None]
    img[..., 2] = 128
    img[margin:size - margin, margin:size - margin, 3] = 255
    return img


@pytest.fixture
def disc_image():
    return disc_rgba()


@pytest.fixture
def block_image():
    return block_rgba()


@pytest.fixture
def front_bones():
    return nodes_from_pose(get_rest_pose(AngleView.FRONT))


@pytest.fixture
def make_disc():
    return disc_rgba


@pytest.fixture
def make_block():
    return block_rgba
