"""Tests for the Qt preview timer."""

import pytest
from PySide6.QtCore import QCoreApplication

from contourrig.core.clock import FrameClock
from contourrig.core.mesh import ContourMesh, ContourMeshVertex, VertexBoneWeight
from contourrig.rendering.preview import SkinningPreview
from contourrig.rendering.preview_timer import PreviewTimer
from contourrig.skeleton.poses import AngleView, get_rest_pose


@pytest.fixture(scope="module")
def qapp():
    return QCoreApplication.instance() or QCoreApplication([])


@pytest.fixture
def timer(qapp, block_image):
    w = (VertexBoneWeight("navel", 1.0),)
    mesh = ContourMesh(
        vertices=(
            ContourMeshVertex("c0", (0.2, 0.2), w),
            ContourMeshVertex("c1", (0.8, 0.2), w),
            ContourMeshVertex("c2", (0.5, 0.8), w),
        ),
        triangles=(("c0", "c1", "c2"),),
    )
    preview = SkinningPreview(mesh, block_image, clock=FrameClock(time_source=lambda: 0.0))
    t = PreviewTimer(preview, fps=30)
    yield t
    t.stop()


def test_timeout_emits_frames(timer):
    frames = []
    timer.frame_ready.connect(lambda snap, frame: frames.append((snap, frame)))
    timer.start(get_rest_pose(AngleView.FRONT), "walk")
    assert timer.is_running
    timer._on_timeout()
    assert len(frames) == 1
    assert frames[0][1].size == (200, 200)


def test_stop_emits_bind_pose(timer):
    stopped = []
    timer.stopped.connect(stopped.append)
    rest = get_rest_pose(AngleView.FRONT)
    timer.start(rest, "wave")
    timer.stop()
    assert not timer.is_running
    assert stopped == [rest]
    # A second stop has nothing to hand back
    timer.stop()
    assert len(stopped) == 1
