"""Animation preview: drives the bound skeleton with a motion clip and renders frames.

The bind pose is captured once when the preview starts. Each frame's pose
is the bind pose displaced by the clip's offset from its rest pose, so a
character bound in any stance performs the motion around that stance.
Stopping hands the captured bind pose back so the caller can restore it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Union

from contourrig.constants import SEAM_OVERLAP_PX
from contourrig.core.clock import FrameClock
from contourrig.core.mesh import ContourMesh
from contourrig.loaders.image_loader import ImageLike, as_pil_rgba
from contourrig.rendering.warp import RasterFrame, deform_and_composite
from contourrig.skeleton.motions import MotionType, clip_view, sample_motion
from contourrig.skeleton.poses import AngleView, Pose, freeze_pose, get_rest_pose

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameSnapshot:
    """Immutable inputs of one preview frame."""
    time: float
    bind_pose: tuple[tuple[str, tuple[float, float]], ...]
    pose: tuple[tuple[str, tuple[float, float]], ...]


def motion_pose(
    bind_pose: Mapping[str, Sequence[float]],
    view: Union[AngleView, str],
    motion: Union[MotionType, str],
    t: float,
) -> Pose:
    """``bind + (motion(t) - rest)`` for every bone of the bind pose."""
    rest = get_rest_pose(clip_view(view))
    sampled = sample_motion(view, motion, t)
    pose: Pose = {}
    for bone_id, (bx, by) in bind_pose.items():
        r = rest.get(bone_id)
        m = sampled.get(bone_id)
        if r is None or m is None:
            pose[bone_id] = (float(bx), float(by))
        else:
            pose[bone_id] = (float(bx) + m[0] - r[0], float(by) + m[1] - r[1])
    return pose


class SkinningPreview:
    """Plays a motion clip over a contour mesh, one frame per ``tick()``."""

    def __init__(
        self,
        mesh: ContourMesh,
        source_image: ImageLike,
        angle_view: Union[AngleView, str] = AngleView.FRONT,
        canvas_size: Optional[tuple[int, int]] = None,
        clock: Optional[FrameClock] = None,
        overlap: float = SEAM_OVERLAP_PX,
    ) -> None:
        self.mesh = mesh
        self.source = as_pil_rgba(source_image)
        self.angle_view = AngleView.parse(angle_view) or AngleView.FRONT
        self.canvas_size = canvas_size
        self.overlap = overlap
        self._clock = clock or FrameClock()
        self._bind: Optional[tuple[tuple[str, tuple[float, float]], ...]] = None
        self._motion: Optional[MotionType] = None
        self._time = 0.0

    # ── Properties ────────────────────────────────────────────────

    @property
    def is_active(self) -> bool:
        return self._bind is not None

    @property
    def motion(self) -> Optional[MotionType]:
        return self._motion

    @property
    def current_time(self) -> float:
        return self._time

    # ── Control ───────────────────────────────────────────────────

    def start(self, bind_pose: Mapping[str, Sequence[float]], motion: Union[MotionType, str]) -> None:
        """Capture the bind pose and start playing ``motion`` from t = 0."""
        if self.is_active:
            logger.debug("Preview restarted while running; keeping the original bind pose")
        else:
            self._bind = freeze_pose(bind_pose)
        self._motion = MotionType(motion)
        self._time = 0.0
        self._clock.reset()
        logger.info("Preview started: %s (%s view)", self._motion.value, self.angle_view.value)

    def stop(self) -> Optional[Pose]:
        """Stop playing and return the captured bind pose (None if not running)."""
        if self._bind is None:
            return None
        bind = dict(self._bind)
        self._bind = None
        self._motion = None
        logger.info("Preview stopped at t=%.2fs", self._time)
        return bind

    # ── Per-frame tick ────────────────────────────────────────────

    def snapshot(self, t: float) -> Optional[FrameSnapshot]:
        if self._bind is None or self._motion is None:
            return None
        pose = motion_pose(dict(self._bind), self.angle_view, self._motion, t)
        return FrameSnapshot(time=t, bind_pose=self._bind, pose=freeze_pose(pose))

    def tick(self, dt: Optional[float] = None) -> Optional[tuple[FrameSnapshot, RasterFrame]]:
        """Advance by ``dt`` (or the clock's delta) and render one frame.

        Returns None once the preview has been stopped.
        """
        if not self.is_active:
            return None
        self._time += self._clock.get_delta() if dt is None else dt
        snap = self.snapshot(self._time)
        if snap is None:
            return None
        return snap, self.render(snap)

    def render(self, snap: FrameSnapshot) -> RasterFrame:
        return deform_and_composite(
            self.mesh, dict(snap.bind_pose), dict(snap.pose), self.source,
            canvas_size=self.canvas_size, overlap=self.overlap,
        )

    def render_static(
        self,
        pose: Mapping[str, Sequence[float]],
        bind_pose: Optional[Mapping[str, Sequence[float]]] = None,
    ) -> Optional[RasterFrame]:
        """Render a single frame for a user-edited pose; None while a preview runs."""
        if self.is_active:
            return None
        bind = bind_pose if bind_pose is not None else pose
        return deform_and_composite(self.mesh, bind, pose, self.source,
                                    canvas_size=self.canvas_size, overlap=self.overlap)
