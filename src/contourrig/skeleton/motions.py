"""Built-in human motion clips used to drive the skinning preview.

Clips are authored for the front and side views; front45 and back reuse
the front clips. Keyframes only list the bones that leave the rest pose.
Run is only offered for the side view.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Union

from contourrig.core.config_loader import load_config
from contourrig.skeleton.poses import AngleView, Pose, get_rest_pose


class MotionType(str, Enum):
    WALK = "walk"
    JUMP = "jump"
    WAVE = "wave"
    MJ_DANCE = "mj_dance"
    RUN = "run"


SIDE_ONLY_MOTIONS = frozenset({MotionType.RUN})


@dataclass(frozen=True)
class MotionKeyframe:
    time: float
    pose: tuple[tuple[str, tuple[float, float]], ...]


@dataclass(frozen=True)
class MotionClip:
    name: str
    base_view: AngleView
    keyframes: tuple[MotionKeyframe, ...]

    @property
    def duration(self) -> float:
        return self.keyframes[-1].time if self.keyframes else 0.0


def clip_view(view: Union[AngleView, str]) -> AngleView:
    """View whose clips are used for ``view``."""
    return AngleView.SIDE if AngleView.parse(view) == AngleView.SIDE else AngleView.FRONT


@lru_cache(maxsize=None)
def get_motion_clip(view: AngleView, motion: MotionType) -> MotionClip | None:
    base = clip_view(view)
    table = load_config("human_motions.json").get(base.value, {})
    frames = table.get(MotionType(motion).value)
    if not frames:
        return None
    rest = get_rest_pose(base)
    keyframes = []
    for kf in frames:
        pose = dict(rest)
        pose.update({k: (float(v[0]), float(v[1])) for k, v in kf["pose"].items()})
        keyframes.append(MotionKeyframe(time=float(kf["time"]), pose=tuple(pose.items())))
    keyframes.sort(key=lambda k: k.time)
    return MotionClip(name=MotionType(motion).value, base_view=base, keyframes=tuple(keyframes))


def available_motions(view: Union[AngleView, str]) -> list[MotionType]:
    view = AngleView.parse(view) or AngleView.FRONT
    return [
        m for m in MotionType
        if (view == AngleView.SIDE or m not in SIDE_ONLY_MOTIONS) and get_motion_clip(view, m) is not None
    ]


def sample_clip(clip: MotionClip, t: float) -> Pose:
    """Linearly interpolated pose at time t; t wraps around the clip duration."""
    kfs = clip.keyframes
    if not kfs:
        return {}
    duration = clip.duration
    loop_t = t % duration if duration > 0 else 0.0
    i = 0
    while i + 1 < len(kfs) and kfs[i + 1].time <= loop_t:
        i += 1
    if i + 1 >= len(kfs):
        return dict(kfs[i].pose)
    a, b = kfs[i], kfs[i + 1]
    span = b.time - a.time
    u = (loop_t - a.time) / span if span > 0 else 0.0
    pb = dict(b.pose)
    pose: Pose = {}
    for bone_id, (ax, ay) in a.pose:
        bx, by = pb.get(bone_id, (ax, ay))
        pose[bone_id] = (ax + (bx - ax) * u, ay + (by - ay) * u)
    return pose


def sample_motion(view: Union[AngleView, str], motion: Union[MotionType, str], t: float) -> Pose:
    view = AngleView.parse(view) or AngleView.FRONT
    clip = get_motion_clip(view, MotionType(motion))
    return sample_clip(clip, t) if clip is not None else {}
