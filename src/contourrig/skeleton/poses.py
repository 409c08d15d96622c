"""Poses, angle views and per-view rest poses.

A pose is a plain ``bone_id -> (x, y)`` mapping in normalized image space.
The bind pose is captured when a mesh is generated (or a preview starts);
the current pose is what the user drags or an animation drives.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Optional, Union

from contourrig.core.config_loader import load_config

Pose = dict[str, tuple[float, float]]


class AngleView(str, Enum):
    FRONT = "front"
    FRONT45 = "front45"
    SIDE = "side"
    BACK = "back"

    @classmethod
    def parse(cls, value: Union[str, "AngleView", None]) -> Optional["AngleView"]:
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class BoneNodePosition:
    """A bound bone landmark (as stored in a skeleton binding)."""
    id: str
    position: tuple[float, float]

    def to_dict(self) -> dict:
        return {"id": self.id, "position": [self.position[0], self.position[1]]}

    @classmethod
    def from_dict(cls, data: dict) -> "BoneNodePosition":
        pos = data["position"]
        return cls(id=str(data["id"]), position=(float(pos[0]), float(pos[1])))


NodeLike = Union[BoneNodePosition, Mapping]


def _node_parts(node: NodeLike) -> tuple[str, tuple[float, float]]:
    if isinstance(node, BoneNodePosition):
        return node.id, node.position
    pos = node["position"]
    return str(node["id"]), (float(pos[0]), float(pos[1]))


def pose_from_nodes(nodes: Iterable[NodeLike]) -> Pose:
    """Build a pose from bound nodes (dataclasses or ``{"id", "position"}`` dicts)."""
    return dict(_node_parts(n) for n in nodes)


def nodes_from_pose(pose: Mapping[str, tuple[float, float]],
                    order: Optional[Iterable[str]] = None) -> list[BoneNodePosition]:
    ids = list(order) if order is not None else list(pose.keys())
    return [BoneNodePosition(i, (float(pose[i][0]), float(pose[i][1]))) for i in ids if i in pose]


def freeze_pose(pose: Mapping[str, tuple[float, float]]) -> tuple[tuple[str, tuple[float, float]], ...]:
    """Immutable snapshot of a pose, for per-frame reads."""
    return tuple((k, (float(v[0]), float(v[1]))) for k, v in pose.items())


def get_rest_pose(view: Union[AngleView, str]) -> Pose:
    """Human T-pose for an angle view (a fresh copy)."""
    view = AngleView.parse(view) or AngleView.FRONT
    table = load_config("rest_poses.json")
    return {k: (float(v[0]), float(v[1])) for k, v in table[view.value].items()}


def angle_view_from_name(name: Optional[str]) -> AngleView:
    """Guess the angle view from a user-facing angle name."""
    text = (name or "").strip().lower()
    if "侧" in text or "side" in text:
        return AngleView.SIDE
    if "45" in text or "度" in text:
        return AngleView.FRONT45
    if "背" in text or "back" in text:
        return AngleView.BACK
    return AngleView.FRONT


def resolve_angle_view(view_or_name: Optional[str], angle_name: Optional[str] = None) -> AngleView:
    """Prefer an explicit stored view, otherwise infer from the angle name."""
    parsed = AngleView.parse(view_or_name)
    if parsed is not None:
        return parsed
    return angle_view_from_name(angle_name if angle_name is not None else view_or_name)
