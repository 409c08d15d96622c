"""Per-angle skeleton binding state and its JSON codec.

The host application's asset store persists one binding per character
angle. Mesh replacement is all-or-nothing: ``with_mesh`` swaps vertices,
triangles and weights together, ``with_weights`` only touches weights.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional, Union

from contourrig.core.mesh import ContourMesh, VertexBoneWeight
from contourrig.skeleton.poses import (
    AngleView,
    BoneNodePosition,
    Pose,
    get_rest_pose,
    pose_from_nodes,
)
from contourrig.skeleton.presets import PresetKind, get_preset_by_kind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SkeletonBinding:
    preset_kind: PresetKind
    angle_view: Optional[AngleView]
    nodes: tuple[BoneNodePosition, ...]
    # vertex id -> weights, for bindings without a contour mesh
    vertex_weights: Optional[tuple[tuple[str, tuple[VertexBoneWeight, ...]], ...]] = None
    contour_mesh: Optional[ContourMesh] = None

    @property
    def pose(self) -> Pose:
        return pose_from_nodes(self.nodes)

    def with_nodes(self, nodes: Iterable[BoneNodePosition]) -> "SkeletonBinding":
        return replace(self, nodes=tuple(nodes))

    def with_mesh(self, mesh: ContourMesh) -> "SkeletonBinding":
        """Replace the cached mesh wholesale."""
        return replace(self, contour_mesh=mesh)

    def with_weights(self, mesh: ContourMesh) -> "SkeletonBinding":
        """Store re-weighted copy of the current mesh; geometry must be unchanged."""
        current = self.contour_mesh
        if current is not None and (
            current.triangles != mesh.triangles
            or [v.position for v in current.vertices] != [v.position for v in mesh.vertices]
        ):
            raise ValueError("with_weights() must not change mesh positions or triangles")
        return replace(self, contour_mesh=mesh)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "presetKind": self.preset_kind.value,
            "nodes": [n.to_dict() for n in self.nodes],
        }
        if self.angle_view is not None:
            data["angleView"] = self.angle_view.value
        if self.vertex_weights is not None:
            data["vertexWeights"] = [
                {"vertexId": vid, "weights": [w.to_dict() for w in ws]}
                for vid, ws in self.vertex_weights
            ]
        if self.contour_mesh is not None:
            data["contourMesh"] = self.contour_mesh.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SkeletonBinding":
        if not isinstance(data, dict):
            raise ValueError("Skeleton binding must be a JSON object")
        try:
            nodes = tuple(BoneNodePosition.from_dict(n) for n in data.get("nodes", []))
            vertex_weights = None
            if data.get("vertexWeights") is not None:
                vertex_weights = tuple(
                    (str(vw["vertexId"]), tuple(VertexBoneWeight.from_dict(w) for w in vw["weights"]))
                    for vw in data["vertexWeights"]
                )
            mesh = ContourMesh.from_dict(data["contourMesh"]) if data.get("contourMesh") else None
        except (KeyError, TypeError, IndexError) as e:
            raise ValueError(f"Malformed skeleton binding: {e}") from e
        return cls(
            preset_kind=PresetKind.parse(data.get("presetKind")),
            angle_view=AngleView.parse(data.get("angleView")),
            nodes=nodes,
            vertex_weights=vertex_weights,
            contour_mesh=mesh,
        )


def create_binding(
    preset_kind: Union[str, PresetKind] = PresetKind.HUMAN,
    angle_view: Union[str, AngleView, None] = None,
) -> SkeletonBinding:
    """New binding with nodes at their default (or per-view rest) positions."""
    preset = get_preset_by_kind(preset_kind)
    view = AngleView.parse(angle_view)
    rest = get_rest_pose(view) if view is not None and preset.kind == PresetKind.HUMAN else {}
    nodes = tuple(
        BoneNodePosition(n.id, rest.get(n.id, n.default_position)) for n in preset.nodes
    )
    logger.debug("Created %s binding (%s) with %d nodes", preset.kind.value, view, len(nodes))
    return SkeletonBinding(preset_kind=preset.kind, angle_view=view, nodes=nodes)
