"""Inverse-square distance bone weights for contour mesh vertices."""

from __future__ import annotations

from typing import Optional, Sequence, Union

from contourrig.constants import WEIGHT_SUM_FLOOR
from contourrig.core.mesh import VertexBoneWeight
from contourrig.core.settings import RigSettings
from contourrig.skeleton.poses import BoneNodePosition
from contourrig.skeleton.presets import PresetKind
from contourrig.skinning.regions import eligible_bones_human


def candidate_bones(
    position: Sequence[float],
    bones: dict[str, tuple[float, float]],
    preset_kind: Union[PresetKind, str, None],
) -> list[str]:
    """Bone ids that may influence a vertex.

    Human vertices are restricted to their anatomical region's bones
    (those actually bound); everything else sees all bones.
    """
    if preset_kind is not None and PresetKind.parse(preset_kind) == PresetKind.HUMAN:
        ids = [b for b in eligible_bones_human(position, bones) if b in bones]
        if ids:
            return ids
    return list(bones.keys())


def compute_vertex_weights(
    position: Sequence[float],
    bone_nodes: Sequence[BoneNodePosition],
    preset_kind: Union[PresetKind, str, None] = None,
    settings: Optional[RigSettings] = None,
) -> tuple[VertexBoneWeight, ...]:
    """Weights for one vertex: at most K entries, each > 0, summing to 1.

    Returns an empty tuple when no bone can influence the vertex.
    """
    settings = settings or RigSettings()
    bones = {n.id: n.position for n in bone_nodes}
    if not bones:
        return ()

    eps2 = settings.weight_epsilon ** 2
    px, py = float(position[0]), float(position[1])
    raw = []
    for bone_id in candidate_bones(position, bones, preset_kind):
        bx, by = bones[bone_id]
        raw.append((bone_id, 1.0 / ((px - bx) ** 2 + (py - by) ** 2 + eps2)))

    # stable: equal weights keep candidate order
    raw.sort(key=lambda item: -item[1])
    top = raw[: settings.max_influences]
    total = sum(w for _, w in top)
    if total < WEIGHT_SUM_FLOOR:
        return ()

    kept = [(b, w / total) for b, w in top if w / total >= settings.min_relative_weight]
    norm = sum(w for _, w in kept)
    if not kept or norm <= 0:
        return ()
    return tuple(VertexBoneWeight(b, w / norm) for b, w in kept)
