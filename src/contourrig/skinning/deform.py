"""Linear blend skinning of contour mesh vertices."""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from contourrig.core.mesh import ContourMesh, VertexBoneWeight


def bone_displacements(
    bind_pose: Mapping[str, Sequence[float]],
    current_pose: Mapping[str, Sequence[float]],
) -> dict[str, tuple[float, float]]:
    """Per-bone ``current - bind`` for bones present in both poses."""
    out = {}
    for bone_id, cur in current_pose.items():
        bind = bind_pose.get(bone_id)
        if bind is None:
            continue
        out[bone_id] = (float(cur[0]) - float(bind[0]), float(cur[1]) - float(bind[1]))
    return out


def deform_vertices(
    mesh: ContourMesh,
    bind_pose: Mapping[str, Sequence[float]],
    current_pose: Mapping[str, Sequence[float]],
    weights: Optional[Mapping[str, Sequence[VertexBoneWeight]]] = None,
) -> NDArray[np.float64]:
    """Deformed (V, 2) vertex positions: ``p + sum(w * (cur - bind))``.

    ``weights`` overrides the weights stored on the mesh, keyed by vertex
    id. Bones missing from either pose contribute nothing, so an identity
    pose returns the bind positions exactly.
    """
    positions = mesh.positions()
    deltas = bone_displacements(bind_pose, current_pose)
    if not deltas:
        return positions

    out = positions.copy()
    for i, v in enumerate(mesh.vertices):
        vws = weights.get(v.id, ()) if weights is not None else v.weights
        dx = dy = 0.0
        for w in vws:
            d = deltas.get(w.bone_id)
            if d is None:
                continue
            dx += w.weight * d[0]
            dy += w.weight * d[1]
        out[i, 0] += dx
        out[i, 1] += dy
    return out
