"""Contour mesh generation: image + bound bones -> weighted triangle mesh."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence, Union

from contourrig.core.math_utils import Point
from contourrig.core.mesh import ContourMesh, ContourMeshVertex
from contourrig.core.results import (
    MeshOk,
    MeshResult,
    degenerate_triangulation,
    insufficient_contour,
    no_bones_bound,
)
from contourrig.core.settings import RigSettings
from contourrig.loaders.image_loader import ImageLike, as_rgba_array
from contourrig.mesh.contour import extract_contour
from contourrig.mesh.triangulate import triangulate_silhouette
from contourrig.skeleton.poses import BoneNodePosition, NodeLike, nodes_from_pose, pose_from_nodes
from contourrig.skeleton.presets import PresetKind, get_preset_by_kind
from contourrig.skinning.weights import compute_vertex_weights

logger = logging.getLogger(__name__)


def _preset_bones(bone_nodes: Iterable[NodeLike], preset_kind) -> list[BoneNodePosition]:
    """Bound nodes that belong to the preset, in the order given."""
    ids = set(get_preset_by_kind(preset_kind).node_ids)
    return [n for n in nodes_from_pose(pose_from_nodes(bone_nodes)) if n.id in ids]


def generate_contour_mesh(
    image: ImageLike,
    bone_nodes: Iterable[NodeLike],
    preset_kind: Union[PresetKind, str],
    settings: Optional[RigSettings] = None,
    *,
    contour: Optional[Sequence[Point]] = None,
) -> MeshResult:
    """Build a contour mesh from the image's alpha channel and the bound bones.

    ``contour`` may be passed when it was already extracted from the same
    image with the same settings. Returns ``MeshOk(mesh)`` or a
    ``RigFailure``; never raises for image content.
    """
    settings = settings or RigSettings()
    bones = _preset_bones(bone_nodes, preset_kind)
    if not bones:
        logger.warning("Mesh generation: no bones of preset %s bound", preset_kind)
        return no_bones_bound()

    rgba = as_rgba_array(image)
    if contour is None:
        contour = extract_contour(
            rgba,
            settings.alpha_threshold,
            max_points=settings.max_contour_points,
            tolerance=settings.contour_tolerance,
        )
    if len(contour) < 3:
        logger.warning("Mesh generation: only %d contour points", len(contour))
        return insufficient_contour(len(contour))

    excluded = settings.extremities_for(PresetKind.parse(preset_kind))
    tri_bones = [b for b in bones if b.id not in excluded]
    point_set, triangles = triangulate_silhouette(
        rgba[..., 3], contour, tri_bones, inside_threshold=settings.triangle_inside_threshold,
    )
    if not triangles:
        logger.warning("Mesh generation: no triangles inside the silhouette (%d points)",
                       len(point_set.ids))
        return degenerate_triangulation(f"{len(point_set.ids)} points, 0 triangles")

    vertices = tuple(
        ContourMeshVertex(
            id=vid,
            position=(float(p[0]), float(p[1])),
            weights=compute_vertex_weights(p, bones, preset_kind, settings),
        )
        for vid, p in zip(point_set.ids, point_set.points)
    )
    mesh = ContourMesh(vertices=vertices, triangles=tuple(triangles))
    logger.info("Generated contour mesh: %d vertices, %d triangles, %d bones",
                mesh.vertex_count, mesh.triangle_count, len(bones))
    return MeshOk(mesh)


def recompute_contour_mesh_weights(
    mesh: ContourMesh,
    bone_nodes: Iterable[NodeLike],
    preset_kind: Union[PresetKind, str, None] = None,
    settings: Optional[RigSettings] = None,
) -> ContourMesh:
    """Re-weight every vertex against the current bones; geometry is untouched."""
    bones = nodes_from_pose(pose_from_nodes(bone_nodes))
    weights = {
        v.id: compute_vertex_weights(v.position, bones, preset_kind, settings)
        for v in mesh.vertices
    }
    logger.info("Recomputed weights for %d vertices against %d bones", mesh.vertex_count, len(bones))
    return mesh.with_weights(weights)
