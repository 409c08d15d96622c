"""Tests for suggesting bone positions from a contour mesh."""

import pytest

from contourrig.core.math_utils import point_in_polygon
from contourrig.core.mesh import ContourMesh, ContourMeshVertex
from contourrig.skeleton.poses import get_rest_pose
from contourrig.skeleton.presets import get_preset_by_kind
from contourrig.skinning.suggest import clamp_to_polygon, suggest_bone_positions_from_contour

# Mirror-symmetric T-pose outline
T_POSE = [
    (0.44, 0.05), (0.56, 0.05), (0.56, 0.17), (0.53, 0.17), (0.53, 0.22),
    (0.95, 0.22), (0.95, 0.30), (0.62, 0.30), (0.62, 0.95), (0.52, 0.95),
    (0.52, 0.55), (0.48, 0.55), (0.48, 0.95), (0.38, 0.95), (0.38, 0.30),
    (0.05, 0.30), (0.05, 0.22), (0.47, 0.22), (0.47, 0.17), (0.44, 0.17),
]

SQUARE = [(0.2, 0.2), (0.8, 0.2), (0.8, 0.8), (0.2, 0.8)]


def _outline_mesh(points):
    return ContourMesh(
        vertices=tuple(ContourMeshVertex(f"c{i}", p) for i, p in enumerate(points)),
        triangles=(),
    )


def test_one_position_per_node_inside_outline():
    preset = get_preset_by_kind("human")
    result = suggest_bone_positions_from_contour(_outline_mesh(T_POSE), preset)
    assert [n.id for n in result] == list(preset.node_ids)
    for node in result:
        assert point_in_polygon(node.position, T_POSE)
        assert 0.0 <= node.position[0] <= 1.0 and 0.0 <= node.position[1] <= 1.0


def test_symmetric_outline_gives_mirrored_bones():
    result = {n.id: n.position for n in suggest_bone_positions_from_contour(
        _outline_mesh(T_POSE), get_preset_by_kind("human"))}
    for bone_id, (x, _) in result.items():
        if bone_id.endswith("_l"):
            mirror_x, _ = result[bone_id[:-2] + "_r"]
            assert x + mirror_x == pytest.approx(1.0, abs=0.02), bone_id
    for bone_id in ("head_top", "jaw", "collarbone", "navel"):
        assert result[bone_id][0] == pytest.approx(0.5, abs=0.02)


def test_human_landmarks_are_vertically_ordered():
    result = {n.id: n.position for n in suggest_bone_positions_from_contour(
        _outline_mesh(T_POSE), get_preset_by_kind("human"))}
    assert result["head_top"][1] < result["jaw"][1] < result["navel"][1]
    assert result["hip_l"][1] < result["knee_l"][1] < result["toe_l"][1]
    assert result["fingertip_l"][0] < result["elbow_l"][0] < result["shoulder_l"][0]


def test_too_few_contour_vertices_returns_rest_pose():
    preset = get_preset_by_kind("human")
    mesh = _outline_mesh([(0.1, 0.1), (0.9, 0.9)])
    result = suggest_bone_positions_from_contour(mesh, preset, "side")
    rest = get_rest_pose("side")
    assert {n.id: n.position for n in result} == rest


def test_too_few_contour_vertices_without_view_uses_defaults():
    preset = get_preset_by_kind("bird")
    result = suggest_bone_positions_from_contour(_outline_mesh([]), preset)
    assert {n.id: n.position for n in result} == preset.default_pose()


@pytest.mark.parametrize("kind", ["animal", "bird"])
def test_other_presets_fit_the_bounding_box(kind):
    preset = get_preset_by_kind(kind)
    result = suggest_bone_positions_from_contour(_outline_mesh(SQUARE), preset)
    assert len(result) == len(preset.nodes)
    for node in result:
        assert point_in_polygon(node.position, SQUARE)


def test_clamp_to_polygon():
    center = (0.5, 0.5)
    assert clamp_to_polygon((0.3, 0.4), SQUARE, center) == (0.3, 0.4)
    x, y = clamp_to_polygon((1.5, 0.5), SQUARE, center)
    assert point_in_polygon((x, y), SQUARE)
    assert x > 0.5
