"""Tests for the contour mesh data model and its JSON shape."""

import numpy as np
import pytest

from contourrig.core.mesh import (
    ContourMesh, ContourMeshVertex, VertexBoneWeight,
    bone_sample_id, contour_vertex_id, is_contour_vertex_id,
)
from contourrig.core.results import FailureKind, MeshOk, RigFailure, insufficient_contour


def _mesh():
    vertices = (
        ContourMeshVertex("c0", (0.1, 0.1), (VertexBoneWeight("jaw", 1.0),)),
        ContourMeshVertex("c1", (0.9, 0.1), (VertexBoneWeight("jaw", 0.25), VertexBoneWeight("navel", 0.75))),
        ContourMeshVertex("s_navel", (0.5, 0.8), (VertexBoneWeight("navel", 1.0),)),
    )
    return ContourMesh(vertices=vertices, triangles=(("c0", "c1", "s_navel"),))


def test_vertex_ids():
    assert contour_vertex_id(3) == "c3"
    assert bone_sample_id("jaw") == "s_jaw"
    assert is_contour_vertex_id("c12")
    assert not is_contour_vertex_id("s_collarbone")


def test_lookup_and_arrays():
    mesh = _mesh()
    assert mesh.vertex("c1").position == (0.9, 0.1)
    assert mesh.vertex("missing") is None
    assert mesh.positions().shape == (3, 2)
    np.testing.assert_array_equal(mesh.triangle_indices(), [[0, 1, 2]])
    assert [v.id for v in mesh.contour_vertices()] == ["c0", "c1"]
    assert mesh.bone_sample_positions() == {"navel": (0.5, 0.8)}


def test_with_weights_keeps_geometry():
    mesh = _mesh()
    new = mesh.with_weights({"c0": [VertexBoneWeight("navel", 1.0)]})
    assert new.triangles == mesh.triangles
    assert [v.position for v in new.vertices] == [v.position for v in mesh.vertices]
    assert new.vertex("c0").weights == (VertexBoneWeight("navel", 1.0),)
    assert new.vertex("c1").weights == ()
    # Original untouched
    assert mesh.vertex("c0").weights[0].bone_id == "jaw"


def test_to_dict_uses_camel_case():
    data = _mesh().to_dict()
    assert data["triangles"] == [["c0", "c1", "s_navel"]]
    assert data["vertices"][1]["weights"][1] == {"boneId": "navel", "weight": 0.75}


def test_from_dict_roundtrip():
    mesh = _mesh()
    assert ContourMesh.from_dict(mesh.to_dict()) == mesh


def test_validate_reports_bad_triangles():
    mesh = ContourMesh(
        vertices=(ContourMeshVertex("c0", (0, 0)), ContourMeshVertex("c1", (1, 0))),
        triangles=(("c0", "c1", "c9"), ("c0", "c0", "c1")),
    )
    problems = mesh.validate()
    assert any("c9" in p for p in problems)
    assert any("repeats" in p for p in problems)
    with pytest.raises(ValueError):
        ContourMesh.from_dict(mesh.to_dict())


def test_from_dict_rejects_bad_shapes():
    with pytest.raises(ValueError):
        ContourMesh.from_dict({"vertices": [{"id": "c0", "position": [0, 0, 0]}], "triangles": []})
    with pytest.raises(ValueError):
        ContourMesh.from_dict({"vertices": [], "triangles": [["a", "b"]]})


def test_result_values():
    ok = MeshOk(_mesh())
    assert ok.ok
    fail = insufficient_contour(2)
    assert isinstance(fail, RigFailure)
    assert not fail.ok
    assert fail.kind is FailureKind.INSUFFICIENT_CONTOUR
    assert "2" in fail.message
