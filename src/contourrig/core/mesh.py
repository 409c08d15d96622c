"""Contour mesh data structures (no rendering dependencies)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Optional

import numpy as np
from numpy.typing import NDArray

CONTOUR_PREFIX = "c"
BONE_SAMPLE_PREFIX = "s_"

Triangle = tuple[str, str, str]


def contour_vertex_id(index: int) -> str:
    return f"{CONTOUR_PREFIX}{index}"


def bone_sample_id(bone_id: str) -> str:
    return f"{BONE_SAMPLE_PREFIX}{bone_id}"


def is_contour_vertex_id(vertex_id: str) -> bool:
    return vertex_id.startswith(CONTOUR_PREFIX) and vertex_id[1:].isdigit()


@dataclass(frozen=True)
class VertexBoneWeight:
    """Influence of one bone on one vertex, 0 < weight <= 1."""
    bone_id: str
    weight: float

    def to_dict(self) -> dict[str, Any]:
        return {"boneId": self.bone_id, "weight": self.weight}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VertexBoneWeight":
        return cls(bone_id=str(data["boneId"]), weight=float(data["weight"]))


@dataclass(frozen=True)
class ContourMeshVertex:
    """A mesh vertex in bind pose with its bone weights.

    Boundary vertices are named ``c<i>``, bone-sample vertices ``s_<boneId>``.
    """
    id: str
    position: tuple[float, float]
    weights: tuple[VertexBoneWeight, ...] = ()

    @property
    def weight_sum(self) -> float:
        return sum(w.weight for w in self.weights)

    def with_weights(self, weights: Iterable[VertexBoneWeight]) -> "ContourMeshVertex":
        return replace(self, weights=tuple(weights))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "position": [self.position[0], self.position[1]],
            "weights": [w.to_dict() for w in self.weights],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContourMeshVertex":
        pos = data["position"]
        if len(pos) != 2:
            raise ValueError(f"Vertex {data.get('id')!r}: position must have 2 components")
        return cls(
            id=str(data["id"]),
            position=(float(pos[0]), float(pos[1])),
            weights=tuple(VertexBoneWeight.from_dict(w) for w in data.get("weights", [])),
        )


@dataclass(frozen=True)
class ContourMesh:
    """Triangle mesh over the character silhouette.

    Every triangle references three distinct existing vertex ids, in the
    order produced by the triangulation.
    """
    vertices: tuple[ContourMeshVertex, ...] = ()
    triangles: tuple[Triangle, ...] = ()
    _index: dict[str, int] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_index", {v.id: i for i, v in enumerate(self.vertices)})

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.triangles)

    def vertex(self, vertex_id: str) -> Optional[ContourMeshVertex]:
        i = self._index.get(vertex_id)
        return self.vertices[i] if i is not None else None

    def contour_vertices(self) -> list[ContourMeshVertex]:
        return [v for v in self.vertices if is_contour_vertex_id(v.id)]

    def bone_sample_positions(self) -> dict[str, tuple[float, float]]:
        """Bind-pose bone positions recorded by the ``s_<boneId>`` vertices."""
        n = len(BONE_SAMPLE_PREFIX)
        return {v.id[n:]: v.position for v in self.vertices if v.id.startswith(BONE_SAMPLE_PREFIX)}

    def positions(self) -> NDArray[np.float64]:
        """(V, 2) bind-pose positions in vertex order."""
        if not self.vertices:
            return np.zeros((0, 2), dtype=np.float64)
        return np.array([v.position for v in self.vertices], dtype=np.float64)

    def triangle_indices(self) -> NDArray[np.int64]:
        """(T, 3) vertex indices for each triangle."""
        if not self.triangles:
            return np.zeros((0, 3), dtype=np.int64)
        return np.array(
            [[self._index[a], self._index[b], self._index[c]] for a, b, c in self.triangles],
            dtype=np.int64,
        )

    def with_weights(self, weights_by_id: dict[str, Iterable[VertexBoneWeight]]) -> "ContourMesh":
        """Copy with new weights; positions and triangles are shared."""
        vertices = tuple(
            v.with_weights(weights_by_id.get(v.id, ())) for v in self.vertices
        )
        return ContourMesh(vertices=vertices, triangles=self.triangles)

    def validate(self) -> list[str]:
        """Return a list of structural problems (empty when valid)."""
        problems = []
        for tri in self.triangles:
            if len(set(tri)) != 3:
                problems.append(f"triangle {tri} repeats a vertex")
            for vid in tri:
                if vid not in self._index:
                    problems.append(f"triangle {tri} references missing vertex {vid}")
        return problems

    def to_dict(self) -> dict[str, Any]:
        return {
            "vertices": [v.to_dict() for v in self.vertices],
            "triangles": [list(t) for t in self.triangles],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContourMesh":
        vertices = tuple(ContourMeshVertex.from_dict(v) for v in data.get("vertices", []))
        triangles = []
        for tri in data.get("triangles", []):
            if len(tri) != 3:
                raise ValueError(f"Triangle {tri!r} must have 3 vertex ids")
            triangles.append((str(tri[0]), str(tri[1]), str(tri[2])))
        mesh = cls(vertices=vertices, triangles=tuple(triangles))
        problems = mesh.validate()
        if problems:
            raise ValueError("Invalid contour mesh: " + "; ".join(problems[:3]))
        return mesh
