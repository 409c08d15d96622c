"""Skeleton preset catalog: named bone topologies with default landmark positions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Union

from contourrig.core.config_loader import load_config


class PresetKind(str, Enum):
    HUMAN = "human"
    ANIMAL = "animal"
    BIRD = "bird"

    @classmethod
    def parse(cls, value: Union[str, "PresetKind", None]) -> "PresetKind":
        """Parse a kind, falling back to HUMAN for anything unknown."""
        try:
            return cls(value)
        except ValueError:
            return cls.HUMAN


@dataclass(frozen=True)
class BoneNode:
    """A skeleton landmark with its default normalized position."""
    id: str
    label: str
    default_position: tuple[float, float]


@dataclass(frozen=True)
class SkeletonPreset:
    kind: PresetKind
    label: str
    nodes: tuple[BoneNode, ...]
    edges: tuple[tuple[str, str], ...]

    @property
    def node_ids(self) -> tuple[str, ...]:
        return tuple(n.id for n in self.nodes)

    def node(self, node_id: str) -> BoneNode | None:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def default_pose(self) -> dict[str, tuple[float, float]]:
        return {n.id: n.default_position for n in self.nodes}


def _preset_from_config(entry: dict) -> SkeletonPreset:
    nodes = tuple(
        BoneNode(
            id=n["id"],
            label=n["label"],
            default_position=(float(n["defaultPosition"][0]), float(n["defaultPosition"][1])),
        )
        for n in entry["nodes"]
    )
    edges = tuple((a, b) for a, b in entry["edges"])
    return SkeletonPreset(kind=PresetKind(entry["kind"]), label=entry["label"], nodes=nodes, edges=edges)


@lru_cache(maxsize=1)
def _load_presets() -> dict[PresetKind, SkeletonPreset]:
    return {p.kind: p for p in map(_preset_from_config, load_config("skeleton_presets.json"))}


def list_preset_kinds() -> list[PresetKind]:
    return list(_load_presets().keys())


def get_preset_by_kind(kind: Union[str, PresetKind, None]) -> SkeletonPreset:
    """Look up a preset; unknown kinds get the human preset."""
    presets = _load_presets()
    return presets.get(PresetKind.parse(kind), presets[PresetKind.HUMAN])


def __getattr__(name: str):
    # SKELETON_PRESETS is loaded lazily from JSON on first access.
    if name == "SKELETON_PRESETS":
        return tuple(_load_presets().values())
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
