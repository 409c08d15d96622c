"""Anatomical region classification for human mesh vertices.

Restricts which bones may influence a vertex so that, for example, neck
and shoulder bones do not pull on the face and shins do not pull on the
opposite foot. The classifier is an ordered decision table: the first
rule whose predicate matches decides the region.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Mapping, Sequence

# Vertical centre line of the normalized image
CENTER_X = 0.5
CENTER_TIGHT = 0.18
CENTER_LOOSE = 0.25
ARM_OFFSET = 0.06
PELVIS_BELOW_NAVEL = 0.08
LEG_SIDE_OFFSET = 0.03


class BodyRegion(IntEnum):
    """Vertex regions for human weight assignment."""
    HEAD = 0
    NECK = 1
    ARM_L = 2
    ARM_R = 3
    CHEST = 4
    PELVIS = 5
    THIGH_L = 6
    SHIN_L = 7
    ANKLE_L = 8
    FOOT_L = 9
    THIGH_R = 10
    SHIN_R = 11
    ANKLE_R = 12
    FOOT_R = 13
    HIPS = 14


REGION_BONES: dict[BodyRegion, tuple[str, ...]] = {
    BodyRegion.HEAD: ("head_top",),
    BodyRegion.NECK: ("jaw", "collarbone"),
    BodyRegion.ARM_L: ("collarbone", "shoulder_l", "elbow_l", "wrist_l", "fingertip_l"),
    BodyRegion.ARM_R: ("collarbone", "shoulder_r", "elbow_r", "wrist_r", "fingertip_r"),
    BodyRegion.CHEST: ("collarbone", "navel"),
    BodyRegion.PELVIS: ("collarbone", "navel", "hip_l", "hip_r"),
    BodyRegion.THIGH_L: ("navel", "hip_l", "knee_l"),
    BodyRegion.SHIN_L: ("hip_l", "knee_l", "heel_l"),
    BodyRegion.ANKLE_L: ("knee_l", "heel_l"),
    BodyRegion.FOOT_L: ("heel_l", "toe_l"),
    BodyRegion.THIGH_R: ("navel", "hip_r", "knee_r"),
    BodyRegion.SHIN_R: ("hip_r", "knee_r", "heel_r"),
    BodyRegion.ANKLE_R: ("knee_r", "heel_r"),
    BodyRegion.FOOT_R: ("heel_r", "toe_r"),
    BodyRegion.HIPS: ("navel", "hip_l", "hip_r"),
}


# landmark name -> (bone id, axis, default)
_LANDMARK_SOURCES: dict[str, tuple[str, int, float]] = {
    "jaw": ("jaw", 1, 0.12),
    "collarbone": ("collarbone", 1, 0.2),
    "navel": ("navel", 1, 0.38),
    "shoulder_l": ("shoulder_l", 0, 0.26),
    "shoulder_r": ("shoulder_r", 0, 0.74),
    "hip_l": ("hip_l", 1, 0.48),
    "hip_r": ("hip_r", 1, 0.48),
    "knee_l": ("knee_l", 1, 0.68),
    "knee_r": ("knee_r", 1, 0.68),
    "heel_l": ("heel_l", 1, 0.88),
    "heel_r": ("heel_r", 1, 0.88),
    "toe_l": ("toe_l", 1, 0.96),
    "toe_r": ("toe_r", 1, 0.96),
}


@dataclass(frozen=True)
class Landmarks:
    """Scalar body landmarks (y levels, shoulder x) taken from the bone positions."""
    jaw: float
    collarbone: float
    navel: float
    shoulder_l: float
    shoulder_r: float
    hip_l: float
    hip_r: float
    knee_l: float
    knee_r: float
    heel_l: float
    heel_r: float
    toe_l: float
    toe_r: float

    @classmethod
    def from_bones(cls, bones: Mapping[str, Sequence[float]]) -> "Landmarks":
        values = {}
        for name, (bone_id, axis, default) in _LANDMARK_SOURCES.items():
            pos = bones.get(bone_id)
            values[name] = float(pos[axis]) if pos is not None else default
        return cls(**values)


def _mid(a: float, b: float) -> float:
    return (a + b) / 2


Predicate = Callable[[float, float, Landmarks], bool]


@dataclass(frozen=True)
class RegionRule:
    region: BodyRegion
    predicate: Predicate


def _lower_body(x: float, y: float, lm: Landmarks) -> bool:
    return y >= lm.navel + PELVIS_BELOW_NAVEL


HUMAN_REGION_RULES: tuple[RegionRule, ...] = (
    RegionRule(BodyRegion.HEAD, lambda x, y, lm: y < lm.jaw),
    RegionRule(BodyRegion.NECK,
               lambda x, y, lm: y < _mid(lm.jaw, lm.collarbone) and abs(x - CENTER_X) < CENTER_TIGHT),
    RegionRule(BodyRegion.ARM_L,
               lambda x, y, lm: y < _mid(lm.collarbone, lm.navel) and x < lm.shoulder_l - ARM_OFFSET),
    RegionRule(BodyRegion.ARM_R,
               lambda x, y, lm: y < _mid(lm.collarbone, lm.navel) and x > lm.shoulder_r + ARM_OFFSET),
    RegionRule(BodyRegion.CHEST, lambda x, y, lm: y < _mid(lm.collarbone, lm.navel)),
    RegionRule(BodyRegion.PELVIS,
               lambda x, y, lm: y < lm.navel + PELVIS_BELOW_NAVEL and abs(x - CENTER_X) < CENTER_LOOSE),
    # Left leg, top to bottom
    RegionRule(BodyRegion.THIGH_L,
               lambda x, y, lm: _lower_body(x, y, lm) and x < CENTER_X - LEG_SIDE_OFFSET
               and y < _mid(lm.hip_l, lm.knee_l)),
    RegionRule(BodyRegion.SHIN_L,
               lambda x, y, lm: _lower_body(x, y, lm) and x < CENTER_X - LEG_SIDE_OFFSET
               and y < _mid(lm.knee_l, lm.heel_l)),
    RegionRule(BodyRegion.ANKLE_L,
               lambda x, y, lm: _lower_body(x, y, lm) and x < CENTER_X - LEG_SIDE_OFFSET
               and y < _mid(lm.heel_l, lm.toe_l)),
    RegionRule(BodyRegion.FOOT_L,
               lambda x, y, lm: _lower_body(x, y, lm) and x < CENTER_X - LEG_SIDE_OFFSET),
    # Right leg, top to bottom
    RegionRule(BodyRegion.THIGH_R,
               lambda x, y, lm: _lower_body(x, y, lm) and x > CENTER_X + LEG_SIDE_OFFSET
               and y < _mid(lm.hip_r, lm.knee_r)),
    RegionRule(BodyRegion.SHIN_R,
               lambda x, y, lm: _lower_body(x, y, lm) and x > CENTER_X + LEG_SIDE_OFFSET
               and y < _mid(lm.knee_r, lm.heel_r)),
    RegionRule(BodyRegion.ANKLE_R,
               lambda x, y, lm: _lower_body(x, y, lm) and x > CENTER_X + LEG_SIDE_OFFSET
               and y < _mid(lm.heel_r, lm.toe_r)),
    RegionRule(BodyRegion.FOOT_R,
               lambda x, y, lm: _lower_body(x, y, lm) and x > CENTER_X + LEG_SIDE_OFFSET),
)

FALLBACK_REGION = BodyRegion.HIPS


def classify_region(
    position: Sequence[float],
    landmarks: Landmarks,
    rules: Sequence[RegionRule] = HUMAN_REGION_RULES,
) -> BodyRegion:
    """First matching rule wins; vertices matching nothing fall to the hips."""
    x, y = float(position[0]), float(position[1])
    for rule in rules:
        if rule.predicate(x, y, landmarks):
            return rule.region
    return FALLBACK_REGION


def eligible_bones_human(
    position: Sequence[float],
    bones: Mapping[str, Sequence[float]],
) -> tuple[str, ...]:
    """Bone ids allowed to influence a human vertex at ``position``."""
    region = classify_region(position, Landmarks.from_bones(bones))
    return REGION_BONES[region]
