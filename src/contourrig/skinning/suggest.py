"""Suggest bone landmark positions from a contour mesh.

Human presets are fitted region by region: vertical percentiles of the
outline give head/neck/chest levels, the outermost arm and leg points give
hands and feet, and the joints in between are interpolated. Other presets
just remap their default layout into the outline's bounding box. Every
suggested point is pulled inside the outline.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Union

from contourrig.constants import SUGGEST_PAD
from contourrig.core.math_utils import Point, centroid, clamp, lerp_point, point_in_polygon
from contourrig.core.mesh import ContourMesh
from contourrig.core.settings import RigSettings
from contourrig.skeleton.poses import AngleView, BoneNodePosition, get_rest_pose
from contourrig.skeleton.presets import PresetKind, SkeletonPreset

logger = logging.getLogger(__name__)

PERCENTILES = (0.05, 0.15, 0.25, 0.38, 0.48, 0.65, 0.85, 0.95)


def clamp_to_polygon(
    p: Sequence[float],
    polygon: Sequence[Point],
    center: Point,
    blend: float = 0.3,
    iterations: int = 20,
) -> Point:
    """Move ``p`` toward ``center`` until it lies inside (or on) the polygon.

    Returns the last candidate when the iteration budget runs out.
    """
    x, y = float(p[0]), float(p[1])
    if point_in_polygon((x, y), polygon):
        return x, y
    for _ in range(iterations):
        x, y = lerp_point((x, y), center, blend)
        if point_in_polygon((x, y), polygon):
            break
    return x, y


class _Outline:
    """Bounding box, centroid and percentile levels of a contour polygon."""

    def __init__(self, polygon: list[Point], settings: RigSettings):
        self.polygon = polygon
        self.settings = settings
        self.center = centroid(polygon)
        xs = [p[0] for p in polygon]
        ys = [p[1] for p in polygon]
        self.min_x, self.max_x = min(xs), max(xs)
        self.min_y, self.max_y = min(ys), max(ys)
        self.range_x = max(0.01, self.max_x - self.min_x)
        self.range_y = max(0.01, self.max_y - self.min_y)
        sorted_y = sorted(ys)
        self.levels = {q: sorted_y[int(q * len(sorted_y))] for q in PERCENTILES}

    def y(self, q: float) -> float:
        return self.levels[q]

    def inside(self, p: Sequence[float]) -> tuple[float, float]:
        q = clamp_to_polygon(p, self.polygon, self.center,
                             self.settings.clamp_blend, self.settings.clamp_iterations)
        return clamp(q[0]), clamp(q[1])


def _fallback_positions(preset: SkeletonPreset, rest: dict) -> list[BoneNodePosition]:
    return [BoneNodePosition(n.id, tuple(rest.get(n.id, n.default_position))) for n in preset.nodes]


def _linear_fit(outline: _Outline, preset: SkeletonPreset, rest: dict) -> list[BoneNodePosition]:
    result = []
    for n in preset.nodes:
        dx, dy = rest.get(n.id, n.default_position)
        p = (outline.min_x + SUGGEST_PAD + dx * outline.range_x,
             outline.min_y + SUGGEST_PAD + dy * outline.range_y)
        result.append(BoneNodePosition(n.id, outline.inside(p)))
    return result


def _human_fit(o: _Outline) -> dict[str, tuple[float, float]]:
    cx = o.center[0]
    p05, p15, p25, p38, p48, p65, p85, p95 = (o.y(q) for q in PERCENTILES)

    arm_region = [p for p in o.polygon if p15 <= p[1] <= p65]
    leg_region = [p for p in o.polygon if p[1] >= p65]
    left_arm = [p for p in arm_region if p[0] < cx]
    right_arm = [p for p in arm_region if p[0] >= cx]
    left_leg = [p for p in leg_region if p[0] < cx]
    right_leg = [p for p in leg_region if p[0] >= cx]

    arm_mid_y = (p15 + p65) / 2
    hand_lx = min(p[0] for p in left_arm) if left_arm else o.min_x
    hand_rx = max(p[0] for p in right_arm) if right_arm else o.max_x
    # Lowest leg point; ties go to the outer side so mirrored outlines agree
    bottom_left = (min(left_leg, key=lambda p: (-p[1], p[0])) if left_leg
                   else (o.min_x + o.range_x * 0.35, o.max_y))
    bottom_right = (min(right_leg, key=lambda p: (-p[1], -p[0])) if right_leg
                    else (o.max_x - o.range_x * 0.35, o.max_y))

    if left_arm:
        upper = [p[0] for p in left_arm if p[1] <= p38]
        torso_lx = max(upper + [cx - o.range_x * 0.2])
    else:
        torso_lx = cx - o.range_x * 0.24
    shoulder_lx = max(hand_lx, torso_lx - o.range_x * 0.02)

    if right_arm:
        upper = [p[0] for p in right_arm if p[1] <= p38]
        torso_rx = min(upper + [cx + o.range_x * 0.2])
    else:
        torso_rx = cx + o.range_x * 0.24
    shoulder_rx = min(hand_rx, torso_rx + o.range_x * 0.02)

    knee_y = (p48 + p95) / 2
    ankle_y = (p85 + p95) / 2

    return {
        "head_top": (cx, (o.min_y + p05) / 2),
        "jaw": (cx, (p05 + p15) / 2),
        "collarbone": (cx, (p15 + p25) / 2),
        "navel": (cx, (p25 + p38) / 2),
        "shoulder_l": (shoulder_lx if left_arm else o.min_x + o.range_x * 0.28, p15),
        "elbow_l": (hand_lx + (shoulder_lx - hand_lx) * 0.55, arm_mid_y),
        "wrist_l": (hand_lx + (shoulder_lx - hand_lx) * 0.25, arm_mid_y),
        "fingertip_l": (hand_lx, arm_mid_y),
        "shoulder_r": (shoulder_rx if right_arm else o.max_x - o.range_x * 0.28, p15),
        "elbow_r": (hand_rx + (shoulder_rx - hand_rx) * 0.55, arm_mid_y),
        "wrist_r": (hand_rx + (shoulder_rx - hand_rx) * 0.25, arm_mid_y),
        "fingertip_r": (hand_rx, arm_mid_y),
        "hip_l": (min(p[0] for p in left_leg) + o.range_x * 0.08 if left_leg
                  else cx - o.range_x * 0.12, p48),
        "knee_l": (bottom_left[0] + (cx - bottom_left[0]) * 0.5, knee_y),
        "heel_l": (bottom_left[0] + (cx - bottom_left[0]) * 0.2, ankle_y),
        "toe_l": (bottom_left[0], bottom_left[1]),
        "hip_r": (max(p[0] for p in right_leg) - o.range_x * 0.08 if right_leg
                  else cx + o.range_x * 0.12, p48),
        "knee_r": (bottom_right[0] + (cx - bottom_right[0]) * 0.5, knee_y),
        "heel_r": (bottom_right[0] + (cx - bottom_right[0]) * 0.2, ankle_y),
        "toe_r": (bottom_right[0], bottom_right[1]),
    }


def suggest_bone_positions_from_contour(
    mesh: ContourMesh,
    preset: SkeletonPreset,
    angle_view: Union[AngleView, str, None] = None,
    settings: Optional[RigSettings] = None,
) -> list[BoneNodePosition]:
    """One suggested position per preset node, each inside the mesh outline.

    With fewer than 3 contour vertices the rest pose of ``angle_view`` (or
    the preset defaults) is returned unchanged.
    """
    settings = settings or RigSettings()
    view = AngleView.parse(angle_view)
    rest = get_rest_pose(view) if view is not None else {}
    polygon = [v.position for v in mesh.contour_vertices()]
    if len(polygon) < 3:
        logger.info("Suggest bones: %d contour vertices, using rest positions", len(polygon))
        return _fallback_positions(preset, rest)

    outline = _Outline(polygon, settings)
    if preset.kind != PresetKind.HUMAN:
        return _linear_fit(outline, preset, rest)

    fitted = _human_fit(outline)
    result = []
    for n in preset.nodes:
        target = fitted.get(n.id)
        if target is None:
            dx, dy = rest.get(n.id, n.default_position)
            target = (outline.min_x + SUGGEST_PAD + dx * outline.range_x,
                      outline.min_y + SUGGEST_PAD + dy * outline.range_y)
        result.append(BoneNodePosition(n.id, outline.inside(target)))
    logger.info("Suggested %d bone positions from %d contour vertices", len(result), len(polygon))
    return result
