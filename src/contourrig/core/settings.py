"""Tunable engine settings with JSON / environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

from contourrig.constants import (
    ALPHA_THRESHOLD,
    CLAMP_BLEND,
    CLAMP_ITERATIONS,
    CONTOUR_TOLERANCE,
    DEFAULT_EXTREMITY_BONES,
    DEFAULT_MATTING_HOST,
    DEFAULT_MATTING_PORT,
    MATTING_RETRIES,
    MATTING_RETRY_DELAY,
    MATTING_TIMEOUT,
    MAX_CONTOUR_POINTS,
    MAX_INFLUENCES,
    MIN_RELATIVE_WEIGHT,
    SEAM_OVERLAP_PX,
    TARGET_FPS,
    TRIANGLE_INSIDE_THRESHOLD,
    WEIGHT_EPSILON,
)
from contourrig.core.config_loader import load_json

logger = logging.getLogger(__name__)

SETTINGS_ENV = "CONTOURRIG_SETTINGS"
MATTING_URL_ENV = "AIMODEL_SERVICE_URL"


def _default_extremities() -> dict[str, tuple[str, ...]]:
    return {k: tuple(v) for k, v in DEFAULT_EXTREMITY_BONES.items()}


@dataclass
class RigSettings:
    """All numeric knobs of the contour/mesh/skinning pipeline."""
    alpha_threshold: int = ALPHA_THRESHOLD
    triangle_inside_threshold: int = TRIANGLE_INSIDE_THRESHOLD
    max_contour_points: int = MAX_CONTOUR_POINTS
    contour_tolerance: float = CONTOUR_TOLERANCE
    weight_epsilon: float = WEIGHT_EPSILON
    max_influences: int = MAX_INFLUENCES
    min_relative_weight: float = MIN_RELATIVE_WEIGHT
    # preset kind -> bone ids left out of triangulation
    extremity_bones: dict[str, tuple[str, ...]] = field(default_factory=_default_extremities)
    clamp_blend: float = CLAMP_BLEND
    clamp_iterations: int = CLAMP_ITERATIONS
    seam_overlap_px: float = SEAM_OVERLAP_PX
    preview_fps: int = TARGET_FPS
    matting_url: str = f"http://{DEFAULT_MATTING_HOST}:{DEFAULT_MATTING_PORT}"
    matting_timeout: float = MATTING_TIMEOUT
    matting_retries: int = MATTING_RETRIES
    matting_retry_delay: float = MATTING_RETRY_DELAY

    def extremities_for(self, preset_kind) -> frozenset[str]:
        key = preset_kind.value if isinstance(preset_kind, Enum) else str(preset_kind)
        return frozenset(self.extremity_bones.get(key, ()))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RigSettings":
        """Build settings from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown setting: %s", key)
                continue
            if key == "extremity_bones":
                merged = _default_extremities()
                merged.update({str(k): tuple(v) for k, v in value.items()})
                value = merged
            kwargs[key] = value
        return cls(**kwargs)


def _normalize_matting_url(raw: str) -> Optional[str]:
    parsed = urlparse(raw)
    if not parsed.scheme or not parsed.hostname:
        return None
    port = parsed.port or DEFAULT_MATTING_PORT
    return f"{parsed.scheme}://{parsed.hostname}:{port}"


def load_settings(path: Optional[Path] = None) -> RigSettings:
    """Load settings from ``path`` (or $CONTOURRIG_SETTINGS), falling back to defaults.

    The matting service URL may additionally be overridden with
    $AIMODEL_SERVICE_URL.
    """
    if path is None and os.environ.get(SETTINGS_ENV):
        path = Path(os.environ[SETTINGS_ENV])

    if path is not None:
        settings = RigSettings.from_dict(load_json(path))
        logger.info("Loaded rig settings from %s", path)
    else:
        settings = RigSettings()

    env_url = os.environ.get(MATTING_URL_ENV)
    if env_url:
        url = _normalize_matting_url(env_url)
        if url is None:
            logger.warning("Invalid %s=%r, keeping %s", MATTING_URL_ENV, env_url, settings.matting_url)
        else:
            settings.matting_url = url
    return settings
