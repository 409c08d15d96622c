"""HTTP client for the local background-removal (matting) service.

The service takes raw RGB bytes and returns an RGBA buffer of the same
size whose alpha channel separates the character from the background.
Running it before contour extraction makes opaque images usable.
"""

from __future__ import annotations

import base64
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import httpx
import numpy as np
from numpy.typing import NDArray

from contourrig.core.results import RigFailure, matting_failed
from contourrig.core.settings import RigSettings
from contourrig.loaders.image_loader import ImageLike, as_rgba_array

logger = logging.getLogger(__name__)

HEALTH_TIMEOUT = 3.0


@dataclass(frozen=True)
class MattingResult:
    rgba: Optional[NDArray[np.uint8]] = None
    failure: Optional[RigFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.rgba is not None


@dataclass
class MattingClient:
    """Synchronous client for ``POST /matting/run`` and ``GET /health``.

    Transport errors and malformed responses are retried; a service-level
    ``{"ok": false}`` answer is returned immediately.
    """

    base_url: str
    timeout: float = 120.0
    retries: int = 5
    retry_delay: float = 0.3
    transport: Optional[httpx.BaseTransport] = None
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    @classmethod
    def from_settings(cls, settings: RigSettings, **kwargs: Any) -> "MattingClient":
        return cls(
            base_url=settings.matting_url,
            timeout=settings.matting_timeout,
            retries=settings.matting_retries,
            retry_delay=settings.matting_retry_delay,
            **kwargs,
        )

    def _client(self, timeout: float) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=timeout, transport=self.transport)

    def ping(self) -> bool:
        """True when the service answers ``/health`` with 200."""
        try:
            with self._client(HEALTH_TIMEOUT) as client:
                response = client.get("/health")
        except httpx.HTTPError as exc:
            logger.debug("Matting health check failed: %s", exc)
            return False
        return response.status_code == 200

    def run(self, model_id: str, image: ImageLike,
            options: Optional[dict[str, Any]] = None) -> MattingResult:
        rgba = as_rgba_array(image)
        height, width = rgba.shape[:2]
        rgb = np.ascontiguousarray(rgba[..., :3])
        body = {
            "modelId": model_id,
            "rgbBase64": base64.b64encode(rgb.tobytes()).decode("ascii"),
            "width": width,
            "height": height,
            "channels": 3,
            "options": options,
        }

        last_error = "unknown error"
        attempts = max(1, self.retries)
        for attempt in range(attempts):
            try:
                with self._client(self.timeout) as client:
                    payload = client.post("/matting/run", json=body).json()
                if not payload.get("ok"):
                    message = str(payload.get("error") or "matting failed")
                    logger.warning("Matting service rejected %s: %s", model_id, message)
                    return MattingResult(failure=matting_failed(message))
                raw = base64.b64decode(payload["rgbaBase64"])
                return MattingResult(rgba=_decode_rgba(raw, width, height))
            except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as exc:
                last_error = str(exc) or type(exc).__name__
                logger.warning("Matting attempt %d/%d failed: %s", attempt + 1, attempts, last_error)
                if attempt < attempts - 1:
                    self.sleep(self.retry_delay)

        return MattingResult(failure=matting_failed(f"Could not reach matting service: {last_error}"))


def _decode_rgba(raw: bytes, width: int, height: int) -> NDArray[np.uint8]:
    expected = width * height * 4
    if len(raw) != expected:
        raise ValueError(f"RGBA buffer has {len(raw)} bytes, expected {expected}")
    return np.frombuffer(raw, dtype=np.uint8).reshape(height, width, 4).copy()


def apply_matting(image: ImageLike, client: MattingClient, model_id: str) -> MattingResult:
    """Replace the image's alpha channel with the one computed by the service.

    Colour channels of the input are kept as they are.
    """
    rgba = as_rgba_array(image).copy()
    result = client.run(model_id, rgba)
    if not result.ok:
        return result
    rgba[..., 3] = result.rgba[..., 3]
    logger.info("Applied %s matting to %dx%d image", model_id, rgba.shape[1], rgba.shape[0])
    return MattingResult(rgba=rgba)
