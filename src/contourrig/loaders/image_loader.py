"""Load character rasters as RGBA arrays."""

from pathlib import Path
from typing import Union

import numpy as np
from numpy.typing import NDArray
from PIL import Image

ImageLike = Union[str, Path, Image.Image, NDArray[np.uint8]]


def load_rgba(path: Union[str, Path]) -> NDArray[np.uint8]:
    """Read an image file into an (H, W, 4) uint8 array."""
    with Image.open(path) as img:
        return np.asarray(img.convert("RGBA"), dtype=np.uint8).copy()


def as_rgba_array(image: ImageLike) -> NDArray[np.uint8]:
    """Coerce a path, PIL image or array into an (H, W, 4) uint8 array.

    RGB arrays get an opaque alpha channel; grayscale arrays are treated
    as the alpha channel of a white image.
    """
    if isinstance(image, (str, Path)):
        return load_rgba(image)
    if isinstance(image, Image.Image):
        return np.asarray(image.convert("RGBA"), dtype=np.uint8)

    arr = np.asarray(image)
    if arr.dtype != np.uint8:
        arr = np.clip(arr, 0, 255).astype(np.uint8)
    if arr.ndim == 2:
        out = np.full(arr.shape + (4,), 255, dtype=np.uint8)
        out[..., 3] = arr
        return out
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise ValueError(f"Expected (H, W, 3|4) image array, got shape {arr.shape}")
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.concatenate([arr, alpha], axis=2)
    return arr


def as_pil_rgba(image: ImageLike) -> Image.Image:
    """Coerce any supported image input into an RGBA PIL image."""
    if isinstance(image, Image.Image):
        return image if image.mode == "RGBA" else image.convert("RGBA")
    return Image.fromarray(as_rgba_array(image))
