"""JSON config file loading utilities."""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from contourrig.constants import CONFIG_DIR


def load_json(path: Path) -> Any:
    """Load and return parsed JSON from a file."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def save_json(path: Path, data: Any) -> None:
    """Write data as indented UTF-8 JSON."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


@lru_cache(maxsize=None)
def load_config(name: str) -> Any:
    """Load a packaged config file from contourrig/config/.

    Results are cached; callers must not mutate the returned objects.
    """
    return load_json(CONFIG_DIR / name)
