"""Tagged success/failure values returned by the rig entry points.

Failures are values, not exceptions: the UI shows ``RigFailure.message``
and nothing persisted is touched.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from contourrig.core.mesh import ContourMesh


class FailureKind(Enum):
    INSUFFICIENT_CONTOUR = "insufficient_contour"
    NO_BONES_BOUND = "no_bones_bound"
    DEGENERATE_TRIANGULATION = "degenerate_triangulation"
    SINGULAR_AFFINE = "singular_affine"
    MATTING_FAILED = "matting_failed"


@dataclass(frozen=True)
class RigFailure:
    kind: FailureKind
    message: str
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class MeshOk:
    mesh: "ContourMesh"

    @property
    def ok(self) -> bool:
        return True


MeshResult = Union[MeshOk, RigFailure]


def insufficient_contour(found: int) -> RigFailure:
    return RigFailure(
        FailureKind.INSUFFICIENT_CONTOUR,
        f"No usable contour found (only {found} contour points). Use a PNG/WebP "
        "image with a transparent background, or run background removal first.",
    )


def no_bones_bound() -> RigFailure:
    return RigFailure(
        FailureKind.NO_BONES_BOUND,
        "Bind the skeleton first (drag the bone nodes onto the character).",
    )


def degenerate_triangulation(detail: Optional[str] = None) -> RigFailure:
    return RigFailure(
        FailureKind.DEGENERATE_TRIANGULATION,
        "The contour does not match the bone placement; no valid mesh triangles "
        "were produced. Try background removal or adjust the bones and retry.",
        detail,
    )


def singular_affine(count: int) -> RigFailure:
    return RigFailure(
        FailureKind.SINGULAR_AFFINE,
        f"{count} mesh triangle(s) collapsed and were not drawn.",
    )


def matting_failed(detail: Optional[str] = None) -> RigFailure:
    return RigFailure(
        FailureKind.MATTING_FAILED,
        "Background removal failed. Check that the local matting service is running.",
        detail,
    )
