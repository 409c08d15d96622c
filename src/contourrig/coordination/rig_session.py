"""Rigging session: one character image, its skeleton binding and the preview.

Holds the state a binding editor works on and publishes an event for
every change so a UI layer can stay in sync without polling.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from contourrig.core.events import EventBus, EventType
from contourrig.core.math_utils import Point
from contourrig.core.mesh import ContourMesh
from contourrig.core.results import MeshOk, MeshResult
from contourrig.core.settings import RigSettings
from contourrig.loaders.image_loader import ImageLike, as_rgba_array
from contourrig.matting.client import MattingClient, MattingResult, apply_matting
from contourrig.mesh.contour import extract_contour
from contourrig.mesh.generator import generate_contour_mesh, recompute_contour_mesh_weights
from contourrig.rendering.preview import FrameSnapshot, SkinningPreview
from contourrig.rendering.warp import RasterFrame, deform_and_composite
from contourrig.skeleton.binding import SkeletonBinding, create_binding
from contourrig.skeleton.motions import MotionType
from contourrig.skeleton.poses import AngleView, BoneNodePosition, Pose, nodes_from_pose
from contourrig.skeleton.presets import PresetKind, get_preset_by_kind
from contourrig.skinning.suggest import suggest_bone_positions_from_contour

logger = logging.getLogger(__name__)


class RigSession:
    """Binding editor state for a single character angle."""

    def __init__(
        self,
        image: ImageLike,
        binding: Optional[SkeletonBinding] = None,
        settings: Optional[RigSettings] = None,
        event_bus: Optional[EventBus] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.settings = settings or RigSettings()
        self.event_bus = event_bus or EventBus()
        self.binding = binding or create_binding()
        self._rgba = as_rgba_array(image)
        self._executor = executor
        self._owns_executor = executor is None
        self._contour_future: Optional[Future] = None
        self._bind_pose: Optional[Pose] = None
        self._preview: Optional[SkinningPreview] = None

    # ── Properties ────────────────────────────────────────────────

    @property
    def rgba(self) -> NDArray[np.uint8]:
        return self._rgba

    @property
    def mesh(self) -> Optional[ContourMesh]:
        return self.binding.contour_mesh

    @property
    def pose(self) -> Pose:
        return self.binding.pose

    @property
    def bind_pose(self) -> Pose:
        """Pose the cached mesh was generated in.

        For a binding loaded from disk this is recovered from the mesh's
        bone-sample vertices; other bones fall back to their current position.
        """
        if self._bind_pose is not None:
            return dict(self._bind_pose)
        pose = self.pose
        if self.mesh is not None:
            pose.update(self.mesh.bone_sample_positions())
        return pose

    @property
    def is_previewing(self) -> bool:
        return self._preview is not None and self._preview.is_active

    # ── Contour ───────────────────────────────────────────────────

    def extract_contour_async(self) -> "Future[list[Point]]":
        """Start contour extraction on a worker thread (once per image)."""
        if self._contour_future is None:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="contour")
            s = self.settings
            self._contour_future = self._executor.submit(
                extract_contour, self._rgba.copy(), s.alpha_threshold,
                max_points=s.max_contour_points, tolerance=s.contour_tolerance,
            )
        return self._contour_future

    def apply_matting(self, client: MattingClient, model_id: str) -> MattingResult:
        """Replace the image alpha via the matting service; the cached contour is dropped."""
        result = apply_matting(self._rgba, client, model_id)
        if result.ok:
            self._rgba = result.rgba
            self._contour_future = None
        return result

    # ── Mesh ──────────────────────────────────────────────────────

    def generate_mesh(self) -> MeshResult:
        """Regenerate the contour mesh; on failure the binding is left untouched."""
        contour = self._contour_future.result() if self._contour_future is not None else None
        result = generate_contour_mesh(
            self._rgba, self.binding.nodes, self.binding.preset_kind, self.settings,
            contour=contour,
        )
        if isinstance(result, MeshOk):
            self.binding = self.binding.with_mesh(result.mesh)
            self._bind_pose = self.pose
            self.event_bus.publish(EventType.MESH_GENERATED, mesh=result.mesh)
        else:
            self.event_bus.publish(EventType.MESH_FAILED, failure=result)
        return result

    def recompute_weights(self) -> Optional[ContourMesh]:
        """Re-weight the cached mesh against the current bone positions."""
        if self.mesh is None:
            return None
        mesh = recompute_contour_mesh_weights(
            self.mesh, self.binding.nodes, self.binding.preset_kind, self.settings,
        )
        self.binding = self.binding.with_weights(mesh)
        self._bind_pose = self.pose
        self.event_bus.publish(EventType.WEIGHTS_RECOMPUTED, mesh=mesh)
        return mesh

    # ── Skeleton ──────────────────────────────────────────────────

    def suggest_bones(self) -> list[BoneNodePosition]:
        """Move every bone to a position fitted to the mesh outline."""
        preset = get_preset_by_kind(self.binding.preset_kind)
        mesh = self.mesh or ContourMesh()
        nodes = suggest_bone_positions_from_contour(
            mesh, preset, self.binding.angle_view, self.settings,
        )
        self.binding = self.binding.with_nodes(nodes)
        self.event_bus.publish(EventType.BONES_SUGGESTED, nodes=nodes)
        return nodes

    def move_bone(self, bone_id: str, position: Sequence[float]) -> None:
        if self.is_previewing:
            logger.debug("Ignoring bone move during preview: %s", bone_id)
            return
        pose = self.pose
        if bone_id not in pose:
            raise KeyError(f"Unknown bone: {bone_id}")
        pose[bone_id] = (float(position[0]), float(position[1]))
        self._set_pose(pose)

    def _set_pose(self, pose: Pose) -> None:
        order = [n.id for n in self.binding.nodes]
        self.binding = self.binding.with_nodes(nodes_from_pose(pose, order))
        self.event_bus.publish(EventType.POSE_CHANGED, pose=self.pose)

    def set_preset(
        self,
        preset_kind: Union[PresetKind, str],
        angle_view: Union[AngleView, str, None] = None,
    ) -> SkeletonBinding:
        """Start over with a fresh binding for another preset (drops the mesh)."""
        self.stop_preview()
        view = angle_view if angle_view is not None else self.binding.angle_view
        self.binding = create_binding(preset_kind, view)
        self._bind_pose = None
        self.event_bus.publish(
            EventType.PRESET_CHANGED,
            preset_kind=self.binding.preset_kind.value,
            angle_view=self.binding.angle_view.value if self.binding.angle_view else None,
        )
        return self.binding

    # ── Rendering / preview ───────────────────────────────────────

    def render(self, canvas_size: Optional[tuple[int, int]] = None) -> Optional[RasterFrame]:
        """Render the current pose through the cached mesh (None without a mesh)."""
        if self.mesh is None:
            return None
        return deform_and_composite(self.mesh, self.bind_pose, self.pose, self._rgba,
                                    canvas_size=canvas_size, overlap=self.settings.seam_overlap_px)

    def start_preview(
        self,
        motion: Union[MotionType, str],
        canvas_size: Optional[tuple[int, int]] = None,
    ) -> SkinningPreview:
        if self.mesh is None:
            raise RuntimeError("Generate a contour mesh before previewing motion")
        if self._preview is None or self._preview.mesh is not self.mesh:
            self._preview = SkinningPreview(
                self.mesh, self._rgba,
                angle_view=self.binding.angle_view or AngleView.FRONT,
                canvas_size=canvas_size,
                overlap=self.settings.seam_overlap_px,
            )
        self._preview.start(self.pose, motion)
        self.event_bus.publish(EventType.PREVIEW_STARTED, motion=MotionType(motion).value)
        return self._preview

    def tick(self, dt: Optional[float] = None) -> Optional[tuple[FrameSnapshot, RasterFrame]]:
        if self._preview is None:
            return None
        result = self._preview.tick(dt)
        if result is not None:
            snapshot, frame = result
            self.event_bus.publish(EventType.PREVIEW_FRAME, frame=frame, time=snapshot.time)
        return result

    def stop_preview(self) -> Optional[Pose]:
        """Stop the preview and restore the bones to the captured bind pose."""
        if self._preview is None:
            return None
        bind = self._preview.stop()
        if bind is not None:
            self._set_pose(bind)
            self.event_bus.publish(EventType.PREVIEW_STOPPED, bind_pose=bind)
        return bind

    def close(self) -> None:
        self.stop_preview()
        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=True)
            self._executor = None
