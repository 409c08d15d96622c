"""EventBus for decoupled publish/subscribe communication."""

from enum import Enum, auto
from typing import Any, Callable
from collections import defaultdict


class EventType(Enum):
    # Mesh lifecycle
    MESH_GENERATED = auto()       # data: mesh (ContourMesh)
    MESH_FAILED = auto()          # data: failure (RigFailure)
    WEIGHTS_RECOMPUTED = auto()   # data: mesh (ContourMesh)

    # Skeleton
    BONES_SUGGESTED = auto()      # data: nodes (list[BoneNodePosition])
    POSE_CHANGED = auto()         # data: pose (dict)
    PRESET_CHANGED = auto()       # data: preset_kind (str), angle_view (str)

    # Animation preview
    PREVIEW_STARTED = auto()      # data: motion (str)
    PREVIEW_FRAME = auto()        # data: frame (RasterFrame), time (float)
    PREVIEW_STOPPED = auto()      # data: bind_pose (dict)


class EventBus:
    """Simple publish/subscribe event system."""

    def __init__(self):
        self._handlers: dict[EventType, list[Callable]] = defaultdict(list)

    def subscribe(self, event_type: EventType, handler: Callable) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: EventType, handler: Callable) -> None:
        handlers = self._handlers[event_type]
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event_type: EventType, **data: Any) -> None:
        for handler in list(self._handlers[event_type]):
            handler(**data)

    def clear(self) -> None:
        self._handlers.clear()
