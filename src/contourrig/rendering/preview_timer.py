"""Qt frame timer that drives a SkinningPreview at the display rate."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence, Union

from PySide6.QtCore import QObject, QTimer, Signal

from contourrig.constants import TARGET_FPS
from contourrig.rendering.preview import SkinningPreview
from contourrig.skeleton.motions import MotionType

logger = logging.getLogger(__name__)


class PreviewTimer(QObject):
    """Ticks a SkinningPreview once per frame.

    Signals
    -------
    frame_ready(FrameSnapshot, RasterFrame)
    stopped(dict)
        Emitted with the captured bind pose so the view can restore it.
    """

    frame_ready = Signal(object, object)
    stopped = Signal(dict)

    def __init__(self, preview: SkinningPreview, fps: int = TARGET_FPS, parent=None):
        super().__init__(parent)
        self._preview = preview
        self._timer = QTimer(self)
        self._timer.setInterval(max(1, int(1000 / max(fps, 1))))
        self._timer.timeout.connect(self._on_timeout)

    @property
    def preview(self) -> SkinningPreview:
        return self._preview

    @property
    def is_running(self) -> bool:
        return self._timer.isActive()

    def start(self, bind_pose: Mapping[str, Sequence[float]], motion: Union[MotionType, str]) -> None:
        self._preview.start(bind_pose, motion)
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()
        bind = self._preview.stop()
        if bind is not None:
            self.stopped.emit(bind)

    def _on_timeout(self) -> None:
        result = self._preview.tick()
        if result is None:
            self._timer.stop()
            return
        snapshot, frame = result
        self.frame_ready.emit(snapshot, frame)
