"""Camera port — abstract interface for "is the webcam in use?"."""

from __future__ import annotations

from typing import Protocol


class CameraError(Exception):
    """Raised when the camera state cannot be read."""


class CameraPort(Protocol):
    """Abstract camera-state interface used by the camera monitor."""

    def is_busy(self) -> bool: ...
