"""Kernel-module camera adapter — implements CameraPort.

A UVC webcam that is streaming holds a reference on the `uvcvideo` module,
so a non-zero refcount in /proc/modules means the camera is in use.
"""

from __future__ import annotations

import logging
from pathlib import Path

from busylight.config import settings
from busylight.ports.camera_port import CameraError

logger = logging.getLogger(__name__)


def module_refcount(table: str, module: str) -> int:
    """Return the refcount of `module` in a /proc/modules table (0 if absent).

    Rows look like: "uvcvideo 139264 1 - Live 0x0000000000000000".
    """
    for line in table.splitlines():
        cols = line.split()
        if len(cols) < 3 or cols[0] != module:
            continue
        try:
            return int(cols[2])
        except ValueError:
            logger.debug("Unexpected refcount column for %s: %r", module, line)
            return 0
    return 0


class ProcModulesCamera:
    """Reads the module table on every call; no caching."""

    def __init__(self, path: str | None = None, module: str | None = None) -> None:
        self._path = Path(path or settings.MODULES_PATH)
        self._module = module or settings.CAMERA_MODULE

    def is_busy(self) -> bool:
        try:
            table = self._path.read_text()
        except OSError as exc:
            raise CameraError(f"Cannot read {self._path}: {exc}") from exc
        return module_refcount(table, self._module) > 0
