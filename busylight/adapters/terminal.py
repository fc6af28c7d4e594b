"""Terminal adapter — single-keystroke, no-echo input mode.

`enable()` switches the terminal to cbreak mode so every key press is
readable immediately; `restore()` puts back the saved attributes. When
stdin is not a tty both are no-ops.
"""

from __future__ import annotations

import logging
import os
import sys
import termios
import tty

logger = logging.getLogger(__name__)


class RawTerminal:
    """Owns the saved termios attributes for one file descriptor."""

    def __init__(self, fd: int | None = None) -> None:
        self.fd = sys.stdin.fileno() if fd is None else fd
        self._saved: list | None = None

    @property
    def is_raw(self) -> bool:
        return self._saved is not None

    def enable(self) -> None:
        if self._saved is not None:
            return
        if not os.isatty(self.fd):
            logger.debug("fd %d is not a tty, leaving it alone", self.fd)
            return
        self._saved = termios.tcgetattr(self.fd)
        tty.setcbreak(self.fd, termios.TCSANOW)
        logger.debug("Terminal switched to cbreak/no-echo mode")

    def restore(self) -> None:
        if self._saved is None:
            return
        termios.tcsetattr(self.fd, termios.TCSADRAIN, self._saved)
        self._saved = None
        logger.debug("Terminal mode restored")

    def __enter__(self) -> RawTerminal:
        self.enable()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.restore()
