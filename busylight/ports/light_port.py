"""Light port — abstract interface for the status light hardware."""

from __future__ import annotations

from typing import Protocol

from busylight.data.models import Color


class LightError(Exception):
    """Raised when the light hardware rejects a command or is unreachable."""


class LightPort(Protocol):
    """Abstract light sink used by the light controller."""

    async def send(self, color: Color) -> None: ...
