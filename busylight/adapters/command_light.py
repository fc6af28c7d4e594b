"""External-command light adapter — implements LightPort.

Runs a command such as `blink1-tool --rgb=20,0,0` once per color change.
"""

from __future__ import annotations

import asyncio
import logging
import shlex

from busylight.config import settings
from busylight.data.models import Color
from busylight.ports.light_port import LightError

logger = logging.getLogger(__name__)


def build_light_command(template: str, color: Color) -> list[str]:
    """Split the command template and substitute {r}, {g}, {b}."""
    return [
        part.format(r=color.r, g=color.g, b=color.b)
        for part in shlex.split(template)
    ]


class CommandLight:
    """Light sink backed by an external driver process."""

    def __init__(self, template: str | None = None, timeout: float | None = None) -> None:
        self._template = template or settings.LIGHT_COMMAND
        self._timeout = timeout or settings.LIGHT_TIMEOUT

    async def send(self, color: Color) -> None:
        args = build_light_command(self._template, color)
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise LightError(f"Failed to run {args[0]}: {exc}") from exc

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise LightError(f"{args[0]} did not finish within {self._timeout}s") from exc

        if proc.returncode != 0:
            raise LightError(
                f"{args[0]} exited {proc.returncode}: "
                f"{stderr.decode(errors='replace').strip()}"
            )
        logger.debug("Light set to %s", color)
