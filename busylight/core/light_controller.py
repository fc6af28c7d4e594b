"""
Busylight — Light Controller.

Sends colors to the light sink while skipping redundant commands: the same
color is sent at most `repeat_limit` times in a row, after which the sink is
assumed to be holding it. A failing sink is logged and never raised, so the
indicator loop keeps running without hardware.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from busylight.config import settings
from busylight.data.models import Color
from busylight.ports.light_port import LightError, LightPort

logger = logging.getLogger(__name__)


@dataclass
class LightState:
    """Last color sent and how many times in a row it was requested."""

    last_color: Color | None = None
    repeat_count: int = 0


class LightController:
    """Rate-limited, dedup-aware sender of colors to a LightPort."""

    def __init__(self, sink: LightPort, repeat_limit: int | None = None) -> None:
        self._sink = sink
        self._repeat_limit = repeat_limit or settings.LIGHT_REPEAT_LIMIT
        self.state = LightState()

    def reset(self) -> None:
        self.state = LightState()

    async def set_color(self, color: Color) -> None:
        if color == self.state.last_color:
            self.state.repeat_count += 1
            if self.state.repeat_count > self._repeat_limit:
                logger.debug(
                    "Suppressing repeat #%d of %s", self.state.repeat_count, color,
                )
                return
        else:
            self.state = LightState(last_color=color, repeat_count=1)

        try:
            await self._sink.send(color)
        except LightError as exc:
            logger.error("Failed to set light to %s: %s", color, exc)
            # Forget the color so the next evaluation tries again.
            self.reset()
