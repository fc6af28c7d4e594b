"""
Busylight — Dispatcher.

The single consumer of the event queue and the only owner of SessionState.
Events are handled one at a time, in arrival order, each to completion
before the next is taken; that serialization is why nothing here needs a
lock even though four producers feed the queue concurrently.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from busylight.core import display
from busylight.core.events import AppointmentsEvent, CameraEvent, KeyEvent, TickEvent
from busylight.core.indicator import Action, future_meetings, next_meeting, update_indicator
from busylight.data.models import SessionState, local_now

if TYPE_CHECKING:
    from busylight.adapters.terminal import RawTerminal
    from busylight.core.events import Event
    from busylight.core.light_controller import LightController

logger = logging.getLogger(__name__)

_KEY_ACTIONS = {
    "b": Action.BUSY,
    "g": Action.GREEN,
    "o": Action.OFF,
}


class Dispatcher:
    """Drains the event queue and drives the indicator."""

    def __init__(
        self,
        light: LightController,
        terminal: RawTerminal | None = None,
        state: SessionState | None = None,
    ) -> None:
        self.light = light
        self.terminal = terminal
        self.state = state or SessionState()

    async def run(self, queue: asyncio.Queue[Event]) -> None:
        """Process events until the user quits."""
        while True:
            event = await queue.get()
            try:
                if await self.handle(event):
                    return
            finally:
                queue.task_done()

    async def handle(self, event: Event) -> bool:
        """Apply one event. Returns True when the loop should stop."""
        if isinstance(event, AppointmentsEvent):
            await self._on_appointments(event)
        elif isinstance(event, TickEvent):
            if self.state.calendar_synced:
                await update_indicator(self.state, self.light)
        elif isinstance(event, CameraEvent):
            self.state.camera_on = event.on
            await update_indicator(self.state, self.light)
        elif isinstance(event, KeyEvent):
            return await self._on_key(event.key)
        else:
            logger.warning("Ignoring unknown event %r", event)
        return False

    async def _on_appointments(self, event: AppointmentsEvent) -> None:
        # Whole-tuple swap: the indicator never sees a partial set
        self.state.appointments = event.appointments
        if self.state.calendar_synced:
            return

        self.state.calendar_synced = True
        logger.info("First calendar sync: %d appointment(s)", len(event.appointments))
        now = local_now()
        display.print_meetings(
            future_meetings(self.state.appointments, now, today_only=True),
            "Today's upcoming meetings",
            now,
        )
        await update_indicator(self.state, self.light)

    async def _on_key(self, key: str) -> bool:
        if key in _KEY_ACTIONS:
            await update_indicator(self.state, self.light, _KEY_ACTIONS[key])
        elif key == ".":
            await update_indicator(self.state, self.light)
        elif key == "n":
            display.print_next(next_meeting(self.state.appointments))
        elif key == "a":
            display.print_meetings(
                future_meetings(self.state.appointments), "Upcoming meetings",
            )
        elif key in ("h", "?"):
            display.print_help()
        elif key == "q":
            logger.info("Quit requested")
            if self.terminal is not None:
                self.terminal.restore()
            return True
        else:
            logger.info("Unknown key %r (h for help)", key)
            await update_indicator(self.state, self.light)
        return False
