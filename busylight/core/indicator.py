"""
Busylight — Indicator State Machine.

Maps the session state (appointments, camera, manual override, ignore set)
plus an optional key action onto the color the light should show and the
status line explaining why.

`resolve` is the decision logic and only mutates the ignore set and manual
mode it is handed. `update_indicator` wraps it with output and the light
call, and never raises: a broken evaluation just means the display does not
change this cycle.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from busylight.config import settings
from busylight.core import display
from busylight.data.models import (
    GREEN,
    OFF,
    RED,
    Appointment,
    Color,
    ManualMode,
    SessionState,
    local_now,
    video_call_appointment,
)

if TYPE_CHECKING:
    from busylight.core.light_controller import LightController

logger = logging.getLogger(__name__)

# Anything this long is the video-call pseudo-appointment, not a real meeting.
LONG_MEETING_SENTINEL = timedelta(days=365 * 1000)


class Action(enum.Enum):
    """Explicit key actions that feed into an evaluation."""

    OFF = "off"
    BUSY = "busy"
    GREEN = "green"


@dataclass(frozen=True)
class Indication:
    """What the light shows and the human-readable reason."""

    color: Color
    message: str


def _pick_current(current: list[Appointment], now: datetime) -> Appointment:
    """Prefer a meeting we are strictly inside over one that only matches with fuzz."""
    for appt in current:
        if appt.in_meeting(timedelta(0), now):
            return appt
    return current[0]


def next_meeting(
    appointments: tuple[Appointment, ...] | list[Appointment],
    now: datetime | None = None,
) -> Appointment | None:
    """Earliest appointment that has not started yet."""
    now = now or local_now()
    upcoming = [a for a in appointments if a.future_meeting(timedelta(0), now)]
    return min(upcoming, key=lambda a: a.start, default=None)


def future_meetings(
    appointments: tuple[Appointment, ...] | list[Appointment],
    now: datetime | None = None,
    today_only: bool = False,
) -> list[Appointment]:
    """Appointments that have not started yet, in start order."""
    now = now or local_now()
    upcoming = [a for a in appointments if a.future_meeting(timedelta(0), now)]
    if today_only:
        upcoming = [a for a in upcoming if a.start.date() == now.date()]
    return sorted(upcoming, key=lambda a: a.start)


def resolve(
    state: SessionState,
    action: Action | None = None,
    now: datetime | None = None,
    fuzz: timedelta | None = None,
    long_threshold: timedelta | None = None,
    sentinel: timedelta = LONG_MEETING_SENTINEL,
) -> Indication:
    """Decide color and message; updates state.ignore_set and state.manual_mode."""
    now = now or local_now()
    if fuzz is None:
        fuzz = timedelta(seconds=settings.MEETING_FUZZ_SECONDS)
    if long_threshold is None:
        long_threshold = timedelta(hours=settings.LONG_MEETING_HOURS)

    # 1. Camera on counts as a meeting for this evaluation only
    appointments = list(state.appointments)
    if state.camera_on:
        appointments.append(video_call_appointment(now.tzinfo))

    # 2. Meetings in progress, minus the all-day-ish ones
    current = [
        a for a in appointments
        if a.in_meeting(fuzz, now) and not a.is_long_meeting(long_threshold, sentinel)
    ]

    # 3. "off" remembers what is running now so it stays off
    if action is Action.OFF:
        state.ignore_set = {a.canonical for a in current}
        state.manual_mode = ManualMode.NONE

    # 4. Nothing running, nothing to ignore
    if not current:
        state.ignore_set.clear()

    # 5. Drop what the user already switched off
    current = [a for a in current if a.canonical not in state.ignore_set]

    # 6. Overrides replace each other
    if action is Action.BUSY:
        state.manual_mode = ManualMode.BUSY
    elif action is Action.GREEN:
        state.manual_mode = ManualMode.FREE

    # 7. Overrides first, then meetings, then the ignore set
    if state.manual_mode is ManualMode.BUSY:
        return Indication(RED, "manually busy")
    if state.manual_mode is ManualMode.FREE:
        return Indication(GREEN, "manually free")
    if current:
        return Indication(RED, f"In meeting: {_pick_current(current, now).description}")
    if state.ignore_set:
        return Indication(OFF, "not in a meeting (manual override)")

    upcoming = next_meeting(state.appointments, now)
    if upcoming is not None:
        return Indication(OFF, display.describe_next(upcoming, now))
    return Indication(OFF, "no meetings")


async def update_indicator(
    state: SessionState,
    light: LightController,
    action: Action | None = None,
    now: datetime | None = None,
) -> Indication | None:
    """Resolve, print the status line and drive the light.

    Returns the indication, or None if evaluation failed.
    """
    try:
        now = now or local_now()
        indication = resolve(state, action, now)
        display.print_status(indication.color, indication.message, now)
        logger.debug("Indicator %s: %s", indication.color, indication.message)
        await light.set_color(indication.color)
        return indication
    except Exception:
        logger.exception("Indicator evaluation failed; display unchanged")
        return None
