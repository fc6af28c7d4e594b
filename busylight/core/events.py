"""Typed events flowing from the producers to the dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from busylight.data.models import Appointment


@dataclass(frozen=True)
class TickEvent:
    """Periodic re-evaluation request."""


@dataclass(frozen=True)
class AppointmentsEvent:
    """A complete replacement set of appointments from one calendar cycle."""

    appointments: tuple[Appointment, ...]


@dataclass(frozen=True)
class CameraEvent:
    """Camera switched on or off."""

    on: bool


@dataclass(frozen=True)
class KeyEvent:
    """A single case-folded key press."""

    key: str


Event = Union[TickEvent, AppointmentsEvent, CameraEvent, KeyEvent]
