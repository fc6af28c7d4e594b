"""Calendar port — abstract interface for fetching appointments.

Core modules depend on this protocol, never on a specific provider.
"""

from __future__ import annotations

from datetime import date
from typing import Protocol

from busylight.data.models import Appointment


class CalendarError(Exception):
    """Raised when any calendar provider operation fails."""


class CalendarPort(Protocol):
    """Abstract calendar interface used by the calendar poller."""

    async def fetch_appointments(
        self, calendar: str, start: date, end: date
    ) -> list[Appointment]: ...
