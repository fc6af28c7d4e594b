"""
Busylight — Data Models.

Appointments are fetched fresh on every calendar cycle and never mutated;
SessionState is the only mutable state in the process and belongs to the
dispatcher task.
"""

from __future__ import annotations

import enum
import functools
from dataclasses import dataclass, field
from datetime import datetime, timedelta, tzinfo

VIDEO_CALL_DESCRIPTION = "In video call"


def local_now() -> datetime:
    """Current time as an aware datetime in the local UTC offset."""
    return datetime.now().astimezone()


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Appointment:
    """A time-boxed calendar record.

    Appointments compare, hash and sort by their canonical string form,
    which is also what the ignore set stores.
    """

    start: datetime
    end: datetime
    description: str

    @property
    def canonical(self) -> str:
        return f"{self.start} {self.end} {self.description}"

    def __str__(self) -> str:
        return self.canonical

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Appointment):
            return NotImplemented
        return self.canonical == other.canonical

    def __lt__(self, other: Appointment) -> bool:
        if not isinstance(other, Appointment):
            return NotImplemented
        return self.canonical < other.canonical

    def __hash__(self) -> int:
        return hash(self.canonical)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def in_meeting(self, fuzz: timedelta, now: datetime | None = None) -> bool:
        """True iff now lies within [start - fuzz, end + fuzz], both ends inclusive."""
        now = now or local_now()
        return self.start - fuzz <= now <= self.end + fuzz

    def future_meeting(self, fuzz: timedelta, now: datetime | None = None) -> bool:
        """True iff the meeting (minus fuzz) has not started yet."""
        now = now or local_now()
        return self.start - fuzz >= now

    def is_long_meeting(self, threshold: timedelta, sentinel: timedelta) -> bool:
        """True iff threshold < duration < sentinel.

        The sentinel keeps the synthetic video-call appointment, which spans
        thousands of years, out of the "long meeting" bucket.
        """
        return threshold < self.duration < sentinel


def video_call_appointment(tz: tzinfo) -> Appointment:
    """Pseudo-appointment that is always in progress while the camera is on."""
    return Appointment(
        start=datetime(1900, 1, 1, tzinfo=tz),
        end=datetime(9999, 1, 1, tzinfo=tz),
        description=VIDEO_CALL_DESCRIPTION,
    )


def merge_appointments(*batches: list[Appointment]) -> tuple[Appointment, ...]:
    """Merge several fetch results into one sorted, de-duplicated tuple."""
    merged: set[Appointment] = set()
    for batch in batches:
        merged.update(batch)
    return tuple(sorted(merged))


@dataclass(frozen=True)
class Color:
    """An RGB triple for the light sink (0-255 per channel, ~20 in practice)."""

    r: int
    g: int
    b: int

    def __str__(self) -> str:
        return f"{self.r},{self.g},{self.b}"


RED = Color(20, 0, 0)
GREEN = Color(0, 20, 0)
OFF = Color(0, 0, 0)


class ManualMode(enum.Enum):
    """Keyboard override. BUSY and FREE are mutually exclusive by construction."""

    NONE = "none"
    BUSY = "busy"
    FREE = "free"


@dataclass
class SessionState:
    """Everything the indicator needs to decide what the light shows.

    Owned by the dispatcher task; producers never see it.
    """

    appointments: tuple[Appointment, ...] = ()
    camera_on: bool = False
    manual_mode: ManualMode = ManualMode.NONE
    ignore_set: set[str] = field(default_factory=set)
    calendar_synced: bool = False
