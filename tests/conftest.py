"""Shared test fixtures and helpers.

All times are built on a fixed date in a fixed UTC offset so the
indicator logic never depends on the machine clock.
"""

from datetime import datetime, timedelta, timezone

import pytest

from busylight.data.models import Appointment, Color

TZ = timezone(timedelta(hours=2))
DAY = (2026, 2, 14)


def at(hour: int, minute: int = 0, second: int = 0) -> datetime:
    """Aware datetime on the test day."""
    return datetime(*DAY, hour, minute, second, tzinfo=TZ)


def appt(start: str, end: str, description: str = "Standup") -> Appointment:
    """Appointment from "HH:MM" strings on the test day."""
    sh, sm = map(int, start.split(":"))
    eh, em = map(int, end.split(":"))
    return Appointment(at(sh, sm), at(eh, em), description)


class FakeLight:
    """LightPort double that records every color it is sent."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[Color] = []
        self.fail = fail

    async def send(self, color: Color) -> None:
        from busylight.ports.light_port import LightError

        self.sent.append(color)
        if self.fail:
            raise LightError("device unplugged")


@pytest.fixture
def fake_light():
    return FakeLight()


@pytest.fixture
def light_controller(fake_light):
    from busylight.core.light_controller import LightController

    return LightController(fake_light, repeat_limit=2)
