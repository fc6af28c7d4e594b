"""gcalcli calendar adapter — implements CalendarPort by shelling out to gcalcli.

gcalcli handles OAuth and the Google Calendar API; we only run
`gcalcli agenda --tsv` per calendar and parse the tab-separated rows.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
from datetime import date, datetime, tzinfo

from busylight.config import settings
from busylight.data.models import Appointment
from busylight.ports.calendar_port import CalendarError

logger = logging.getLogger(__name__)

_DATETIME_FORMAT = "%Y-%m-%d %H:%M"


def _local_tz() -> tzinfo:
    return datetime.now().astimezone().tzinfo


def parse_agenda_tsv(output: str, tz: tzinfo | None = None) -> list[Appointment]:
    """Parse `gcalcli agenda --tsv` output into appointments.

    Each row is: start_date, start_time, end_date, end_time, title
    (any further columns are ignored). Header rows, blank lines and all-day
    events (no start/end time) are skipped. Times are naive local times and
    all get the same UTC offset.
    """
    tz = tz or _local_tz()
    appointments: list[Appointment] = []

    for line in output.splitlines():
        if not line.strip():
            continue
        cols = line.split("\t")
        if len(cols) < 5:
            logger.debug("Skipping short agenda row: %r", line)
            continue

        start_date, start_time, end_date, end_time, title = (c.strip() for c in cols[:5])
        if not start_time or not end_time:
            continue  # all-day

        try:
            start = datetime.strptime(f"{start_date} {start_time}", _DATETIME_FORMAT)
            end = datetime.strptime(f"{end_date} {end_time}", _DATETIME_FORMAT)
        except ValueError:
            # header row ("start_date ...") or unexpected format
            logger.debug("Skipping unparsable agenda row: %r", line)
            continue

        appointments.append(
            Appointment(
                start=start.replace(tzinfo=tz),
                end=end.replace(tzinfo=tz),
                description=title,
            )
        )

    return appointments


class GcalcliCalendarAdapter:
    """gcalcli implementation of CalendarPort."""

    def __init__(self, command: str | None = None, timeout: float | None = None) -> None:
        self._command = shlex.split(command or settings.GCALCLI_COMMAND)
        self._timeout = timeout or settings.GCALCLI_TIMEOUT

    def _build_args(self, calendar: str, start: date, end: date) -> list[str]:
        return [
            *self._command,
            "--calendar", calendar,
            "agenda",
            "--tsv",
            "--nodeclined",
            start.isoformat(),
            end.isoformat(),
        ]

    async def fetch_appointments(
        self, calendar: str, start: date, end: date
    ) -> list[Appointment]:
        args = self._build_args(calendar, start, end)
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise CalendarError(f"Failed to run gcalcli: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise CalendarError(
                f"gcalcli timed out after {self._timeout}s for calendar '{calendar}'"
            ) from exc

        if proc.returncode != 0:
            message = stderr.decode(errors="replace").strip()
            raise CalendarError(
                f"gcalcli failed for calendar '{calendar}' (exit {proc.returncode}): {message}"
            )

        appointments = parse_agenda_tsv(stdout.decode(errors="replace"))
        logger.debug(
            "Fetched %d appointment(s) from '%s' for %s..%s",
            len(appointments), calendar, start, end,
        )
        return appointments
