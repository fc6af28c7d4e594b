"""
Busylight — Event Sources.

Four independent producers, each emitting a single event type into the
shared queue:

- Ticker: wall-clock aligned periodic re-evaluation.
- CalendarPoller: full appointment set every poll interval.
- CameraMonitor: camera on/off, edge-triggered.
- KeyListener: single key presses from the terminal.

The three periodic producers run as jobs on one APScheduler
AsyncIOScheduler (see create_scheduler); the key listener is driven by the
loop's reader callbacks and runs as its own task.

Producers only build events and enqueue them; they never see session state.
"""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import date, datetime, timedelta, timezone
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from busylight.config import settings
from busylight.core.events import AppointmentsEvent, CameraEvent, KeyEvent, TickEvent
from busylight.data.models import local_now, merge_appointments
from busylight.ports.calendar_port import CalendarError
from busylight.ports.camera_port import CameraError

if TYPE_CHECKING:
    from busylight.core.events import Event
    from busylight.ports.calendar_port import CalendarPort
    from busylight.ports.camera_port import CameraPort

logger = logging.getLogger(__name__)

# Interval triggers counted from here fire on wall-clock multiples.
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def create_scheduler(queue: asyncio.Queue[Event], producers) -> AsyncIOScheduler:
    """Build an AsyncIOScheduler with one job per periodic producer.

    The scheduler is returned unstarted; start it from inside the running loop.
    """
    scheduler = AsyncIOScheduler()
    for producer in producers:
        producer.schedule(scheduler, queue)
    return scheduler


# ---------------------------------------------------------------------------
# Ticker
# ---------------------------------------------------------------------------


class Ticker:
    """Emits TickEvent every `interval` seconds, aligned to the wall clock."""

    def __init__(self, interval: float | None = None) -> None:
        self.interval = interval or settings.TICK_INTERVAL

    def trigger(self) -> IntervalTrigger:
        # Each fire is the previous one plus `interval`, never a re-read of the clock
        return IntervalTrigger(seconds=self.interval, start_date=_EPOCH)

    def schedule(self, scheduler: AsyncIOScheduler, queue: asyncio.Queue[Event]) -> None:
        scheduler.add_job(
            self.tick,
            self.trigger(),
            args=[queue],
            id="ticker",
            name="Ticker",
            coalesce=True,
            max_instances=1,
        )

    async def tick(self, queue: asyncio.Queue[Event]) -> None:
        await queue.put(TickEvent())


# ---------------------------------------------------------------------------
# Calendar poller
# ---------------------------------------------------------------------------


class CalendarPoller:
    """Fetches every configured calendar and emits one merged AppointmentsEvent."""

    def __init__(
        self,
        calendar: CalendarPort,
        names: list[str],
        interval: float | None = None,
        days_ahead: int | None = None,
    ) -> None:
        self._calendar = calendar
        self._names = names
        self.interval = interval or settings.POLL_INTERVAL
        self._days_ahead = days_ahead if days_ahead is not None else settings.DAYS_AHEAD

    def schedule(self, scheduler: AsyncIOScheduler, queue: asyncio.Queue[Event]) -> None:
        # First fetch right away, then every interval
        scheduler.add_job(
            self.poll,
            IntervalTrigger(seconds=self.interval),
            args=[queue],
            id="calendar_poller",
            name="Calendar Poller",
            max_instances=1,
            next_run_time=local_now(),
        )

    async def poll_once(self, today: date | None = None) -> AppointmentsEvent | None:
        """One fetch cycle. Returns None if any calendar failed."""
        today = today or date.today()
        end = today + timedelta(days=self._days_ahead)

        batches = []
        for name in self._names:
            try:
                batches.append(await self._calendar.fetch_appointments(name, today, end))
            except CalendarError as exc:
                logger.warning("Calendar '%s' fetch failed, skipping cycle: %s", name, exc)
                return None

        appointments = merge_appointments(*batches)
        logger.info(
            "Fetched %d appointment(s) from %d calendar(s)",
            len(appointments), len(self._names),
        )
        return AppointmentsEvent(appointments)

    async def poll(self, queue: asyncio.Queue[Event]) -> None:
        event = await self.poll_once()
        if event is not None:
            await queue.put(event)


# ---------------------------------------------------------------------------
# Camera monitor
# ---------------------------------------------------------------------------


class CameraMonitor:
    """Polls the camera state and reports transitions only."""

    def __init__(self, camera: CameraPort, interval: float | None = None) -> None:
        self._camera = camera
        self.interval = interval or settings.CAMERA_POLL_INTERVAL
        # Assume off at startup: a camera already in use yields one "on" event.
        self._last = False

    def schedule(self, scheduler: AsyncIOScheduler, queue: asyncio.Queue[Event]) -> None:
        scheduler.add_job(
            self.poll,
            IntervalTrigger(seconds=self.interval),
            args=[queue],
            id="camera_monitor",
            name="Camera Monitor",
            max_instances=1,
            next_run_time=local_now(),
        )

    async def check(self) -> CameraEvent | None:
        """Read the camera once; return an event only if the state changed."""
        try:
            # File read, kept off the event loop
            busy = await asyncio.to_thread(self._camera.is_busy)
        except CameraError as exc:
            logger.warning("Camera state unavailable: %s", exc)
            return None

        if busy == self._last:
            return None
        self._last = busy
        logger.info("Camera %s", "on" if busy else "off")
        return CameraEvent(busy)

    async def poll(self, queue: asyncio.Queue[Event]) -> None:
        event = await self.check()
        if event is not None:
            await queue.put(event)


# ---------------------------------------------------------------------------
# Key listener
# ---------------------------------------------------------------------------


class KeyListener:
    """Turns bytes readable on `fd` into KeyEvents via the loop's reader callbacks.

    The terminal itself is put into no-echo single-key mode by
    busylight.adapters.terminal.RawTerminal.
    """

    def __init__(self, fd: int) -> None:
        self.fd = fd

    async def run(self, queue: asyncio.Queue[Event]) -> None:
        loop = asyncio.get_running_loop()
        closed = asyncio.Event()

        def _on_readable() -> None:
            data = os.read(self.fd, 1)
            if not data:
                logger.info("Keyboard input closed")
                loop.remove_reader(self.fd)
                closed.set()
                return
            key = data.decode(errors="replace").casefold()
            queue.put_nowait(KeyEvent(key))

        loop.add_reader(self.fd, _on_readable)
        try:
            await closed.wait()
        finally:
            loop.remove_reader(self.fd)
