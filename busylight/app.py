"""
Busylight — Application wiring.

Parses the command line, builds the adapters, and runs the periodic
producers on one scheduler plus the key listener and the dispatcher as
asyncio tasks, all sharing one queue.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from busylight.adapters.command_light import CommandLight
from busylight.adapters.gcalcli_calendar import GcalcliCalendarAdapter
from busylight.adapters.proc_modules_camera import ProcModulesCamera
from busylight.adapters.terminal import RawTerminal
from busylight.config import settings
from busylight.core import display
from busylight.core.dispatcher import Dispatcher
from busylight.core.light_controller import LightController
from busylight.core.sources import (
    CalendarPoller,
    CameraMonitor,
    KeyListener,
    Ticker,
    create_scheduler,
)

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="busylight",
        description="Drive a desk status light from your calendar and webcam.",
    )
    parser.add_argument(
        "calendars",
        type=_calendar_list,
        help="comma-separated calendar names, e.g. 'Work,Personal'",
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=settings.POLL_INTERVAL,
        help="calendar poll interval in seconds (default: %(default)s)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="debug logging",
    )
    args = parser.parse_args(argv)
    if args.interval < 1:
        parser.error("--interval must be at least 1 second")
    return args


def _calendar_list(value: str) -> list[str]:
    names = [name.strip() for name in value.split(",") if name.strip()]
    if not names:
        raise argparse.ArgumentTypeError("at least one calendar name is required")
    return names


async def run(calendars: list[str], interval: int, terminal: RawTerminal) -> None:
    """Run until the dispatcher stops; a crashing task propagates."""
    queue: asyncio.Queue = asyncio.Queue()

    dispatcher = Dispatcher(LightController(CommandLight()), terminal=terminal)
    scheduler = create_scheduler(queue, [
        Ticker(),
        CalendarPoller(GcalcliCalendarAdapter(), calendars, interval=interval),
        CameraMonitor(ProcModulesCamera()),
    ])

    consumer = asyncio.create_task(dispatcher.run(queue), name="dispatcher")
    pending = {consumer}
    if os.isatty(terminal.fd):
        listener = KeyListener(terminal.fd)
        pending.add(asyncio.create_task(listener.run(queue), name="KeyListener"))
    else:
        logger.warning("stdin is not a terminal; keyboard overrides disabled")

    scheduler.start()
    logger.info("Scheduler started")

    try:
        while consumer in pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                # Re-raises a task's exception; a clean finish (stdin EOF) is fine
                task.result()
                if task is not consumer:
                    logger.info("%s finished", task.get_name())
    finally:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)


def main(argv: list[str] | None = None) -> None:
    """Entry point: parse args, set up the terminal and run the event loop."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info(
        "Starting busylight for calendar(s) %s, polling every %ds",
        ", ".join(args.calendars), args.interval,
    )
    display.print_help()

    with RawTerminal() as terminal:
        asyncio.run(run(args.calendars, args.interval, terminal))
    sys.exit(0)


if __name__ == "__main__":
    main()
