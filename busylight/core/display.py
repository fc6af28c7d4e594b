"""
Busylight — Console output.

Everything the user reads in the terminal goes through here: the status
line printed on every evaluation, meeting lists and the key help.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from rich.console import Console
from rich.markup import escape

from busylight.data.models import GREEN, RED, Appointment, Color, local_now

console = Console(highlight=False)

HELP_TEXT = """\
[bold]Keys[/bold]
  [red]b[/red]  manually busy (red)
  [green]g[/green]  manually free (green)
  o  off / ignore the current meeting
  .  refresh now
  n  show next meeting
  a  show all upcoming meetings
  h ?  this help
  q  quit"""

_STYLES = {RED: "bold red", GREEN: "bold green"}


def _style(color: Color) -> str:
    return _STYLES.get(color, "dim")


def format_countdown(delta: timedelta) -> str:
    """Format a timedelta as H:MM, clamping negatives to 0:00."""
    minutes = max(int(delta.total_seconds() // 60), 0)
    return f"{minutes // 60}:{minutes % 60:02d}"


def describe_next(appointment: Appointment, now: datetime | None = None) -> str:
    now = now or local_now()
    return (
        f"Next meeting in {format_countdown(appointment.start - now)}: "
        f"{appointment.description} at {appointment.start:%H:%M}"
    )


def print_status(color: Color, message: str, now: datetime | None = None) -> None:
    now = now or local_now()
    style = _style(color)
    console.print(
        f"[dim]{now:%H:%M:%S}[/dim] [{style}]●[/{style}] {escape(message)}"
    )


def print_meetings(
    appointments: Iterable[Appointment], title: str, now: datetime | None = None
) -> None:
    now = now or local_now()
    rows = list(appointments)
    console.print(f"[bold]{escape(title)}[/bold]")
    if not rows:
        console.print("  [dim]none[/dim]")
        return
    for appt in rows:
        console.print(
            f"  {appt.start:%H:%M}-{appt.end:%H:%M} "
            f"[cyan]{escape(appt.description)}[/cyan] "
            f"[dim](in {format_countdown(appt.start - now)})[/dim]"
        )


def print_next(appointment: Appointment | None, now: datetime | None = None) -> None:
    if appointment is None:
        console.print("[dim]No upcoming meetings[/dim]")
        return
    console.print(escape(describe_next(appointment, now)))


def print_help() -> None:
    console.print(HELP_TEXT)
