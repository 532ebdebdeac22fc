"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, List, Optional, Tuple

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.table import Table

from ..adapters.json_event_source import JsonEventSource
from ..config import AppConfig, get_default_config_path
from ..domain.calendar_prepare import CalendarDataPreparer
from ..domain.exceptions import AgendaError
from ..domain.models import CalendarItem, TimeSlot, User
from ..services.calendar_service import CalendarService

app = typer.Typer(
    name="agendamerge",
    help="Merge calendar sources into one agenda and find free meeting slots",
    add_completion=False
)

console = Console()


def _status_label(status: Optional[bool]) -> str:
    if status is None:
        return "[yellow]pending[/yellow]"
    return "[green]accepted[/green]" if status else "[red]declined[/red]"


def _build_service(config_file: Optional[Path]) -> Tuple[AppConfig, CalendarService]:
    """Load configuration and wire the event source, preparer and service."""
    config_path = config_file or get_default_config_path()
    config = AppConfig.load_from_yaml(config_path)

    source = JsonEventSource(config.events_file, timezone=config.timezone)
    preparer = CalendarDataPreparer(tick_minutes=config.defaults.tick_minutes)
    service = CalendarService(
        event_source=source,
        preparer=preparer,
        day_start_hour=config.defaults.day_start_hour,
        day_end_hour=config.defaults.day_end_hour,
        timezone=config.timezone,
    )
    return config, service


def _parse_day(value: str, tz: str) -> DateTime:
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz)
    except ValueError as e:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD: {e}") from e


def _print_agenda(items: List[CalendarItem]) -> None:
    if not items:
        console.print("[yellow]⚠ No calendar entries in this period.[/yellow]")
        return

    table = Table(title="Agenda", show_header=True, header_style="bold cyan")
    table.add_column("Start", style="bold")
    table.add_column("End")
    table.add_column("Type")
    table.add_column("Title", style="bold yellow")
    table.add_column("Owner")
    table.add_column("Status")

    for item in items:
        table.add_row(
            item.start_at.format("DD.MM.YYYY HH:mm"),
            item.end_at.format("HH:mm"),
            item.type.value,
            item.title,
            "✓" if item.is_owner else "",
            _status_label(item.status),
        )

    console.print(table)


def _print_slots(slots: List[TimeSlot]) -> None:
    if not slots:
        console.print("[yellow]⚠ No slots left for this day.[/yellow]")
        return

    free_count = sum(1 for slot in slots if slot.is_available)
    console.print(f"[bold green]✓ {free_count} of {len(slots)} slot(s) free:[/bold green]\n")
    for slot in slots:
        style = "green" if slot.is_available else "dim"
        console.print(f"  [{style}]{slot.format_display()}[/{style}]")


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
):
    """
    agendamerge command line interface.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


@app.command()
def agenda(
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD)")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the response as JSON.")] = False,
):
    """
    Show the merged agenda of the configured user.

    Examples:

        agendamerge agenda
        agendamerge agenda --start 2024-11-25 --end 2024-11-29
        agendamerge agenda --json
    """
    try:
        config, service = _build_service(config_file)
        tz = config.timezone

        date_start = _parse_day(start, tz).start_of("day") if start else None
        date_end = _parse_day(end, tz).end_of("day") if end else None

        user = User(id=config.current_user_id)
        items = asyncio.run(service.list_agenda(user, date_start, date_end))

        if as_json:
            typer.echo(json.dumps([item.to_dict() for item in items], indent=2, ensure_ascii=False))
        else:
            _print_agenda(items)

    except (FileNotFoundError, AgendaError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def free(
    to_user_id: Annotated[int, typer.Argument(help="Id of the user to meet")],
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    day: Annotated[Optional[str], typer.Option("--day", help="Day to book (YYYY-MM-DD). Defaults to today.")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", min=0, help="Minutes blocked before each meeting")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the response as JSON.")] = False,
):
    """
    Show free and busy slots for meeting another user.

    Examples:

        agendamerge free 42
        agendamerge free 42 --day 2024-11-25 --duration 30
    """
    try:
        config, service = _build_service(config_file)
        tz = config.timezone

        booking_day = _parse_day(day, tz) if day else None
        padding = duration if duration is not None else config.defaults.busy_padding_minutes

        user = User(id=config.current_user_id)
        slots = asyncio.run(service.free_slots(user, to_user_id, day=booking_day, duration=padding))

        if as_json:
            typer.echo(json.dumps([slot.to_dict() for slot in slots], indent=2))
        else:
            _print_slots(slots)

    except (FileNotFoundError, AgendaError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]agendamerge[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
