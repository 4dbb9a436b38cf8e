"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.google_authenticator import CalendarSession, GoogleAuthenticator
from ..adapters.mock_calendar_client import MockCalendarClient
from ..config import WEEKDAY_NAMES, AppConfig, get_default_config_path
from ..domain.availability_calculator import AvailabilityCalculator
from ..domain.exceptions import OpenSlotsError
from ..services.availability_service import AvailabilityService

app = typer.Typer(
    name="openslots",
    help="Find bookable days and appointment slots in a Google Calendar",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
StartOption = Annotated[Optional[str], typer.Option("--start", help="Window start (YYYY-MM-DD or ISO 8601). Defaults to today.")]
EndOption = Annotated[Optional[str], typer.Option("--end", help="Window end (YYYY-MM-DD or ISO 8601). Defaults to seven days after start.")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use mock calendar data and skip authentication.")]
MockDataOption = Annotated[Optional[Path], typer.Option("--mock-data", help="JSON file with mock busy blocks.")]
JsonOption = Annotated[bool, typer.Option("--json", help="Print the result as JSON.")]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Find bookable days and appointment slots in a Google Calendar.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _parse_moment(value: str, tz: str, end_of_day: bool = False) -> DateTime:
    """
    Parse a date or datetime option in the configured timezone.

    A bare date means the start of that day, or its end when ``end_of_day`` is set.
    """
    try:
        if len(value) == 10:
            day = pendulum.from_format(value, "YYYY-MM-DD", tz=tz)
            return day.end_of("day") if end_of_day else day.start_of("day")
        return pendulum.parse(value, tz=tz).in_timezone(tz)
    except ValueError as e:
        raise typer.BadParameter(f"Could not parse date {value!r}: {e}") from e


def _determine_time_range(tz: str, start_option: Optional[str], end_option: Optional[str]):
    """
    Resolve the requested window from explicit options or defaults.
    Returns (start_date, end_date).
    """
    if start_option:
        start_date = _parse_moment(start_option, tz)
    else:
        start_date = pendulum.now(tz).start_of("day")

    if end_option:
        end_date = _parse_moment(end_option, tz, end_of_day=True)
    else:
        end_date = start_date.add(days=7)

    if end_date < start_date:
        raise typer.BadParameter("--end must not be before --start")

    return start_date, end_date


def _build_service(config: AppConfig, mock: bool, mock_data: Optional[Path]) -> AvailabilityService:
    if mock:
        client = MockCalendarClient(data_file=mock_data)
    else:
        client = CalendarSession(config).calendar_client()

    calculator = AvailabilityCalculator(
        opening_hours=config.get_opening_hours(),
        step_minutes=config.availability.step_minutes,
    )

    return AvailabilityService(
        calendar_client=client,
        calculator=calculator,
        calendar_id=config.calendar_id,
    )


def _fail(error: Exception) -> typer.Exit:
    console.print(f"[bold red]Error:[/bold red] {error}")
    return typer.Exit(1)


@app.command()
def days(
    config_file: ConfigOption = None,
    start: StartOption = None,
    end: EndOption = None,
    mock: MockOption = False,
    mock_data: MockDataOption = None,
    as_json: JsonOption = False,
):
    """
    List the days that have room for at least one appointment.

    Examples:

        openslots days --start 2018-05-21 --end 2018-05-27

        openslots days --mock --json
    """
    try:
        config = _load_config(config_file)
        start_date, end_date = _determine_time_range(config.timezone, start, end)
        service = _build_service(config, mock, mock_data)
        free_days = service.find_free_days(start_date=start_date, end_date=end_date)
    except (FileNotFoundError, OpenSlotsError, ValueError) as e:
        raise _fail(e)

    if as_json:
        console.print_json(data=free_days)
        return

    if not free_days:
        console.print("[yellow]⚠ No free days found.[/yellow]")
        return

    console.print(f"[bold green]✓ {len(free_days)} free day(s):[/bold green]")
    for day in free_days:
        console.print(f"  {pendulum.parse(day).format('dddd')}, {day}")


@app.command()
def slots(
    config_file: ConfigOption = None,
    start: StartOption = None,
    end: EndOption = None,
    mock: MockOption = False,
    mock_data: MockDataOption = None,
    as_json: JsonOption = False,
):
    """
    List bookable appointment start times.
    """
    try:
        config = _load_config(config_file)
        start_date, end_date = _determine_time_range(config.timezone, start, end)
        service = _build_service(config, mock, mock_data)
        free_slots = service.find_free_slots(start_date=start_date, end_date=end_date)
    except (FileNotFoundError, OpenSlotsError, ValueError) as e:
        raise _fail(e)

    if as_json:
        console.print_json(data=[slot.to_dict() for slot in free_slots])
        return

    if not free_slots:
        console.print("[yellow]⚠ No bookable slots found.[/yellow]")
        return

    console.print(f"[bold green]✓ {len(free_slots)} bookable slot(s):[/bold green]")
    for slot in free_slots:
        console.print(f"  {slot.format_display()}")


@app.command()
def book(
    start: Annotated[str, typer.Option("--start", help="Appointment start (ISO 8601, e.g. 2018-05-22T10:30)")],
    summary: Annotated[str, typer.Option("--summary", "-s", help="Event title")],
    duration: Annotated[int, typer.Option("--duration", "-d", help="Duration in minutes")] = 15,
    description: Annotated[str, typer.Option("--description", help="Event description")] = "",
    config_file: ConfigOption = None,
    mock: MockOption = False,
    mock_data: MockDataOption = None,
):
    """
    Book an appointment in the configured calendar.
    """
    try:
        config = _load_config(config_file)
        begin = _parse_moment(start, config.timezone)
        service = _build_service(config, mock, mock_data)
        event = service.book_appointment(
            start=begin,
            end=begin.add(minutes=duration),
            summary=summary,
            description=description,
        )
    except (FileNotFoundError, OpenSlotsError, ValueError) as e:
        raise _fail(e)

    console.print(f"[green]✓ Appointment booked[/green] (event id: {event.get('id', 'N/A')})")


@app.command()
def hours(config_file: ConfigOption = None):
    """
    Show the configured opening hours.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, OpenSlotsError) as e:
        raise _fail(e)

    table = Table(
        title=f"Opening hours ({config.timezone})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Weekday", style="bold yellow")
    table.add_column("Open")
    table.add_column("Closed")

    for name, day in zip(WEEKDAY_NAMES, config.opening_hours):
        if day.open is None:
            table.add_row(name, "[dim]closed[/dim]", "[dim]closed[/dim]")
        else:
            table.add_row(name, day.open, day.closed)

    console.print(table)


@app.command()
def auth(config_file: ConfigOption = None):
    """
    Grant access to the Google Calendar and store the tokens.
    """
    try:
        config = _load_config(config_file)
        authenticator = GoogleAuthenticator.from_config(config)
        authenticator.authorize()
    except (FileNotFoundError, OpenSlotsError) as e:
        raise _fail(e)

    console.print(f"Tokens stored in {authenticator.cache_backend}.")


@app.command()
def clear_cache(config_file: ConfigOption = None):
    """
    Clear the stored Google tokens.
    """
    try:
        config = _load_config(config_file)
        GoogleAuthenticator.from_config(config).clear_cache()
    except (FileNotFoundError, OpenSlotsError) as e:
        raise _fail(e)

    console.print("\n[green]✓ Token cache cleared.[/green]")
    console.print("Run 'openslots auth' before the next calendar request.\n")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]openslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
