"""
Main CLI application using Typer.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.memory_store import InMemoryBookingStore
from ..config import AppConfig, get_default_config_path
from ..domain.availability import AvailabilityResolver
from ..domain.exceptions import SchedulingError
from ..domain.retry import OutcomeClass, RetryScheduler
from ..domain.timezones import parse_instant
from ..services.booking_service import AvailabilityService

app = typer.Typer(
    name="slotplanner",
    help="Resolve bookable appointment slots and schedule contact retries",
    add_completion=False
)

console = Console()
err_console = Console(stderr=True)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./slotplanner.yaml"),
]
NowOption = Annotated[
    Optional[str],
    typer.Option("--now", help="Current instant as ISO-8601 (defaults to the wall clock)"),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Configure logging for every command.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    try:
        return AppConfig.load_from_yaml(config_path)
    except (FileNotFoundError, ValueError) as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _resolve_now(now: Optional[str], timezone: str):
    if now is None:
        return pendulum.now(timezone)
    return parse_instant(now, timezone)


@app.command()
def availability(
    resource_name: Annotated[str, typer.Argument(help="Resource key from the config file")],
    config_file: ConfigOption = None,
    date: Annotated[Optional[str], typer.Option("--date", help="Requested date (YYYY-MM-DD)")] = None,
    now: NowOption = None,
    bookings_file: Annotated[Optional[Path], typer.Option("--bookings", "-b", help="JSON file with committed bookings")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the agent response payload as JSON")] = False,
):
    """
    Show bookable start times for a resource on a date.

    Examples:

        slotplanner availability dr-silva --date 2025-03-10

        slotplanner availability dr-silva --bookings bookings.json --json
    """
    config = _load_config(config_file)

    try:
        resource = config.resolve_resource(resource_name)
        store = InMemoryBookingStore(seed_file=bookings_file)
        service = AvailabilityService(
            booking_store=store,
            resolver=AvailabilityResolver(policy=config.availability),
        )
        result = asyncio.run(
            service.find_slots(
                resource_id=resource_name,
                resource=resource,
                requested_date=date,
                now=_resolve_now(now, resource.timezone),
            )
        )
    except (SchedulingError, ValueError, FileNotFoundError) as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(result.to_payload(), indent=2))
        return

    console.print(f"\n[bold cyan]Availability for {resource_name}[/bold cyan] on {result.date} ({result.timezone})\n")

    if not result.slots:
        console.print("[yellow]⚠ No bookable slots found within the search horizon.[/yellow]\n")
        return

    if result.requested_date_has_slots:
        console.print(f"[bold green]✓ {len(result.slots)} slot(s) on the requested date:[/bold green]")
    else:
        reason = result.reason.value if result.reason else "none"
        console.print(f"[yellow]Requested date has no slots (reason: {reason}). Next available:[/yellow]")

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Start", style="bold yellow")
    table.add_column("Display")
    table.add_column("Slot", style="dim")
    for slot in result.slots:
        table.add_row(slot.iso, slot.format_display(), slot.slot_id)

    console.print(table)
    console.print()


@app.command()
def sessions(
    resource_name: Annotated[str, typer.Argument(help="Resource key from the config file")],
    start: Annotated[str, typer.Option("--start", help="First date (YYYY-MM-DD)")],
    end: Annotated[str, typer.Option("--end", help="Last date (YYYY-MM-DD)")],
    config_file: ConfigOption = None,
    now: NowOption = None,
    bookings_file: Annotated[Optional[Path], typer.Option("--bookings", "-b", help="JSON file with committed bookings")] = None,
):
    """
    List every free session between two dates.
    """
    config = _load_config(config_file)

    try:
        resource = config.resolve_resource(resource_name)
        store = InMemoryBookingStore(seed_file=bookings_file)
        resolver = AvailabilityResolver(policy=config.availability)
        open_sessions = resolver.open_sessions(
            resource,
            start,
            end,
            store.all_bookings(resource_name),
            _resolve_now(now, resource.timezone),
        )
    except (SchedulingError, ValueError, FileNotFoundError) as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not open_sessions:
        console.print("[yellow]⚠ No free sessions in that range.[/yellow]")
        return

    console.print(f"[bold green]✓ {len(open_sessions)} free session(s):[/bold green]\n")
    for session in open_sessions:
        console.print(f"  {session.format_display()}")
    console.print()


@app.command()
def earlier(
    resource_name: Annotated[str, typer.Argument(help="Resource key from the config file")],
    before: Annotated[Optional[str], typer.Option("--before", help="Date the lead wants to beat (YYYY-MM-DD); defaults to a week from now")] = None,
    config_file: ConfigOption = None,
    now: NowOption = None,
    bookings_file: Annotated[Optional[Path], typer.Option("--bookings", "-b", help="JSON file with committed bookings")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the start times as a JSON list")] = False,
):
    """
    Offer up to two starts earlier than a date the lead already has.

    Examples:

        slotplanner earlier dr-silva --before 2025-03-20
    """
    config = _load_config(config_file)

    try:
        resource = config.resolve_resource(resource_name)
        store = InMemoryBookingStore(seed_file=bookings_file)
        service = AvailabilityService(
            booking_store=store,
            resolver=AvailabilityResolver(policy=config.availability),
        )
        slots = asyncio.run(
            service.find_earlier_slots(
                resource_id=resource_name,
                resource=resource,
                before_date=before,
                now=_resolve_now(now, resource.timezone),
            )
        )
    except (SchedulingError, ValueError, FileNotFoundError) as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps([slot.iso for slot in slots], indent=2))
        return

    if not slots:
        console.print("[yellow]⚠ No earlier slots found.[/yellow]")
        return

    console.print(f"[bold green]✓ {len(slots)} earlier slot(s):[/bold green]\n")
    for slot in slots:
        console.print(f"  {slot.format_display()}")
    console.print()


@app.command()
def retry(
    attempt: Annotated[int, typer.Option("--attempt", "-a", help="Ordinal of the next attempt (1-based)")],
    outcome: Annotated[str, typer.Option("--outcome", "-o", help="voicemail, no-human-contact, human-contact-requesting-retry or other")],
    appointment: Annotated[Optional[str], typer.Option("--appointment", help="Lead's nearest future appointment (ISO-8601)")] = None,
    config_file: ConfigOption = None,
    now: NowOption = None,
):
    """
    Compute when the next contact attempt should happen.
    """
    config = _load_config(config_file)

    try:
        scheduler = RetryScheduler(policy=config.retry, timezone=config.timezone)
        decision = scheduler.next_attempt(
            attempt,
            OutcomeClass(outcome),
            _resolve_now(now, config.timezone),
            lead_nearest_appointment=appointment,
        )
    except (SchedulingError, ValueError) as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if decision.terminal:
        console.print("[yellow]Attempt ceiling reached: stop calling and switch channel.[/yellow]")
        return

    console.print(f"[bold green]Next attempt:[/bold green] {decision.next_retry_at}")


@app.command()
def next_business_day(
    config_file: ConfigOption = None,
    now: NowOption = None,
):
    """
    Same time of day on the next business day, clamped into business hours.
    """
    config = _load_config(config_file)

    try:
        scheduler = RetryScheduler(policy=config.retry, timezone=config.timezone)
        next_at = scheduler.next_same_time_next_business_day(_resolve_now(now, config.timezone))
    except (SchedulingError, ValueError) as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(f"[bold green]Next business day:[/bold green] {next_at}")


@app.command()
def list_resources(config_file: ConfigOption = None):
    """
    List all configured resources.
    """
    config = _load_config(config_file)

    if not config.resources:
        console.print("[yellow]No resources defined in the config file.[/yellow]")
        return

    table = Table(
        title="Configured resources",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Key", style="bold yellow")
    table.add_column("Timezone")
    table.add_column("Session (min)", justify="right")
    table.add_column("Open days", style="dim")

    for key, resource in config.resources.items():
        schedule = resource.weekly_schedule
        open_days = [
            name for name, day in schedule
            if day.enabled and day.time_slots
        ]
        table.add_row(key, resource.timezone, str(resource.session_duration_minutes), ", ".join(open_days))

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotplanner[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
