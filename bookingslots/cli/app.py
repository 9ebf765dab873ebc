"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Annotated

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import BookingSlotsError, HoursValidationError, NotFoundError
from ..domain.intervals import crosses_midnight, validate_week_hours
from ..domain.models import Interval
from ..domain.slot_calculator import SlotCalculator
from ..adapters.memory_repository import InMemoryRepository
from ..services.availability import AvailabilityService, parse_date

app = typer.Typer(
    name="bookingslots",
    help="Compute bookable appointment slots from working hours and reservations",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
DataOption = Annotated[Optional[Path], typer.Option("--data", help="Tenant data file (JSON or YAML). Overrides the config.")]
TenantOption = Annotated[Optional[str], typer.Option("--tenant", "-t", help="Tenant id. Defaults to the configured or only tenant.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]


def _configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True
    )


def _load(
    config_file: Optional[Path],
    data_file: Optional[Path],
    verbose: bool
) -> Tuple[AppConfig, InMemoryRepository]:
    """
    Load configuration and tenant data.

    A missing config file is fine when ``--data`` is given; defaults are used.
    """
    config_path = config_file or get_default_config_path()
    if config_path.exists():
        config = AppConfig.load_from_yaml(config_path)
        default_data = config.resolve_data_file(config_path)
    elif data_file is not None and config_file is None:
        config = AppConfig()
        default_data = config.data_file
    else:
        # Raises FileNotFoundError with a helpful message
        config = AppConfig.load_from_yaml(config_path)
        default_data = config.data_file

    _configure_logging(logging.DEBUG if verbose else config.get_log_level())

    repository = InMemoryRepository.from_file(data_file or default_data)
    return config, repository


def _resolve_tenant_id(
    config: AppConfig,
    repository: InMemoryRepository,
    tenant: Optional[str]
) -> str:
    if tenant:
        return tenant
    if config.defaults.tenant_id:
        return config.defaults.tenant_id

    tenant_ids = repository.tenant_ids()
    if len(tenant_ids) == 1:
        return tenant_ids[0]

    raise typer.BadParameter(
        f"Several tenants found ({', '.join(tenant_ids)}); choose one with --tenant."
    )


@app.command()
def slots(
    date: Annotated[str, typer.Argument(help="Day to check (YYYY-MM-DD)")],
    service: Annotated[List[str], typer.Option("--service", "-s", help="Service id; repeat for several services")],
    employee: Annotated[Optional[str], typer.Option("--employee", "-e", help="Only this employee's schedule")] = None,
    tenant: TenantOption = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    verbose: VerboseOption = False,
):
    """
    List available start times for one or more services.

    Examples:

        bookingslots slots 2024-01-15 -s s1

        bookingslots slots 2024-01-15 -s s1 -s s2 --employee e1 --data data.yaml
    """
    try:
        config, repository = _load(config_file, data_file, verbose)
        tenant_id = _resolve_tenant_id(config, repository, tenant)
        day = parse_date(date)

        service_layer = AvailabilityService(
            repository=repository,
            slot_calculator=SlotCalculator(timezone=config.timezone)
        )
        found = asyncio.run(
            service_layer.get_available_slots(
                tenant_id=tenant_id,
                date=day,
                service_ids=service,
                employee_id=employee
            )
        )

        heading = pendulum.date(day.year, day.month, day.day).format(config.defaults.date_format)

        console.print()
        if not found:
            console.print(f"[yellow]⚠ No available slots on {heading}.[/yellow]")
        else:
            console.print(f"[bold green]✓ {len(found)} slot(s) available on {heading}:[/bold green]\n")
            console.print("  " + "  ".join(found))
        console.print()

    except (BookingSlotsError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def find_employee(
    date: Annotated[str, typer.Argument(help="Day of the booking (YYYY-MM-DD)")],
    slot: Annotated[str, typer.Argument(help="Start time (HH:mm)")],
    service: Annotated[List[str], typer.Option("--service", "-s", help="Service id; repeat for several services")],
    tenant: TenantOption = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    verbose: VerboseOption = False,
):
    """
    Show which employee would take a booking at a given start time.
    """
    try:
        config, repository = _load(config_file, data_file, verbose)
        tenant_id = _resolve_tenant_id(config, repository, tenant)

        service_layer = AvailabilityService(repository=repository)
        employee = asyncio.run(
            service_layer.find_employee_for_slot(
                tenant_id=tenant_id,
                date=date,
                slot=slot,
                service_ids=service
            )
        )

        if employee is None:
            console.print(f"[yellow]⚠ Nobody is available on {date} at {slot}.[/yellow]")
            raise typer.Exit(1)

        console.print(f"[green]✓ {employee.name}[/green] ({employee.id}) is available on {date} at {slot}.")

    except (BookingSlotsError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def check_hours(
    tenant: TenantOption = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    verbose: VerboseOption = False,
):
    """
    Validate the tenant's hours and every employee override.
    """
    try:
        config, repository = _load(config_file, data_file, verbose)
        tenant_id = _resolve_tenant_id(config, repository, tenant)
        record = asyncio.run(repository.get_tenant(tenant_id))
        if record is None:
            raise NotFoundError(f"Unknown tenant: {tenant_id}")

        table = Table(
            title=f"Working hours – {record.name}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Schedule", style="bold yellow")
        table.add_column("Status")
        table.add_column("Crosses midnight", style="dim")

        schedules = [("Business", record.hours)]
        schedules.extend((employee.name, employee.hours) for employee in record.employees)

        failures = 0
        for name, hours in schedules:
            try:
                validate_week_hours(hours)
                status = "[green]✓ valid[/green]"
            except HoursValidationError as exc:
                failures += 1
                status = f"[red]✗ {exc}[/red]"

            crossing = sorted(
                day.value for day, day_hours in hours.items()
                if day_hours.enabled and any(
                    _safe_crosses(interval) for interval in day_hours.intervals
                )
            )
            table.add_row(name, status, ", ".join(crossing) or "-")

        console.print()
        console.print(table)
        console.print()

        if failures:
            raise typer.Exit(1)

    except (BookingSlotsError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _safe_crosses(interval: Interval) -> bool:
    try:
        return crosses_midnight(interval)
    except BookingSlotsError:
        return False


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]bookingslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
