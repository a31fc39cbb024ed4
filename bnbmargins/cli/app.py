"""Command-line entrypoints for BnbMargins store maintenance and reporting."""
from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

import typer

from bnbmargins.data_access.maintenance import remove_duplicate_properties, seed_demo_data
from bnbmargins.data_access.store import Store, create_client, create_service_client
from bnbmargins.reporting.generator import QUICK_REPORTS, ReportGenerator, quick_report_descriptor
from bnbmargins.reporting.models import ReportDescriptor, ReportFormat, ReportType
from bnbmargins.utils.config import StoreConfigError, configure_logging, load_config
from bnbmargins.utils.formatting import format_currency

app = typer.Typer(help="Operational commands for BnbMargins property reporting.")


@app.callback()
def initialize(level: Optional[str] = typer.Option(None, "--log-level", help="Log level override")) -> None:
    """Initialize logging from configuration or CLI overrides."""

    config = load_config()
    if level is not None:
        configure_logging(level)
    else:
        configure_logging(config.log_level)


def _client(privileged: bool = False) -> Store:
    config = load_config()
    try:
        return create_service_client(config) if privileged else create_client(config)
    except StoreConfigError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1)


def _parse_day(value: Optional[str], option: str) -> Optional[date]:
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise typer.BadParameter(f"{option} must be YYYY-MM-DD, got {value!r}")


def _write(generator: ReportGenerator, report, output_dir: Optional[Path]) -> None:
    target_dir = output_dir or load_config().reports_dir
    path = generator.save(report, target_dir)
    summary = report.context.summary
    typer.echo(
        f"Report saved to {path}: income {format_currency(summary.total_income)}, "
        f"net {format_currency(summary.net_profit)}."
    )
    if report.context.used_sample_data:
        typer.echo("No records matched the selected filters; the report shows sample data.")


@app.command()
def init_db() -> None:
    """Create or upgrade the store schema."""

    config = load_config()
    version = Store(config.store_url).initialize()
    typer.echo(f"Store ready at {config.store_url} (schema version {version}).")


@app.command()
def seed_demo(owner: str = typer.Option(..., "--owner", help="Owner identifier to seed.")) -> None:
    """Populate an empty account with demo properties, bookings and transactions."""

    summary = seed_demo_data(_client(privileged=True), owner)
    if summary.skipped:
        typer.echo(f"Owner {owner} already has properties. Skipping seed.")
        return
    typer.echo(
        f"Seeded {summary.properties} properties, {summary.bookings} bookings, "
        f"{summary.transactions} transactions and {summary.categories} categories."
    )


@app.command()
def cleanup_duplicates(owner: str = typer.Option(..., "--owner", help="Owner identifier to clean.")) -> None:
    """Remove duplicate properties by name, keeping the oldest of each."""

    summary = remove_duplicate_properties(_client(privileged=True), owner)
    typer.echo(f"Removed {len(summary.removed)} duplicate properties.")


@app.command()
def generate_report(
    owner: str = typer.Option(..., "--owner", help="Owner identifier."),
    title: str = typer.Option("Financial Report", "--title"),
    report_type: ReportType = typer.Option(ReportType.FINANCIAL, "--type", case_sensitive=False),
    report_format: ReportFormat = typer.Option(ReportFormat.PDF, "--format", case_sensitive=False),
    date_from: Optional[str] = typer.Option(None, "--from", help="Period start, YYYY-MM-DD."),
    date_to: Optional[str] = typer.Option(None, "--to", help="Period end (inclusive), YYYY-MM-DD."),
    properties: Optional[List[str]] = typer.Option(None, "--property", help="Limit to a property; repeatable."),
    charts: bool = typer.Option(False, "--charts/--no-charts"),
    transactions: bool = typer.Option(False, "--transactions/--no-transactions"),
    comparisons: bool = typer.Option(False, "--comparisons/--no-comparisons"),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", file_okay=False),
) -> None:
    """Generate a report for an owner and write it to disk."""

    descriptor = ReportDescriptor(
        type=report_type,
        format=report_format,
        title=title,
        date_from=_parse_day(date_from, "--from"),
        date_to=_parse_day(date_to, "--to"),
        properties=properties or [],
        include_charts=charts,
        include_transactions=transactions,
        include_comparisons=comparisons,
    )
    generator = ReportGenerator(_client())
    _write(generator, generator.generate(descriptor, owner), output_dir)


@app.command()
def quick_report(
    kind: str = typer.Argument(..., help=f"One of: {', '.join(QUICK_REPORTS)}"),
    owner: str = typer.Option(..., "--owner", help="Owner identifier."),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", file_okay=False),
) -> None:
    """Generate a named quick-report preset for the current period."""

    try:
        descriptor = quick_report_descriptor(kind)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1)
    generator = ReportGenerator(_client())
    _write(generator, generator.generate(descriptor, owner), output_dir)


def main() -> None:
    """CLI entrypoint for console_scripts."""

    app()


if __name__ == "__main__":
    main()
