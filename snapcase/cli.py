"""CLI entry point for snapshot verification."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from itertools import product
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from snapcase.models.config import SnapshotSettings
from snapcase.models.configuration import (
    DEVICE_PRESETS,
    Configuration,
    ConfigurationSet,
    InterfaceStyle,
)
from snapcase.orchestrator import DEFAULT_CONFIG_FILE, SnapshotOrchestrator, default_name
from snapcase.reporter.json_report import generate_json_report

console = Console()

_STATUS_STYLES = {"pass": "green", "fail": "red", "error": "red", "recorded": "yellow"}


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def load_settings(config: str) -> SnapshotSettings:
    try:
        return SnapshotSettings.resolve(config)
    except (ValidationError, json.JSONDecodeError) as e:
        console.print(f"[red]Invalid configuration in {config}:[/red] {e}")
        sys.exit(2)


def build_configurations(devices: tuple[str, ...], styles: tuple[str, ...]) -> ConfigurationSet:
    """Every device/style combination, device-major."""
    configurations = ConfigurationSet()
    for device, style in product(devices or ("desktop",), styles or ("default",)):
        configurations = configurations.add(
            Configuration(device=DEVICE_PRESETS[device], interface_style=InterfaceStyle(style))
        )
    return configurations


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Visual snapshot verification"""
    setup_logging(verbose)


@cli.command()
@click.option("--reference-path", default=None, help="Reference store root")
@click.option("--failure-path", default=None, help="Failure store root")
def init(reference_path: str | None, failure_path: str | None) -> None:
    """Create a default configuration file."""
    config_path = Path(DEFAULT_CONFIG_FILE)
    if config_path.exists():
        if not click.confirm(f"{DEFAULT_CONFIG_FILE} already exists. Overwrite?"):
            return

    overrides = {}
    if reference_path:
        overrides["reference_path"] = reference_path
    if failure_path:
        overrides["failure_path"] = failure_path
    SnapshotSettings(**overrides).save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nRecord references, then verify against them:")
    console.print("  [blue]snapcase verify page.html --record[/blue]")
    console.print("  [blue]snapcase verify page.html[/blue]")


@cli.command("config")
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="Config file path")
def show_config(config: str) -> None:
    """Show the effective settings (file values overridden by SNAPSHOT_* variables)."""
    settings = load_settings(config)
    console.print_json(data=settings.model_dump())


@cli.command()
@click.argument("target")
@click.option("--name", "-n", default=None, help="Snapshot name (derived from TARGET by default)")
@click.option("--device", "-d", "devices", multiple=True,
              type=click.Choice(sorted(DEVICE_PRESETS)), help="Device preset (repeatable)")
@click.option("--style", "-s", "styles", multiple=True,
              type=click.Choice([s.value for s in InterfaceStyle]), help="Interface style (repeatable)")
@click.option("--record", is_flag=True, help="Record references instead of verifying")
@click.option("--anchor", default=None, help="File whose folder the artifact folders derive from")
@click.option("--render-delay", type=float, default=None, help="Seconds to wait before capture")
@click.option("--report", "report_path", default=None, help="Write a JSON report to this path")
@click.option("--headed", is_flag=True, help="Show the browser window")
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="Config file path")
def verify(
    target: str,
    name: str | None,
    devices: tuple[str, ...],
    styles: tuple[str, ...],
    record: bool,
    anchor: str | None,
    render_delay: float | None,
    report_path: str | None,
    headed: bool,
    config: str,
) -> None:
    """Verify TARGET (a URL or local HTML file) against its reference snapshots."""
    settings = load_settings(config)
    if record:
        settings = settings.model_copy(update={"record_mode": True})

    configurations = build_configurations(devices, styles)
    orchestrator = SnapshotOrchestrator(settings, headless=not headed)
    try:
        report = orchestrator.verify_target(
            target,
            name or default_name(target),
            configurations,
            anchor=Path(anchor) if anchor else None,
            render_delay=render_delay,
        )
    except asyncio.TimeoutError:
        timeout = settings.timeout_for(len(configurations), render_delay) or 0.0
        console.print(f"[red]Verification of {target} timed out after {timeout:.1f}s[/red]")
        sys.exit(1)

    table = Table(title=f"Snapshot {report.test_name}")
    table.add_column("Configuration", style="bold")
    table.add_column("Status")
    table.add_column("Diff", justify="right")
    table.add_column("Message")
    for result in report.results:
        style = _STATUS_STYLES.get(result.status, "white")
        diff = f"{result.diff:.2f}" if result.diff is not None else "-"
        table.add_row(result.configuration_id, f"[{style}]{result.status}[/{style}]", diff, result.message)
    console.print(table)

    for result in report.results:
        for artifact in result.artifacts:
            console.print(f"  Failure artifact: [blue]{artifact}[/blue]")

    if report_path:
        generate_json_report(report, Path(report_path))
        console.print(f"  JSON report: [blue]{report_path}[/blue]")

    if not report.succeeded:
        sys.exit(1)


@cli.command()
@click.option("--root", "-r", default=".", help="Directory to search for failure stores")
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="Config file path")
def failures(root: str, config: str) -> None:
    """List failure-store artifacts awaiting review."""
    orchestrator = SnapshotOrchestrator(load_settings(config))
    found = orchestrator.find_failures(root)
    if not found:
        console.print("[green]No failure artifacts[/green]")
        return

    table = Table(title="Failure Artifacts")
    table.add_column("Actual", style="bold")
    table.add_column("Reference copy")
    table.add_column("Reference")
    for artifact in found:
        copy = str(artifact.reference_copy_path) if artifact.reference_copy_path else "-"
        reference = str(artifact.reference_path)
        if not artifact.has_reference:
            reference = f"[yellow]{reference} (missing)[/yellow]"
        table.add_row(str(artifact.actual_path), copy, reference)
    console.print(table)


@cli.command()
@click.option("--root", "-r", default=".", help="Directory to search for failure stores")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="Config file path")
def approve(root: str, yes: bool, config: str) -> None:
    """Promote failure-store images to references."""
    orchestrator = SnapshotOrchestrator(load_settings(config))
    count = len(orchestrator.find_failures(root))
    if count == 0:
        console.print("[green]Nothing to approve[/green]")
        return
    if not yes and not click.confirm(f"Replace {count} reference image(s)?"):
        return
    for path in orchestrator.approve_failures(root):
        console.print(f"  Approved [blue]{path}[/blue]")


@cli.command()
@click.option("--root", "-r", default=".", help="Directory to search for failure stores")
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="Config file path")
def clean(root: str, config: str) -> None:
    """Delete failure-store artifacts."""
    orchestrator = SnapshotOrchestrator(load_settings(config))
    removed = orchestrator.clean_failures(root)
    console.print(f"[green]Removed {removed} failure artifact(s)[/green]")


if __name__ == "__main__":
    cli()
