"""SiteCheck CLI - async commands over the configured database.

Commands:
- init: Initialize database schema
- checklists: List checklists of a project with progress
- create: Create a draft checklist
- add-item: Append an item to a checklist
- activate: Materialize verification records (or preview them)
- set-status / note / photo: Record a verification at a location
- report: Show progress, pendencies and the per-floor grid
- export: Write the report as an Excel workbook
- dashboard: Headline numbers for a project
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from sitecheck.checklists import ChecklistStore
from sitecheck.config import get_config
from sitecheck.core.logging import configure_logging
from sitecheck.db.connection import close_db, get_session_factory, init_db
from sitecheck.errors import SiteCheckError
from sitecheck.execution import ActivationEngine, ExecutionTracker
from sitecheck.models import ItemScope, LocationRef, VerificationStatus
from sitecheck.reporting import (
    build_report,
    export_report_excel,
    project_dashboard,
    summarize_progress,
)
from sitecheck.services import SQLAlchemyPersistence, StaticIdentity, build_storage

app = typer.Typer(
    name="sitecheck",
    help="SiteCheck - Quality checklists verified per floor, unit and room",
    no_args_is_help=True,
)

console = Console()

STATUS_STYLES = {
    VerificationStatus.OK: "green",
    VerificationStatus.NOT_OK: "red",
    VerificationStatus.NOT_APPLICABLE: "dim",
    VerificationStatus.PENDING: "yellow",
}


@app.callback()
def main_callback(
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    """Configure logging before any command runs."""
    config = get_config()
    configure_logging(log_level or config.log_level, config.log_format)


def _store() -> SQLAlchemyPersistence:
    return SQLAlchemyPersistence(get_session_factory())


def _run(fn: Callable[[], Awaitable[None]]) -> None:
    """Run an async command body, reporting domain errors without a traceback."""

    async def _wrapped():
        try:
            await fn()
        finally:
            await close_db()

    try:
        asyncio.run(_wrapped())
    except SiteCheckError as e:
        console.print(f"[bold red]✗[/bold red] {e}")
        raise typer.Exit(code=1)


def _location(floor: UUID, unit: UUID | None, room: UUID | None) -> LocationRef:
    try:
        return LocationRef(floor_id=floor, unit_id=unit, room_id=room)
    except ValueError as e:
        raise typer.BadParameter("--room requires --unit") from e


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")
    if drop:
        console.print("[yellow]Dropping existing tables...[/yellow]")

    async def _init():
        await init_db(drop=drop)

    _run(_init)
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command()
def checklists(
    project_id: str | None = typer.Option(None, "--project", help="Project ID"),
):
    """List checklists, newest first, with their completion."""

    async def _list():
        store = _store()
        found = await ChecklistStore(store).list_checklists(project_id)
        if not found:
            console.print("[yellow]No checklists found[/yellow]")
            return
        progress = await summarize_progress(store, [c.id for c in found])

        table = Table(title="Checklists")
        table.add_column("ID", style="dim")
        table.add_column("Project")
        table.add_column("Name", style="cyan")
        table.add_column("Status")
        table.add_column("Done", justify="right")
        table.add_column("Progress", justify="right", style="green")
        for checklist in found:
            entry = progress[checklist.id]
            table.add_row(
                str(checklist.id),
                checklist.project_id,
                checklist.name,
                checklist.status.value,
                f"{entry.done}/{entry.total}",
                f"{entry.percent}%",
            )
        console.print(table)

    _run(_list)


@app.command()
def create(
    project_id: str = typer.Argument(..., help="Project ID"),
    name: str = typer.Argument(..., help="Checklist name"),
    description: str | None = typer.Option(None, "--description", "-d"),
):
    """Create a draft checklist."""

    async def _create():
        checklist = await ChecklistStore(_store()).create_checklist(
            project_id, name, description, created_by=get_config().actor_id
        )
        console.print(f"[bold green]✓[/bold green] Created checklist {checklist.id}")

    _run(_create)


@app.command(name="add-item")
def add_item_cmd(
    checklist_id: UUID = typer.Argument(..., help="Checklist ID"),
    name: str = typer.Argument(..., help="Item description"),
    scope: ItemScope = typer.Option(ItemScope.UNIT, "--scope", help="Verification level"),
):
    """Append an item to a checklist."""

    async def _add():
        item = await ChecklistStore(_store()).add_item(checklist_id, name, scope)
        console.print(
            f"[bold green]✓[/bold green] Added item {item.id} (#{item.order}, {item.scope.value})"
        )

    _run(_add)


@app.command()
def activate(
    checklist_id: UUID = typer.Argument(..., help="Checklist ID"),
    preview: bool = typer.Option(False, "--preview", help="Only show what would be written"),
):
    """Create one pending verification record per item and location."""
    config = get_config()

    async def _activate():
        engine = ActivationEngine(_store(), batch_size=config.activation.batch_size)

        if preview:
            plan = await engine.preview(checklist_id)
            table = Table(title=f"Activation preview: {plan.checklist.name}")
            table.add_column("Scope", style="cyan")
            table.add_column("Records", justify="right", style="green")
            for scope, count in plan.expected_by_scope.items():
                table.add_row(scope.value, str(count))
            table.add_row("total", str(plan.expected))
            console.print(table)
            if plan.orphans_skipped:
                console.print(f"[yellow]⚠[/yellow] {plan.orphans_skipped} orphaned locations will be skipped")
            if plan.blocking_error is not None:
                console.print(f"[red]✗[/red] {plan.blocking_error}")
            return

        result = await engine.activate(checklist_id)
        console.print(
            f"[bold green]✓[/bold green] {result.inserted} records created, "
            f"{result.skipped_duplicates} already present (expected {result.expected})"
        )
        if result.orphans_skipped:
            console.print(f"[yellow]⚠[/yellow] {result.orphans_skipped} orphaned locations skipped")
        console.print(f"Status: {result.status.value}")

    _run(_activate)


async def _open_tracker(checklist_id: UUID, with_storage: bool = False) -> ExecutionTracker:
    config = get_config()
    storage = build_storage(config.storage) if with_storage else None
    return await ExecutionTracker.open(
        _store(), checklist_id, StaticIdentity(config.actor_id), storage
    )


@app.command(name="set-status")
def set_status_cmd(
    checklist_id: UUID = typer.Argument(..., help="Checklist ID"),
    item_id: UUID = typer.Argument(..., help="Item ID"),
    status: VerificationStatus = typer.Argument(..., help="New status"),
    floor: UUID = typer.Option(..., "--floor", help="Floor ID"),
    unit: UUID | None = typer.Option(None, "--unit", help="Unit ID"),
    room: UUID | None = typer.Option(None, "--room", help="Room ID"),
):
    """Record the verification result of an item at a location."""
    location = _location(floor, unit, room)

    async def _set():
        tracker = await _open_tracker(checklist_id)
        record = await tracker.set_status(item_id, location, status)
        style = STATUS_STYLES[record.status]
        console.print(f"[{style}]{record.status.value}[/{style}] {record.location_key}")
        console.print(f"Checklist progress: {tracker.overall_percent}%")

    _run(_set)


@app.command()
def note(
    checklist_id: UUID = typer.Argument(..., help="Checklist ID"),
    item_id: UUID = typer.Argument(..., help="Item ID"),
    text: str = typer.Argument(..., help="Note text (empty clears it)"),
    floor: UUID = typer.Option(..., "--floor", help="Floor ID"),
    unit: UUID | None = typer.Option(None, "--unit", help="Unit ID"),
    room: UUID | None = typer.Option(None, "--room", help="Room ID"),
):
    """Attach a note to a verification."""
    location = _location(floor, unit, room)

    async def _note():
        tracker = await _open_tracker(checklist_id)
        record = await tracker.set_note(item_id, location, text)
        console.print(f"[green]✓[/green] Note {'saved' if record.note else 'cleared'}")

    _run(_note)


@app.command()
def photo(
    checklist_id: UUID = typer.Argument(..., help="Checklist ID"),
    item_id: UUID = typer.Argument(..., help="Item ID"),
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Photo file"),
    floor: UUID = typer.Option(..., "--floor", help="Floor ID"),
    unit: UUID | None = typer.Option(None, "--unit", help="Unit ID"),
    room: UUID | None = typer.Option(None, "--room", help="Room ID"),
):
    """Upload a photo and attach it to a verification."""
    location = _location(floor, unit, room)

    async def _photo():
        tracker = await _open_tracker(checklist_id, with_storage=True)
        try:
            record = await tracker.upload_photo(item_id, location, file.name, file.read_bytes())
        finally:
            await tracker.storage.aclose()
        console.print(f"[green]✓[/green] Photo attached: {record.photo_url}")

    _run(_photo)


@app.command()
def report(
    checklist_id: UUID = typer.Argument(..., help="Checklist ID"),
    status: VerificationStatus | None = typer.Option(
        None, "--status", help="Only show detail rows with this status"
    ),
):
    """Show checklist progress, pendencies and per-floor detail."""

    async def _report():
        result = await build_report(_store(), checklist_id, status)
        counts = result.counts

        console.print(f"\n[bold]{result.checklist.name}[/bold] ({result.checklist.status.value})")
        console.print(f"  Progress: {result.overall_percent}% of {counts.total} records")
        console.print(
            f"  OK: {counts.ok}  Not OK: {counts.not_ok}  "
            f"N/A: {counts.not_applicable}  Pending: {counts.pending}"
        )

        if result.pendencies:
            console.print("\n[bold]Pendencies:[/bold]")
            for entry in result.pendencies:
                console.print(f"  [cyan]{entry.label}[/cyan]")
                for nok in entry.non_conforming:
                    suffix = f" - {nok.note}" if nok.note else ""
                    console.print(f"    [red]✗[/red] {nok.item.name}{suffix}")
                for item in entry.pending:
                    console.print(f"    [yellow]•[/yellow] {item.name}")
        else:
            console.print("\n[green]No pendencies[/green]")

        for floor_detail in result.detail:
            table = Table(title=floor_detail.floor.name)
            table.add_column("Item", style="cyan")
            for unit in floor_detail.units:
                table.add_column(unit.name, justify="center")
            for row in floor_detail.rows:
                cells = [
                    f"[{STATUS_STYLES[s]}]{s.value}[/{STATUS_STYLES[s]}]" for s in row.statuses
                ]
                table.add_row(row.item.name, *cells)
            console.print(table)

    _run(_report)


@app.command()
def export(
    checklist_id: UUID = typer.Argument(..., help="Checklist ID"),
    output: Path = typer.Option(..., "--out", "-o", help="Output .xlsx file"),
    status: VerificationStatus | None = typer.Option(
        None, "--status", help="Only include detail rows with this status"
    ),
):
    """Export the checklist report to Excel."""

    async def _export():
        result = await build_report(_store(), checklist_id, status)
        output.write_bytes(export_report_excel(result).getvalue())
        console.print(f"[green]✓[/green] Report saved to: {output}")

    _run(_export)


@app.command()
def dashboard(
    project_id: str = typer.Argument(..., help="Project ID"),
):
    """Show headline numbers for a project."""

    async def _dashboard():
        numbers = await project_dashboard(_store(), project_id)

        table = Table(title=f"Project {project_id}")
        table.add_column("Metric", style="cyan")
        table.add_column("Count", justify="right", style="green")
        table.add_row("Checklists", str(numbers.checklists))
        table.add_row("Active checklists", str(numbers.active_checklists))
        table.add_row("Open non-conformities", str(numbers.open_non_conformities))
        console.print(table)

    _run(_dashboard)


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
