"""
Alerts CLI

Command-line interface for pharmacy alert administration.

Commands:
- init-db: Create the alert engine tables
- scan: Run a scan now (full, low-stock, expiry, imminent)
- event: Feed an inventory event (JSON file) through the event router
- list: List alerts with filters
- stats: Show alert counts
- read / resolve / delete: Act on one alert
- config show / config set: Inspect or replace the threshold configuration
"""

import json
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from basecore.logging import setup_logging

app = typer.Typer(
    name="alerts",
    help="Pharmacy alert engine CLI",
)
config_app = typer.Typer(help="Inspect or replace the alert threshold configuration")
app.add_typer(config_app, name="config")

console = Console()

PRIORITY_STYLES = {"critical": "red", "warning": "yellow", "info": "cyan"}

SCAN_KINDS = {
    "full": "run_full_scan",
    "low-stock": "check_low_stock_only",
    "expiry": "check_expiry_only",
    "imminent": "check_imminent_expiry_only",
}


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    """Pharmacy alert engine CLI."""
    setup_logging(log_level)


def get_db():
    """Get database session."""
    from basecore.db import get_db as _get_db
    return next(_get_db())


def get_config_provider():
    from alerts_core.config import build_config_provider
    return build_config_provider()


@app.command("init-db")
def init_db(
    alerts_only: bool = typer.Option(
        False, "--alerts-only", help="Only create the alerts table (medicines is owned by inventory)"
    ),
):
    """
    Create the database tables.

    Existing tables are left untouched.
    """
    from basecore.db import get_engine
    from alerts_core.persistence.models import Alert, AlertsBase

    tables = [Alert.__table__] if alerts_only else None
    AlertsBase.metadata.create_all(get_engine(), tables=tables)
    rprint("[green]Database tables created[/green]")


@app.command()
def scan(
    kind: str = typer.Argument("full", help="Scan to run: full, low-stock, expiry or imminent"),
):
    """
    Run a scan now and print its summary.
    """
    if kind not in SCAN_KINDS:
        rprint(f"[red]Unknown scan: {kind}[/red] (choose from {', '.join(SCAN_KINDS)})")
        raise typer.Exit(1)

    db = get_db()

    try:
        from alerts_core.engines.scanner import AlertScanner, ScanStatus
        from alerts_core.persistence.repo import AlertRepository, MedicineRepository

        scanner = AlertScanner(MedicineRepository(db), AlertRepository(db), get_config_provider())
        summary = getattr(scanner, SCAN_KINDS[kind])()

        if not summary.ok:
            rprint(f"[red]Scan failed:[/red] {summary.error}")
            raise typer.Exit(1)

        if summary.status == ScanStatus.SKIPPED:
            rprint("[yellow]Nothing expiring within the critical window, scan skipped[/yellow]")
            return

        rprint(f"[green]{summary.scan} scan finished[/green]")
        rprint(f"  Medicines: {summary.medicines}")
        rprint(f"  Considered: {summary.considered_total}")
        rprint(f"  Created: {summary.created}")
        rprint(f"  Duplicates: {summary.duplicates}")
        rprint(f"  Failed: {summary.failed}")

    finally:
        db.close()


@app.command()
def event(
    path: Path = typer.Argument(..., help="JSON file with event_type, medicine_id and payload"),
):
    """
    Feed an inventory event through the event router.

    Example file: {"event_type": "stock_adjusted", "medicine_id": "m-1",
    "payload": {"previous_stock": 10, "new_stock": 50}}
    """
    from alerts_core.contracts.events import InventoryEvent

    try:
        inventory_event = InventoryEvent.from_dict(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, ValueError, KeyError) as e:
        rprint(f"[red]Invalid event file {path}: {e}[/red]")
        raise typer.Exit(1)

    db = get_db()

    try:
        from alerts_core.handlers.router import handle_event
        from alerts_core.persistence.repo import AlertRepository, MedicineRepository

        result = handle_event(MedicineRepository(db), AlertRepository(db), inventory_event)

        if result.get("status") == "created":
            rprint(f"[green]Alert created:[/green] {result['alert_id']}")
        else:
            rprint(f"[yellow]No alert created ({result.get('status')}): {result.get('reason', '-')}[/yellow]")

    finally:
        db.close()


@app.command("list")
def list_alerts(
    type: Optional[str] = typer.Option(None, "--type", help="low_stock, expiring, expired, reorder or all"),
    priority: Optional[str] = typer.Option(None, help="critical, warning, info or all"),
    status: Optional[str] = typer.Option(None, help="new, pending, resolved or all"),
    unread: bool = typer.Option(False, "--unread", help="Only unread alerts"),
    medicine_id: Optional[str] = typer.Option(None, help="Filter by medicine id"),
    limit: int = typer.Option(50, help="Maximum number of alerts to show"),
):
    """
    List alerts, newest first.
    """
    db = get_db()

    try:
        from alerts_core.persistence.repo import AlertRepository

        repo = AlertRepository(db)
        try:
            alerts = repo.list_alerts(
                type=type,
                priority=priority,
                status=status,
                read=False if unread else None,
                medicine_id=medicine_id,
                limit=limit,
            )
        except ValueError as e:
            rprint(f"[red]Invalid filter: {e}[/red]")
            raise typer.Exit(1)

        if not alerts:
            rprint("[yellow]No alerts found[/yellow]")
            raise typer.Exit(0)

        table = Table(title="Alerts")
        table.add_column("ID", style="dim")
        table.add_column("Priority")
        table.add_column("Type")
        table.add_column("Title")
        table.add_column("Medicine")
        table.add_column("Status")
        table.add_column("Read")
        table.add_column("Created")

        for alert in alerts:
            style = PRIORITY_STYLES.get(alert.priority, "white")
            table.add_row(
                str(alert.id),
                f"[{style}]{alert.priority}[/{style}]",
                alert.type,
                alert.title,
                alert.medicine_id,
                alert.status,
                "Yes" if alert.read else "No",
                alert.created_at.strftime("%Y-%m-%d %H:%M") if alert.created_at else "-",
            )

        console.print(table)

    finally:
        db.close()


@app.command()
def stats():
    """
    Show alert counts by priority, type and status.
    """
    db = get_db()

    try:
        from alerts_core.persistence.repo import AlertRepository

        counts = AlertRepository(db).stats()

        table = Table(title="Alert Statistics")
        table.add_column("Metric")
        table.add_column("Count", justify="right")

        table.add_row("Total", str(counts["total"]))
        table.add_row("Unread", str(counts["unread"]))
        for priority in ("critical", "warning", "info"):
            table.add_row(f"Priority: {priority}", str(counts[priority]))
        for alert_type, count in counts["by_type"].items():
            table.add_row(f"Type: {alert_type}", str(count))
        for alert_status, count in counts["by_status"].items():
            table.add_row(f"Status: {alert_status}", str(count))

        console.print(table)

    finally:
        db.close()


def _act_on_alert(alert_id: str, action: str) -> None:
    from alerts_core.exceptions import AlertNotFoundError
    from alerts_core.persistence.repo import AlertRepository

    db = get_db()

    try:
        repo = AlertRepository(db)
        try:
            getattr(repo, action)(alert_id)
        except AlertNotFoundError as e:
            rprint(f"[red]{e}[/red]")
            raise typer.Exit(1)

    finally:
        db.close()


@app.command("read")
def mark_read(alert_id: str = typer.Argument(..., help="Alert UUID")):
    """Mark an alert as read."""
    _act_on_alert(alert_id, "mark_read")
    rprint("[green]Alert marked as read[/green]")


@app.command()
def resolve(alert_id: str = typer.Argument(..., help="Alert UUID")):
    """
    Resolve an alert.

    The next scan may create a new alert if the condition still holds.
    """
    _act_on_alert(alert_id, "resolve")
    rprint("[green]Alert resolved[/green]")


@app.command()
def delete(
    alert_id: str = typer.Argument(..., help="Alert UUID"),
    force: bool = typer.Option(False, "--force", "-f", help="Delete without confirmation"),
):
    """Delete an alert."""
    if not force:
        confirm = typer.confirm(f"Delete alert {alert_id}?")
        if not confirm:
            rprint("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    _act_on_alert(alert_id, "delete")
    rprint("[green]Alert deleted successfully[/green]")


@config_app.command("show")
def config_show():
    """Print the current threshold configuration."""
    config = get_config_provider().load()
    console.print_json(data=config.to_document())


@config_app.command("set")
def config_set(
    path: Path = typer.Argument(..., help="JSON file with expiryThresholds, stockThresholds and checkIntervals"),
):
    """
    Replace the threshold configuration.

    All three sections are required. Changes apply from the next scan on.
    """
    from alerts_core.exceptions import InvalidConfigError

    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        rprint(f"[red]Cannot read {path}: {e}[/red]")
        raise typer.Exit(1)

    try:
        config = get_config_provider().save(document)
    except InvalidConfigError as e:
        rprint(f"[red]{e}[/red]")
        for key, value in e.details.items():
            rprint(f"  {key}: {value}")
        raise typer.Exit(1)

    rprint("[green]Alert configuration updated[/green]")
    console.print_json(data=config.to_document())


if __name__ == "__main__":
    app()
