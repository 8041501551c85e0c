"""CLI for lotscan barcode parsing and scan resolution."""

from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from lotscan import __version__
from lotscan.config import get_settings
from lotscan.core.audit import build_scan_log_entry
from lotscan.core.barcode_parser import generate_qr_payload, parse_barcode, validate_input
from lotscan.core.models import LabelType, ScanError
from lotscan.core.scan_resolver import ScanResolver
from lotscan.log_config import configure_logging
from lotscan.lookup import InMemoryLookup
from lotscan.user import CurrentUser, get_current_user

app = typer.Typer(
    name="lotscan",
    help="lotscan CLI - parse barcode payloads and resolve scans",
    add_completion=False,
)
console = Console()


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    """Parse barcode payloads and resolve them against an inventory catalog."""
    configure_logging(log_level or get_settings().log_level)


@app.command()
def version():
    """Show the lotscan version."""
    console.print(f"lotscan {__version__}")


@app.command()
def validate(raw: str = typer.Argument(..., help="Scanned barcode string")):
    """Check a scanned string against the input rules."""
    max_length = get_settings().scanner.max_input_length
    result = validate_input(raw, max_length=max_length)
    if not result.valid:
        console.print(f"[red]✗ Invalid: {result.error}[/red]")
        raise typer.Exit(1)
    console.print("[green]✓ Valid barcode input[/green]")


@app.command()
def parse(raw: str = typer.Argument(..., help="Scanned barcode string")):
    """Detect the format of a scanned string and show the decoded fields."""
    parsed = parse_barcode(raw)

    table = Table(title=f"Format: {parsed.format.value}", show_header=True)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    for name, value in parsed.to_metadata().items():
        if name in ("raw", "format"):
            continue
        table.add_row(name, Text(str(value)))

    console.print(Panel.fit(Text(repr(parsed.raw)), title="Raw"))
    console.print(table)


@app.command()
def qr_payload(
    label_type: LabelType = typer.Argument(..., help="Label type"),
    org: str = typer.Option(..., "--org", help="Organization id"),
    item: Optional[str] = typer.Option(None, "--item", help="Item SKU"),
    lot: Optional[str] = typer.Option(None, "--lot", help="Lot number"),
    batch: Optional[str] = typer.Option(None, "--batch", help="Batch id"),
    container_id: Optional[str] = typer.Option(None, "--container-id", help="Container id"),
    container_code: Optional[str] = typer.Option(None, "--container-code", help="Container code"),
    qty: Optional[float] = typer.Option(None, "--qty", help="Quantity"),
    exp: Optional[datetime] = typer.Option(
        None, "--exp", formats=["%Y-%m-%d"], help="Expiry date (YYYY-MM-DD)"
    ),
):
    """Generate the JSON payload for a label QR code."""
    quantity = int(qty) if qty is not None and qty.is_integer() else qty
    payload = generate_qr_payload(
        label_type,
        org,
        item_sku=item,
        lot_number=lot,
        batch_id=batch,
        container_id=container_id,
        container_code=container_code,
        quantity=quantity,
        expiry_date=exp.date() if exp else None,
    )
    console.print(payload, markup=False, highlight=False, soft_wrap=True)


@app.command()
def resolve(
    raw: str = typer.Argument(..., help="Scanned barcode string"),
    catalog: Path = typer.Option(..., "--catalog", "-c", help="Catalog JSON file"),
    email: Optional[str] = typer.Option(None, "--email", help="Scan as this user"),
    org: Optional[str] = typer.Option(None, "--org", help="Organization scope"),
    container: bool = typer.Option(False, "--container", help="Resolve to a container"),
    audit: bool = typer.Option(False, "--audit", help="Also print the scan log entry"),
):
    """Resolve a scanned string against a catalog file."""
    try:
        lookup = InMemoryLookup.from_catalog(catalog)
    except (OSError, ValidationError) as e:
        console.print(f"[red]✗ Error loading catalog: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    user = get_current_user()
    if email or org:
        user = CurrentUser(email=email or user.email, name=user.name, org_id=org or user.org_id)

    resolver = ScanResolver(lookup)
    result = resolver.resolve_container(raw, user) if container else resolver.resolve(raw, user)

    actions = ", ".join(action.value for action in result.actions) or "-"
    status = "[green]resolved[/green]" if result.is_resolved else f"[yellow]{result.error.value}[/yellow]"
    console.print(Panel.fit(
        f"[bold]Format:[/bold] {result.format.value}\n"
        f"[bold]Status:[/bold] {status}\n"
        f"[bold]Actions:[/bold] {actions}",
        title="Scan Result",
    ))
    console.print_json(result.model_dump_json())

    if audit and user.is_authenticated and user.has_org_scope:
        console.print_json(build_scan_log_entry(result, user).model_dump_json())

    if result.error not in (None, ScanError.NOT_FOUND):
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
