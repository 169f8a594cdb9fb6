"""Command-line interface for the campaign."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from campaign.errors import CampaignError
from campaign.influencers.service import influencer_service
from campaign.logging_config import configure_logging, get_logger
from campaign.product_codes.service import product_code_service
from campaign.rankings.service import ranking_service
from campaign.storage.db import db

# Configure logging
configure_logging()
logger = get_logger(__name__)

app = typer.Typer(
    name="campaign",
    help="Campaign Tracker - influencer code redemption campaign",
    no_args_is_help=True,
)

console = Console()


@app.command("init")
def init_database(
    reset: Annotated[bool, typer.Option("--reset", help="Drop all campaign data first")] = False,
) -> None:
    """Create the campaign tables."""
    if reset:
        typer.confirm("This deletes every influencer, consumer and product code. Continue?", abort=True)
        db.reset()
        console.print("[bold yellow]![/bold yellow] Database reset")
        return

    console.print("[bold blue]Initializing database...[/bold blue]")
    db.create_tables()
    console.print("[bold green]✓[/bold green] Database initialized successfully")


@app.command("import-codes")
def import_codes(
    path: Annotated[Path, typer.Argument(help="CSV or XLSX file with one code per row")],
) -> None:
    """Bulk-import product codes."""
    if not path.exists():
        console.print(f"[bold red]✗[/bold red] File not found: {path}")
        raise typer.Exit(1)

    try:
        result = product_code_service.import_file(path.name, path.read_bytes())
    except CampaignError as e:
        console.print(f"[bold red]✗[/bold red] {e.title}: {e.message}")
        raise typer.Exit(1)

    console.print(f"[bold green]✓[/bold green] Imported {result.imported:,} product codes")
    console.print(f"  Duplicates in file: {result.duplicates:,}")
    console.print(f"  Already stored: {result.already_exists:,}")
    console.print(f"  Invalid: {result.invalid:,}")


@app.command("add-influencer")
def add_influencer(
    first_name: Annotated[str, typer.Option("--first", "-f", help="First name")],
    last_name: Annotated[str, typer.Option("--last", "-l", help="Last name")],
) -> None:
    """Add an influencer with a generated code."""
    try:
        influencer = influencer_service.create_by_admin(first_name, last_name)
    except CampaignError as e:
        console.print(f"[bold red]✗[/bold red] {e.message}")
        raise typer.Exit(1)

    console.print(
        f"[bold green]✓[/bold green] {influencer.full_name} added with code [bold]{influencer.code}[/bold]"
    )


@app.command("rankings")
def show_rankings(
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of influencers to show")] = 10,
) -> None:
    """Show the influencer leaderboard."""
    entries = ranking_service.leaderboard(limit=limit)
    if not entries:
        console.print("[yellow]No influencers found[/yellow]")
        return

    table = Table(title="Influencer Rankings")
    table.add_column("Rank", justify="right", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Code")
    table.add_column("Points", justify="right")
    table.add_column("Redemptions", justify="right")

    for entry in entries:
        table.add_row(
            f"#{entry['rank']}",
            entry["name"],
            entry["code"],
            str(entry["points"]),
            str(entry["redemptions"]),
        )

    console.print(table)


@app.command("stats")
def show_stats() -> None:
    """Show product code usage."""
    stats = product_code_service.stats()

    table = Table(title="Product Codes")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total", f"{stats['total']:,}")
    table.add_row("Used", f"{stats['used']:,}")
    table.add_row("Available", f"{stats['available']:,}")
    table.add_row("Usage rate", f"{stats['usage_rate']}%")

    console.print(table)


@app.command("export-rankings")
def export_rankings(
    output_path: Annotated[Path, typer.Option("--output", "-o", help="Output file path")] = Path("influencer-rankings.csv"),
) -> None:
    """Export the leaderboard as CSV."""
    output_path.write_text(ranking_service.export_csv(), encoding="utf-8")
    console.print(f"[bold green]✓[/bold green] Rankings exported to {output_path}")


@app.command("serve")
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Port")] = 8000,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
) -> None:
    """Run the API server."""
    import uvicorn

    uvicorn.run("campaign.api.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
