import typer
import logging
from datetime import datetime
from typing import Optional
from rich.console import Console
from rich.table import Table

from stageboard.api.routes.health import health_report
from stageboard.assistant.service import run_intake
from stageboard.boards import PIPELINES, Board, get_pipeline
from stageboard.models import BillingRun, Donation, Order, Ticket
from stageboard.providers import ProviderRegistry
from stageboard.utils.config import SETTINGS, get_configuration_summary, validate_provider_config
from stageboard.utils.exceptions import ConfigurationError, LLMProviderError, StageboardError
from stageboard.utils.formatting import (
    format_datetime, format_eur, format_processing_time, format_relative, format_usd
)
from stageboard.utils.logging import setup_logging

app = typer.Typer(add_completion=False, help="Stageboard - Workflow pipeline boards and intake assistant")
console = Console()

# Settings fields holding each pipeline's seed and entity count
BOARD_SETTINGS = {
    "vouchers": ("voucher_seed", "voucher_count"),
    "tickets": ("ticket_seed", "ticket_count"),
    "donations": ("donation_seed", "donation_count"),
    "billing": (None, "billing_customer_count"),
}


@app.callback()
def _init(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: Optional[bool] = typer.Option(
        None, "--log-file/--no-log-file", help="Write logs to file (default: LOG_TO_FILE)"
    )
):
    """Initialize logging for all commands."""
    setup_logging(SETTINGS, logging.DEBUG if verbose else None, log_file=log_file)


def _load_board(pipeline_name: str, seed: Optional[int] = None, count: Optional[int] = None) -> Board:
    pipeline = get_pipeline(pipeline_name)
    seed_field, count_field = BOARD_SETTINGS[pipeline_name]
    overrides = {}
    if seed is not None and seed_field:
        overrides[seed_field] = seed
    if count is not None:
        overrides[count_field] = count
    settings = SETTINGS.model_copy(update=overrides)
    return Board(pipeline, pipeline.generate(settings, datetime.now()))


def _display(value) -> str:
    if isinstance(value, float):
        return f"{value:,.2f}"
    if value is None:
        return "-"
    return str(value)


def _headline(entity, now: datetime) -> str:
    """One-line summary in the pipeline's own currency and units."""
    if isinstance(entity, Order):
        return f"{entity.customer_name} · {entity.total_quantity} vouchers · {format_eur(entity.total)}"
    if isinstance(entity, Ticket):
        return (
            f"{entity.license_plate} · fine {format_eur(entity.fine_amount)} · "
            f"processed in {format_processing_time(entity.processing_time_ms)} · "
            f"received {format_relative(entity.date_received, now)}"
        )
    if isinstance(entity, Donation):
        return f"{entity.donor_name} · {format_usd(entity.amount)} · {format_relative(entity.date, now)}"
    if isinstance(entity, BillingRun):
        return f"{entity.period} · {len(entity.customers)} customers · {format_eur(sum(c.total for c in entity.customers))}"
    return ""


@app.command("board")
def cmd_board(
    pipeline: str = typer.Argument(..., help="Pipeline: vouchers|tickets|donations|billing"),
    seed: Optional[int] = typer.Option(None, "--seed", "-s", help="Seed for the demo data"),
    count: Optional[int] = typer.Option(None, "--count", "-n", help="Number of entities to generate"),
    limit: int = typer.Option(5, "--limit", help="Entity ids shown per stage")
):
    """Show a pipeline board grouped by stage."""
    try:
        board = _load_board(pipeline, seed, count)
        view = board.view()
    except StageboardError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=view["title"], show_header=True, header_style="bold magenta")
    table.add_column("Stage", style="cyan", no_wrap=True)
    table.add_column("Count", justify="right")
    table.add_column("Entities", style="white")

    for column in view["columns"]:
        ids = []
        for entity in column["entities"][:limit]:
            marker = " [red]⚑[/red]" if entity["flagged"] else ""
            ids.append(f"{entity['id']}{marker}")
        if column["count"] > limit:
            ids.append(f"[dim]+{column['count'] - limit} more[/dim]")
        table.add_row(column["label"], str(column["count"]), ", ".join(ids))

    console.print(table)

    stats = Table(show_header=False, box=None)
    stats.add_column("Figure", style="dim")
    stats.add_column("Value", style="yellow")
    for key, value in view["stats"].items():
        stats.add_row(key.replace("_", " ").capitalize(), _display(value))
    console.print(stats)


@app.command("show")
def cmd_show(
    pipeline: str = typer.Argument(..., help="Pipeline: vouchers|tickets|donations|billing"),
    entity_id: str = typer.Argument(..., help="Entity id, e.g. ORD-0003 or TKT-00012"),
    seed: Optional[int] = typer.Option(None, "--seed", "-s", help="Seed for the demo data")
):
    """Show one entity and its stage history."""
    try:
        board = _load_board(pipeline, seed)
        entity = board.get(entity_id)
    except StageboardError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    stage_model = board.pipeline.tracker.stage_model
    console.print(f"\n[bold]{entity.id}[/bold]  {stage_model.label(entity.current_stage)}")
    console.print(f"[dim]{_headline(entity, datetime.now())}[/dim]")
    if entity.flagged:
        console.print(f"[red]Flagged:[/red] {entity.flag_reason or 'no reason given'}")

    details = Table(show_header=False, box=None)
    details.add_column("Field", style="cyan")
    details.add_column("Value")
    skipped = {"id", "current_stage", "stage_history", "flagged", "flag_reason", "customers"}
    for key, value in entity.model_dump(mode="json").items():
        if key not in skipped:
            details.add_row(key, _display(value))
    console.print(details)

    history = Table(title="Stage History", show_header=True, header_style="bold magenta")
    history.add_column("Stage", style="cyan")
    history.add_column("Entered", style="white")
    history.add_column("Done", justify="center")
    for entry in entity.stage_history:
        history.add_row(
            stage_model.label(entry.stage),
            format_datetime(entry.timestamp),
            "[green]✓[/green]" if entry.completed else "",
        )
    console.print(history)


@app.command("pipelines")
def cmd_pipelines():
    """List pipelines and their stages."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Pipeline", style="cyan", no_wrap=True)
    table.add_column("Title", style="white")
    table.add_column("Stages", style="dim")

    for pipeline in PIPELINES.values():
        table.add_row(
            pipeline.name,
            pipeline.title,
            " → ".join(pipeline.tracker.stage_model.labels.values()),
        )

    console.print(table)


@app.command("health")
def cmd_health():
    """Show which API keys are configured and whether each provider's key looks valid."""
    report = health_report(SETTINGS)
    colour = "green" if report["status"] == "ready" else "yellow"
    console.print(f"Status: [{colour}]{report['status']}[/{colour}]")
    for check, ok in report["checks"].items():
        mark = "[green]✓[/green]" if ok else "[red]✗[/red]"
        console.print(f"  {mark} {check}")

    table = Table(title="LLM Providers", show_header=True, header_style="bold magenta")
    table.add_column("Provider", style="cyan")
    table.add_column("Model", style="white")
    table.add_column("Status")
    for name in ProviderRegistry.available_providers():
        result = ProviderRegistry.create(name, SETTINGS).health_check()
        colour = "green" if result["status"] == "healthy" else "red"
        active = " (active)" if name == SETTINGS.provider else ""
        table.add_row(f"{name}{active}", result["model"], f"[{colour}]{result['status']}[/{colour}]")
    console.print(table)


@app.command("config")
def cmd_config():
    """Show current configuration."""
    table = Table(title="Stageboard Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="yellow")

    for key, value in get_configuration_summary().items():
        table.add_row(key.replace("_", " ").title(), str(value))

    console.print(table)


@app.command("intake")
def cmd_intake(
    message: str = typer.Argument(..., help="What the customer wants built"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="LLM provider: anthropic|openai")
):
    """Run one intake assistant turn."""
    name = (provider or SETTINGS.provider).lower()
    if not validate_provider_config(name):
        console.print(f"[red]Configuration Error: no API key configured for {name}[/red]")
        raise typer.Exit(1)

    try:
        llm = ProviderRegistry.create(name, SETTINGS)
        reply = run_intake(message, [], llm, SETTINGS)
    except ConfigurationError as e:
        console.print(f"[red]Configuration Error: {e}[/red]")
        raise typer.Exit(1)
    except LLMProviderError as e:
        console.print(f"[red]AI request failed: {e}[/red]")
        raise typer.Exit(1)
    except StageboardError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    console.print(reply["message"])
    for point in reply["points"] or []:
        console.print(f"  [cyan]•[/cyan] {point}")


@app.command("serve")
def cmd_serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes")
):
    """Run the HTTP API."""
    import uvicorn

    console.print(f"[bold]Stageboard API[/bold] on http://{host}:{port}")
    uvicorn.run("stageboard.api.app:create_app", factory=True, host=host, port=port, reload=reload)


def main():
    app()


if __name__ == "__main__":
    main()
