"""Command-line interface using Typer."""

import asyncio
from datetime import datetime
from uuid import UUID

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from clipforge import __version__
from clipforge.domain.enums import STAGE_LABELS, TASK_STATUS_LABELS
from clipforge.errors import ClipforgeError, NotFoundError
from clipforge.logging import setup_logging

# Setup logging
setup_logging()

app = typer.Typer(
    name="clipforge",
    help="clipforge - Staged AI video ad generation CLI",
    add_completion=False,
)

# Subcommand groups
units_app = typer.Typer(help="Creative unit commands")
tasks_app = typer.Typer(help="Generation task commands")
app.add_typer(units_app, name="units")
app.add_typer(tasks_app, name="tasks")

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"clipforge v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """clipforge - Turn a situation into a prompt, a video, a character and the next clip."""
    pass


def _parse_id(value: str, what: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        console.print(f"[bold red]Invalid {what} ID: {value}[/bold red]")
        raise typer.Exit(code=1)


def _when(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the API server."""
    import uvicorn

    from clipforge.config import settings

    console.print("[bold blue]Starting clipforge API...[/bold blue]")
    uvicorn.run(
        "clipforge.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload or settings.api_reload,
    )


@app.command("init-db")
def init_db_command() -> None:
    """Create the database tables (development only; use Alembic in production)."""
    from clipforge.db.session import init_db

    try:
        init_db(create_tables=True)
    except Exception as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)

    console.print("[bold green]✓ Database ready[/bold green]")


@app.command()
def health() -> None:
    """Check the health of a running API server."""
    import httpx

    from clipforge.config import settings

    url = f"http://{settings.api_host}:{settings.api_port}/health/ready"

    try:
        response = httpx.get(url, timeout=10)
        data = response.json()
    except httpx.RequestError as e:
        console.print(f"[bold red]Cannot connect to API: {e}[/bold red]")
        console.print("[dim]Is the API server running?[/dim]")
        raise typer.Exit(code=1)

    table = Table(title="Service Health")
    table.add_column("Component", style="cyan")
    table.add_column("Status")

    table.add_row("Database", "✓" if data.get("database") else "✗")
    for component, healthy in (data.get("components") or {}).items():
        table.add_row(component, "✓" if healthy else "✗")
    table.add_row("Active polls", str(data.get("active_polls", 0)))

    console.print(table)

    if not data.get("ready"):
        console.print("[bold yellow]Some services unhealthy[/bold yellow]")
        raise typer.Exit(code=1)
    console.print("[bold green]All services healthy![/bold green]")


# =============================================================================
# UNIT COMMANDS
# =============================================================================


@units_app.command("list")
def units_list(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of units to show"),
) -> None:
    """List recent creative units."""
    from clipforge.services.task_store import TaskStore

    units = TaskStore().list_units(limit=limit)

    if not units:
        console.print("[dim]No creative units found[/dim]")
        return

    table = Table(title="Creative Units")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Stage", style="green")
    table.add_column("Situation")
    table.add_column("Created")

    for unit in units:
        table.add_row(
            str(unit.id),
            (unit.name or "Untitled")[:30],
            STAGE_LABELS[unit.stage],
            unit.situation[:40],
            _when(unit.created_at),
        )

    console.print(table)


@units_app.command("show")
def units_show(
    unit_id: str = typer.Argument(..., help="Creative unit ID (UUID)"),
) -> None:
    """Show a creative unit and its tasks."""
    from clipforge.services.task_store import TaskStore

    unit_uuid = _parse_id(unit_id, "unit")
    store = TaskStore()

    try:
        unit = store.get_unit(unit_uuid)
    except NotFoundError:
        console.print(f"[bold red]Unit not found: {unit_id}[/bold red]")
        raise typer.Exit(code=1)

    console.print(Panel.fit(
        f"[bold]{unit.name or 'Untitled'}[/bold]\n\n"
        f"[cyan]ID:[/cyan] {unit.id}\n"
        f"[cyan]Stage:[/cyan] {STAGE_LABELS[unit.stage]}\n"
        f"[cyan]Situation:[/cyan] {unit.situation}\n"
        f"[cyan]Prompt:[/cyan] {unit.prompt or 'N/A'}\n"
        f"[cyan]Character:[/cyan] {unit.character_name or 'N/A'}\n"
        f"[cyan]Next prompt:[/cyan] {unit.next_prompt or 'N/A'}\n"
        f"[cyan]Created:[/cyan] {_when(unit.created_at)}",
        title="Creative Unit",
        border_style="blue",
    ))

    tasks = store.list_tasks(unit.id)
    if not tasks:
        return

    table = Table(title="Tasks")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Stage")
    table.add_column("Kind")
    table.add_column("Status", style="green")
    table.add_column("Progress", justify="right")
    table.add_column("Video")

    for task in tasks:
        table.add_row(
            str(task.id),
            STAGE_LABELS[task.stage],
            task.kind.value,
            task.status.value + (" (stalled)" if task.stalled else ""),
            f"{task.progress}%",
            task.playback_url or "-",
        )

    console.print(table)


# =============================================================================
# TASK COMMANDS
# =============================================================================


@tasks_app.command("status")
def tasks_status(
    task_id: str = typer.Argument(..., help="Task ID (UUID)"),
    refresh: bool = typer.Option(
        False, "--refresh", "-r", help="Also show what the provider reports right now"
    ),
) -> None:
    """Show the status of a generation task.

    ``--refresh`` only displays the provider's current answer. Stored status is
    written by the API server's poller alone.
    """
    from clipforge.services.task_store import TaskStore

    task_uuid = _parse_id(task_id, "task")
    store = TaskStore()
    observation = None

    try:
        task = store.get_task(task_uuid)
        if refresh and not task.is_terminal:
            from clipforge.services.providers import get_generation_provider

            provider = get_generation_provider()
            observation = asyncio.run(provider.query_status(task.provider_task_id))
    except NotFoundError:
        console.print(f"[bold red]Task not found: {task_id}[/bold red]")
        raise typer.Exit(code=1)
    except ClipforgeError as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1)

    table = Table(title="Task Status")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Task ID", str(task.id))
    table.add_row("Provider task", task.provider_task_id)
    table.add_row("Kind", task.kind.value)
    table.add_row("Status", f"{task.status.value} ({TASK_STATUS_LABELS[task.status]})")
    table.add_row("Progress", f"{task.progress}%")
    if task.stalled:
        table.add_row("Stalled", "yes")
    if task.result_url:
        table.add_row("Result URL", task.result_url)
    if task.local_path:
        table.add_row("Local path", task.local_path)
    if task.character_id:
        table.add_row("Character ID", task.character_id)
    if task.fail_message:
        table.add_row("Error", task.fail_message)
    if task.warning:
        table.add_row("Warning", task.warning)
    if observation is not None:
        table.add_row(
            "Provider reports",
            f"{observation.status.value} ({observation.progress}%)",
        )
        if observation.result_url:
            table.add_row("Provider result", observation.result_url)

    console.print(table)


if __name__ == "__main__":
    app()
