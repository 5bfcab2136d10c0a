"""
bodash CLI - Command Line Interface for the Bayesian Optimization Dashboard.
"""

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from bodash import __version__
from bodash.api.client import DEFAULT_BASE_URL, OptimizerAPIClient
from bodash.api.exceptions import OptimizerError
from bodash.core.export import export_measurements
from bodash.core.workflow import (
    AccessDeniedError,
    MeasurementError,
    OptimizationWorkflow,
)
from bodash.db.connection import (
    DEFAULT_DATABASE_URL,
    create_db_and_tables,
    get_engine,
    get_session,
)
from bodash.db.migration import migrate_to_multi_target
from bodash.db.repository import InvalidStateTransitionError, NotFoundError
from bodash.spec.loader import ConfigLoadError, load_optimization_request_from_file
from bodash.spec.validators import ConfigValidationError

app = typer.Typer(
    name="bodash",
    help="bodash CLI - Bayesian Optimization Dashboard",
    no_args_is_help=True,
)

console = Console()

# Subcommand groups
optimization_app = typer.Typer(help="Manage optimizations", no_args_is_help=True)
api_app = typer.Typer(help="Inspect the optimization API", no_args_is_help=True)
db_app = typer.Typer(help="Manage the database", no_args_is_help=True)

app.add_typer(optimization_app, name="optimization")
app.add_typer(api_app, name="api")
app.add_typer(db_app, name="db")

CLI_ERRORS = (
    ConfigLoadError,
    NotFoundError,
    AccessDeniedError,
    InvalidStateTransitionError,
    MeasurementError,
    OptimizerError,
    ValueError,
)

# Shared options
UserOption = typer.Option(..., "--user", "-u", envvar="BODASH_USER", help="User ID")
DatabaseOption = typer.Option(
    DEFAULT_DATABASE_URL,
    "--database",
    "-d",
    envvar="BODASH_DATABASE_URL",
    help="Database URL",
)
ApiUrlOption = typer.Option(
    DEFAULT_BASE_URL,
    "--api-url",
    envvar="BODASH_OPTIMIZER_API_URL",
    help="Optimization API URL",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        console.print(f"bodash version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """bodash CLI - Bayesian Optimization Dashboard"""
    pass


def _fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    raise typer.Exit(1)


@contextmanager
def _workflow(user: str, database: str, api_url: str) -> Iterator[OptimizationWorkflow]:
    """Workflow bound to a committed session and an API client."""
    engine = get_engine(database)
    create_db_and_tables(engine)

    try:
        with OptimizerAPIClient(base_url=api_url) as api:
            with get_session(engine) as session:
                yield OptimizationWorkflow(session, api, user)
    except ConfigValidationError as e:
        console.print("[red]Configuration validation failed:[/red]")
        for error in e.errors:
            console.print(f"  [red]- {error}[/red]")
        raise typer.Exit(1)
    except CLI_ERRORS as e:
        _fail(str(e))


def _parse_values(values: List[str]) -> dict:
    """Parse NAME=VALUE pairs."""
    parsed = {}
    for item in values:
        name, sep, raw = item.partition("=")
        if not sep or not name:
            raise ValueError(f"Expected NAME=VALUE, got {item!r}")
        parsed[name] = float(raw)
    return parsed


# =============================================================================
# Server Commands
# =============================================================================

@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
    database: str = DatabaseOption,
    api_url: str = ApiUrlOption,
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
):
    """Start the bodash server."""
    import os
    import uvicorn

    os.environ["BODASH_DATABASE_URL"] = database
    os.environ["BODASH_OPTIMIZER_API_URL"] = api_url

    console.print(Panel.fit(
        f"[bold green]Starting bodash Server[/bold green]\n"
        f"Host: {host}\n"
        f"Port: {port}\n"
        f"Database: {database}\n"
        f"Optimization API: {api_url}",
        title="bodash Server",
    ))

    uvicorn.run(
        "bodash.server.app:app",
        host=host,
        port=port,
        reload=reload,
    )


# =============================================================================
# Optimization Commands
# =============================================================================

@optimization_app.command("create")
def optimization_create(
    config_file: Path = typer.Argument(..., help="Path to optimization YAML file"),
    user: str = UserOption,
    database: str = DatabaseOption,
    api_url: str = ApiUrlOption,
):
    """Create an optimization from a YAML file."""
    try:
        request = load_optimization_request_from_file(config_file)
    except ConfigLoadError as e:
        _fail(str(e))

    with _workflow(user, database, api_url) as workflow:
        optimization = workflow.create_optimization(request)
        console.print(f"[green]Created optimization: {optimization.id}[/green]")
        console.print(f"Optimizer ID: {optimization.optimizer_id}")
        console.print(f"Objective: {optimization.objective_type}")
        console.print(f"Recommender: {optimization.recommender_type}")
        console.print(f"Acquisition: {optimization.acquisition_function}")


@optimization_app.command("list")
def optimization_list(
    user: str = UserOption,
    database: str = DatabaseOption,
    api_url: str = ApiUrlOption,
):
    """List your optimizations."""
    with _workflow(user, database, api_url) as workflow:
        optimizations = workflow.list_optimizations()
        counts = workflow.measurement_repo.counts_by_user(user)

        if not optimizations:
            console.print("[yellow]No optimizations found[/yellow]")
            return

        table = Table(title="Optimizations")
        table.add_column("ID", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("Status", style="magenta")
        table.add_column("Objective")
        table.add_column("Measurements", justify="right")
        table.add_column("Best", justify="right", style="yellow")

        for o in optimizations:
            table.add_row(
                str(o.id),
                o.name,
                o.status.value,
                o.objective_type,
                str(counts.get(o.id, 0)),
                f"{o.best_value:.4g}" if o.best_value is not None else "-",
            )

        console.print(table)


@optimization_app.command("show")
def optimization_show(
    optimization_id: str = typer.Argument(..., help="Optimization ID or optimizer ID"),
    user: str = UserOption,
    database: str = DatabaseOption,
    api_url: str = ApiUrlOption,
):
    """Show details of an optimization."""
    with _workflow(user, database, api_url) as workflow:
        o = workflow.get_optimization(optimization_id)
        n_measurements = workflow.measurement_repo.count_by_optimization(o.id)

        console.print(Panel.fit(
            f"[bold]Name:[/bold] {o.name}\n"
            f"[bold]ID:[/bold] {o.id}\n"
            f"[bold]Optimizer ID:[/bold] {o.optimizer_id}\n"
            f"[bold]Status:[/bold] {o.status.value}\n"
            f"[bold]Objective:[/bold] {o.objective_type}\n"
            f"[bold]Recommender:[/bold] {o.recommender_type}\n"
            f"[bold]Acquisition:[/bold] {o.acquisition_function}\n"
            f"[bold]Measurements:[/bold] {n_measurements}\n"
            f"[bold]Best value:[/bold] {o.best_value}",
            title=f"Optimization: {o.name}",
        ))

        table = Table(title="Targets")
        table.add_column("Name", style="green")
        table.add_column("Mode")
        table.add_column("Bounds")
        table.add_column("Weight", justify="right")
        for t in o.targets or [{"name": o.primary_target_name, "mode": o.primary_target_mode}]:
            table.add_row(
                t["name"],
                t.get("mode", ""),
                str(t.get("bounds", "-")),
                str(t.get("weight", 1.0)),
            )
        console.print(table)


@optimization_app.command("suggest")
def optimization_suggest(
    optimization_id: str = typer.Argument(..., help="Optimization ID or optimizer ID"),
    batch_size: int = typer.Option(1, "--batch-size", "-n", min=1, help="Number of suggestions"),
    user: str = UserOption,
    database: str = DatabaseOption,
    api_url: str = ApiUrlOption,
):
    """Get suggested experiments."""
    with _workflow(user, database, api_url) as workflow:
        suggestions = workflow.get_suggestions(optimization_id, batch_size=batch_size)

        console.print(f"[green]Got {len(suggestions)} suggestions[/green]")
        for i, suggestion in enumerate(suggestions):
            console.print(f"  {i+1}: {json.dumps(suggestion)}")


@optimization_app.command("measure")
def optimization_measure(
    optimization_id: str = typer.Argument(..., help="Optimization ID or optimizer ID"),
    parameters: str = typer.Argument(..., help="Parameter values (JSON)"),
    value: List[str] = typer.Option(
        ...,
        "--value",
        "-t",
        help="Target value as NAME=VALUE (repeat for each target)",
    ),
    recommended: bool = typer.Option(
        True,
        "--recommended/--manual",
        help="Whether the parameters came from a suggestion",
    ),
    user: str = UserOption,
    database: str = DatabaseOption,
    api_url: str = ApiUrlOption,
):
    """Record a measurement."""
    try:
        param_data = json.loads(parameters)
    except json.JSONDecodeError as e:
        _fail(f"Invalid JSON: {e}")

    with _workflow(user, database, api_url) as workflow:
        measurement = workflow.add_measurement(
            optimization_id,
            parameters=param_data,
            target_values=_parse_values(value),
            is_recommended=recommended,
        )
        console.print(f"[green]Recorded measurement: {measurement.id}[/green]")


@optimization_app.command("best")
def optimization_best(
    optimization_id: str = typer.Argument(..., help="Optimization ID or optimizer ID"),
    user: str = UserOption,
    database: str = DatabaseOption,
    api_url: str = ApiUrlOption,
):
    """Show the current best point."""
    with _workflow(user, database, api_url) as workflow:
        best = workflow.get_best_point(optimization_id)

        if not best.available:
            console.print("[yellow]No best point available yet[/yellow]")
            return

        console.print(f"[green]Best value: {best.best_value}[/green]")
        console.print(f"Parameters: {json.dumps(best.best_parameters)}")


@optimization_app.command("pause")
def optimization_pause(
    optimization_id: str = typer.Argument(..., help="Optimization ID or optimizer ID"),
    user: str = UserOption,
    database: str = DatabaseOption,
    api_url: str = ApiUrlOption,
):
    """Pause an optimization."""
    with _workflow(user, database, api_url) as workflow:
        workflow.pause(optimization_id)
        console.print("[green]Optimization paused[/green]")


@optimization_app.command("resume")
def optimization_resume(
    optimization_id: str = typer.Argument(..., help="Optimization ID or optimizer ID"),
    user: str = UserOption,
    database: str = DatabaseOption,
    api_url: str = ApiUrlOption,
):
    """Resume a paused optimization."""
    with _workflow(user, database, api_url) as workflow:
        workflow.resume(optimization_id)
        console.print("[green]Optimization resumed[/green]")


@optimization_app.command("complete")
def optimization_complete(
    optimization_id: str = typer.Argument(..., help="Optimization ID or optimizer ID"),
    user: str = UserOption,
    database: str = DatabaseOption,
    api_url: str = ApiUrlOption,
):
    """Mark an optimization as completed."""
    with _workflow(user, database, api_url) as workflow:
        workflow.complete(optimization_id)
        console.print("[green]Optimization completed[/green]")


@optimization_app.command("load")
def optimization_load(
    optimization_id: str = typer.Argument(..., help="Optimization ID or optimizer ID"),
    user: str = UserOption,
    database: str = DatabaseOption,
    api_url: str = ApiUrlOption,
):
    """Reload an optimizer into the optimization API."""
    with _workflow(user, database, api_url) as workflow:
        result = workflow.load(optimization_id)
        console.print(f"[green]{result.get('message', 'Optimizer loaded')}[/green]")


@optimization_app.command("delete")
def optimization_delete(
    optimization_id: str = typer.Argument(..., help="Optimization ID or optimizer ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    user: str = UserOption,
    database: str = DatabaseOption,
    api_url: str = ApiUrlOption,
):
    """Delete an optimization and its measurements."""
    if not yes:
        typer.confirm(f"Delete optimization {optimization_id}?", abort=True)

    with _workflow(user, database, api_url) as workflow:
        workflow.delete(optimization_id)
        console.print("[green]Optimization deleted[/green]")


@optimization_app.command("export")
def optimization_export(
    optimization_id: str = typer.Argument(..., help="Optimization ID or optimizer ID"),
    format: str = typer.Option("csv", "--format", "-f", help="csv or json"),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file path (default: <optimizer-id>.<format>)",
    ),
    remote: bool = typer.Option(
        False,
        "--remote/--local",
        help="Export the API's campaign instead of local measurements",
    ),
    user: str = UserOption,
    database: str = DatabaseOption,
    api_url: str = ApiUrlOption,
):
    """Export measurement history to a file."""
    if format not in ("csv", "json"):
        _fail(f"Unsupported export format: {format}")

    with _workflow(user, database, api_url) as workflow:
        optimization = workflow.get_optimization(optimization_id)

        if remote:
            data = workflow.export(optimization.id, format=format)
            content = data if isinstance(data, str) else json.dumps(data, indent=2)
        else:
            measurements = workflow.measurement_repo.list_by_optimization(optimization.id)
            content = export_measurements(optimization, measurements, format=format)

        if output is None:
            output = Path(f"{optimization.optimizer_id}.{format}")

        with open(output, "w") as f:
            f.write(content)

        console.print(f"[green]Exported optimization to: {output}[/green]")


# =============================================================================
# API Commands
# =============================================================================

@api_app.command("health")
def api_health(api_url: str = ApiUrlOption):
    """Check the optimization API and GPU availability."""
    try:
        with OptimizerAPIClient(base_url=api_url) as api:
            health = api.health()
    except OptimizerError as e:
        _fail(str(e))

    console.print(f"[green]Status: {health['status']}[/green]")
    console.print(f"GPU: {'yes' if health['using_gpu'] else 'no'}")
    if health.get("gpu_info"):
        console.print(f"GPU info: {health['gpu_info']}")


# =============================================================================
# Database Commands
# =============================================================================

@db_app.command("init")
def db_init(database: str = DatabaseOption):
    """Create database tables."""
    create_db_and_tables(get_engine(database))
    console.print(f"[green]Initialized database: {database}[/green]")


@db_app.command("migrate-targets")
def db_migrate_targets(database: str = DatabaseOption):
    """Upgrade single-target optimizations to the multi-target layout."""
    engine = get_engine(database)
    create_db_and_tables(engine)

    with get_session(engine) as session:
        migrated = migrate_to_multi_target(session)

    console.print(f"[green]Migrated {migrated} optimizations[/green]")


# =============================================================================
# Entry point
# =============================================================================

def run():
    """Run the CLI application."""
    app()


if __name__ == "__main__":
    run()
