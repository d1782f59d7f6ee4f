"""CLI entry point for flowcraft.

Commands:
- flowcraft init: Create .flowcraft/config.yaml
- flowcraft run: Execute a workflow file and print its trace
- flowcraft validate: Check a workflow file's structure
- flowcraft show: Print a workflow as a tree
- flowcraft version: Show version information
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
import pydantic
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from flowcraft.cli_ui.graph_renderer import TerminalGraphRenderer, TraceTableRenderer
from flowcraft.core.config import CONFIG_DIR, DEFAULT_CONFIG_YAML, config_path
from flowcraft.core.errors import ExecutionError
from flowcraft.core.graph_engine import WorkflowEngine
from flowcraft.core.graph_schema import WorkflowExport

console = Console()


def get_repo_path() -> Path:
    """Get the repository path (current directory)."""
    return Path.cwd()


def _load_workflow_file(workflow_file: str) -> WorkflowExport:
    """Load an exported workflow (JSON, or YAML with the same shape).

    Exits with status 1 and a readable message when the file is malformed.
    """
    try:
        with open(workflow_file) as f:
            data = yaml.safe_load(f)
        if not isinstance(data, dict):
            console.print(
                f"[red]Error: Invalid content in '{escape(workflow_file)}'. "
                f"Expected an object, got {type(data).__name__}.[/red]"
            )
            sys.exit(1)
        return WorkflowExport.model_validate(data)
    except yaml.YAMLError as e:
        console.print(f"[red]Error parsing '{escape(workflow_file)}':[/red]")
        console.print(f"  {escape(str(e))}")
        sys.exit(1)
    except pydantic.ValidationError as e:
        console.print("[red]Error validating workflow schema:[/red]")
        for err in e.errors():
            loc = ".".join(str(x) for x in err["loc"])
            console.print(f"  - {escape(loc)}: {escape(err['msg'])}")
        sys.exit(1)
    except OSError as e:
        console.print(f"[red]Error reading '{escape(workflow_file)}':[/red] {escape(str(e))}")
        sys.exit(1)


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """flowcraft - build and run typed workflow graphs."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


@main.command()
def init() -> None:
    """Initialize project configuration."""
    repo_path = get_repo_path()
    path = config_path(repo_path)

    if path.exists():
        console.print("[yellow]Project already initialized[/yellow]")
        return

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG_YAML)

    console.print(
        Panel(
            "[green]Project initialized![/green]\n\n"
            f"Created: {escape(str(repo_path / CONFIG_DIR))}\n"
            "- config.yaml: History and storage settings",
            title="flowcraft",
        )
    )


@main.command()
@click.argument("workflow_file", type=click.Path(exists=True))
@click.option("--json", "as_json", is_flag=True, help="Print the trace as JSON")
def run(workflow_file: str, as_json: bool) -> None:
    """Execute a workflow file and print its execution trace.

    Example:
        flowcraft run my-workflow.json
    """
    workflow = _load_workflow_file(workflow_file)
    engine = WorkflowEngine()

    try:
        logs = engine.execute(workflow.nodes, workflow.edges)
    except ExecutionError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        if engine.logs and not as_json:
            console.print(TraceTableRenderer(console).render_trace(engine.logs, "Partial trace"))
        sys.exit(1)

    if as_json:
        payload = [entry.model_dump(mode="json", by_alias=True) for entry in logs]
        click.echo(json.dumps(payload, indent=2))
        return

    console.print(TraceTableRenderer(console).render_trace(logs))
    console.print(f"[green]Workflow completed: {len(logs)} node(s) executed[/green]")


@main.command()
@click.argument("workflow_file", type=click.Path(exists=True))
def validate(workflow_file: str) -> None:
    """Check a workflow file for structural problems."""
    workflow = _load_workflow_file(workflow_file)

    console.print(f"[bold]Nodes:[/] {len(workflow.nodes)}")
    console.print(f"[bold]Edges:[/] {len(workflow.edges)}")

    errors = workflow.validate_graph()
    if errors:
        console.print("\n[red bold]Validation Errors:[/]")
        for error in errors:
            # Escape error messages that may contain user data
            console.print(f"  [red]• {escape(error)}[/]")
        sys.exit(1)

    console.print("\n[green]✓ Graph is valid[/]")


@main.command()
@click.argument("workflow_file", type=click.Path(exists=True))
def show(workflow_file: str) -> None:
    """Print a workflow as a tree rooted at its start node."""
    workflow = _load_workflow_file(workflow_file)
    renderer = TerminalGraphRenderer(console)
    console.print(renderer.render_as_tree(workflow, title=Path(workflow_file).name))


@main.command()
def version() -> None:
    """Show version information."""
    from flowcraft import __version__

    console.print(f"flowcraft v{__version__}")


if __name__ == "__main__":
    main()
