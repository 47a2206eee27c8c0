"""
Read-only inspection commands: discovered projects, effective configuration
and persisted statistics.
"""

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from objid.cli.errors import ExitCode, handle_error, print_error
from objid.core.config import load_config
from objid.core.persistence import StateStore
from objid.core.redaction import sanitize
from objid.core.workspace import WorkspaceManager

console = Console()


def scan(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Workspace folder to scan")] = Path("."),
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """
    List the apps found in a workspace folder.

    Nothing is written; the previously active app is only highlighted.

    Examples:
        objid-mcp scan
        objid-mcp scan ~/src/my-apps --json
    """
    if not path.is_dir():
        print_error(
            f"Not a directory: {path}",
            solution="objid-mcp scan path/to/workspace",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    try:
        root = path.expanduser().resolve()
        store = StateStore.default(load_config())
        info = WorkspaceManager().scan(root, active_app_id=store.get_active_app_id(root))
    except Exception as e:
        handle_error(e, "scan", bool(ctx.obj and ctx.obj.get("debug")))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if json_output:
        console.print_json(
            json.dumps(
                {
                    "rootPath": str(info.root_path),
                    "projects": [p.summary() for p in info.projects],
                    "activeAppId": info.active_app_id,
                }
            )
        )
        return

    if not info.projects:
        console.print()
        console.print(
            Panel(
                Text(f"No apps found in {root}", style="yellow"),
                border_style="yellow",
                expand=False,
            )
        )
        console.print("[dim]An app is a folder containing app.json[/dim]")
        console.print()
        return

    table = Table(title=f"Apps in {root}", border_style="cyan")
    table.add_column("", no_wrap=True)
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Publisher")
    table.add_column("Ranges")
    table.add_column("Authorized")
    table.add_column("Path", style="dim")
    for project in info.projects:
        table.add_row(
            "*" if project.app_id == info.active_app_id else "",
            project.name,
            project.version,
            project.publisher,
            ", ".join(str(r) for r in project.ranges) or "-",
            "[green]yes[/green]" if project.is_authorized else "[yellow]no[/yellow]",
            str(project.path),
        )

    console.print()
    console.print(table)
    console.print()


def config(
    ctx: typer.Context,
) -> None:
    """
    Show the effective configuration with credentials masked.

    Values come from defaults, the user config file, mcp-config.json in the
    current folder, and the environment, in that order.
    """
    try:
        effective = load_config(use_cache=False)
    except Exception as e:
        handle_error(e, "config", bool(ctx.obj and ctx.obj.get("debug")))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print_json(json.dumps(sanitize(effective.model_dump(mode="json", by_alias=True))))
    console.print(f"[dim]State file: {effective.get_state_path()}[/dim]")


def stats(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show statistics of the persisted state document."""
    try:
        statistics = StateStore.default(load_config()).get_statistics()
    except Exception as e:
        handle_error(e, "stats", bool(ctx.obj and ctx.obj.get("debug")))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if json_output:
        console.print_json(json.dumps(statistics, default=str))
        return

    table = Table(title="Persisted state", border_style="cyan", show_header=False)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    for key, value in statistics.items():
        table.add_row(key, str(value))

    console.print()
    console.print(table)
    console.print()


__all__ = ["config", "scan", "stats"]
