"""
objid-mcp CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

from typing import Annotated

import typer
from rich.console import Console

from objid import __version__
from objid.cli import info, serve
from objid.core.config.env import load_layered_env

PANEL_SERVER = "Run the Server"
PANEL_INSPECT = "Inspect Local State"

app = typer.Typer(
    name="objid-mcp",
    help="MCP server that hands out collision-free object IDs",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def _print_version(value: bool) -> None:
    if value:
        console.print(f"objid-mcp version {__version__}")
        raise typer.Exit(0)


@app.callback()
def main(
    ctx: typer.Context,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug output with detailed logging"),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_print_version,
            is_eager=True,
            help="Show the version and exit",
        ),
    ] = False,
) -> None:
    """
    objid-mcp - object ID allocation for AL apps over MCP.

    Quick Start:
        1. objid-mcp scan path/to/apps    # See which apps are found
        2. objid-mcp serve                # Run the MCP server over stdio

    Configuration comes from ~/.config/objid/config.json, mcp-config.json
    in the current folder, and NINJA_* / MCP_MODE environment variables
    (also read from .env files).
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()
    ctx.obj = {"debug": debug}


app.command(name="serve", rich_help_panel=PANEL_SERVER)(serve.serve)
app.command(name="tools", rich_help_panel=PANEL_SERVER)(serve.tools)

app.command(name="scan", rich_help_panel=PANEL_INSPECT)(info.scan)
app.command(name="config", rich_help_panel=PANEL_INSPECT)(info.config)
app.command(name="stats", rich_help_panel=PANEL_INSPECT)(info.stats)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
