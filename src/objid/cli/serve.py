"""
Server commands: run the MCP server and list the tools of a tier.
"""

import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table
from rich.text import Text

from objid.cli.errors import ExitCode, handle_error
from objid.cli.logsetup import setup_logging
from objid.core.config import ServerMode, load_config
from objid.server import ServerContext, create_server, tools_for_mode
from objid.server.tools import TOOL_CATALOG

console = Console()

logger = logging.getLogger(__name__)


def serve(
    ctx: typer.Context,
    mode: Annotated[
        ServerMode | None,
        typer.Option(
            "--mode",
            "-m",
            case_sensitive=False,
            help="Tool tier to expose (defaults to MCP_MODE or the config file)",
        ),
    ] = None,
) -> None:
    """
    Run the MCP server over stdio.

    Examples:
        objid-mcp serve
        objid-mcp serve --mode lite
    """
    debug = bool(ctx.obj and ctx.obj.get("debug"))
    try:
        config = load_config()
        setup_logging(debug or config.defaults.verbose_logging, quiet_level=logging.INFO)
        server = create_server(ServerContext.create(config), mode or config.mode)
        server.run()
    except KeyboardInterrupt:
        logger.info("Server stopped")
        raise typer.Exit(ExitCode.SIGINT)
    except Exception as e:
        handle_error(e, "serve", debug)
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def tools(
    mode: Annotated[
        ServerMode | None,
        typer.Option("--mode", "-m", case_sensitive=False, help="Tier to list"),
    ] = None,
) -> None:
    """
    List the tools exposed in a tier.

    Examples:
        objid-mcp tools
        objid-mcp tools --mode full
    """
    selected = mode or load_config().mode
    names = tools_for_mode(selected)

    table = Table(title=f"Tools in {selected.value} mode", border_style="cyan")
    table.add_column("Tool", style="cyan", no_wrap=True)
    table.add_column("Description", style="white")
    for name in names:
        table.add_row(name, TOOL_CATALOG[name][1])

    console.print()
    console.print(table)
    console.print()

    summary = Text()
    summary.append("Total tools: ", style="dim")
    summary.append(str(len(names)), style="bold green")
    console.print(summary)


__all__ = ["serve", "tools"]
