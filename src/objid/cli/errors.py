"""
Standardized error output and exit codes for the objid-mcp CLI.

Errors go to stderr: stdout belongs to the MCP stdio transport while the
server runs.
"""

import traceback
from enum import IntEnum

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from objid.core.backend.errors import ObjIdError

err_console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for objid-mcp commands."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Unexpected failure."""

    USER_ERROR = 2
    """Bad input or configuration (actionable by the user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C)."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print an error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "No apps found",
        ...     reason="No app.json in the folder or its direct subfolders",
        ...     solution="objid-mcp scan path/to/workspace",
        ... )
    """
    err_console.print(f"[red]Error:[/red] {problem}")

    if reason:
        err_console.print(f"[dim]{reason}[/dim]")

    if solution:
        err_console.print(f"[cyan]→ Try:[/cyan] {solution}")


def handle_error(error: Exception, command_name: str, debug: bool = False) -> None:
    """
    Display an error raised by a command in a panel.

    Typed errors also show their context; the traceback is shown in debug mode.
    """
    error_text = Text()
    error_text.append("Error in ", style="bold red")
    error_text.append(command_name, style="bold yellow")
    error_text.append(": ", style="bold red")
    error_text.append(str(error))

    if isinstance(error, ObjIdError):
        context = {k: v for k, v in error.context.items() if v is not None}
        if context:
            error_text.append("\n\nContext:\n", style="dim")
            for key, value in context.items():
                error_text.append(f"  {key}: ", style="cyan")
                error_text.append(f"{value}\n", style="white")

    err_console.print()
    err_console.print(
        Panel(
            error_text,
            title="[bold red]Error[/bold red]",
            border_style="red",
            expand=False,
        )
    )

    if debug:
        err_console.print("\n[dim]Full traceback:[/dim]")
        err_console.print(traceback.format_exc())
    else:
        err_console.print("[dim]Run with --debug for full traceback[/dim]")
    err_console.print()


__all__ = ["ExitCode", "err_console", "handle_error", "print_error"]
