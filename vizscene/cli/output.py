"""Console output helpers for the vizscene CLI.

User-facing messages go through these functions; diagnostics go through
structured logging (``get_logger``) so they can be switched to JSON.
"""

from __future__ import annotations

import typer


def success(message: str, *, prefix: bool = True) -> None:
    """Display a success message in green.

    Example:
        success("Bar chart written to charts/bar.svg")
        # Output: ✅ Bar chart written to charts/bar.svg
    """
    formatted = f"✅ {message}" if prefix else message
    typer.secho(formatted, fg=typer.colors.GREEN)


def error(message: str, *, prefix: bool = True, err: bool = True) -> None:
    """Display an error message in red, on stderr by default."""
    formatted = f"❌ {message}" if prefix else message
    typer.secho(formatted, fg=typer.colors.RED, err=err)


def warning(message: str, *, prefix: bool = True) -> None:
    formatted = f"⚠️  {message}" if prefix else message
    typer.secho(formatted, fg=typer.colors.YELLOW, err=True)


def chart(message: str, *, prefix: bool = True) -> None:
    """Display a chart summary line in cyan."""
    formatted = f"📊 {message}" if prefix else message
    typer.secho(formatted, fg=typer.colors.CYAN)


def plain(message: str) -> None:
    typer.echo(message)
