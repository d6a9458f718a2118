"""Output formatting utilities for CLI commands."""

import click


def _emit(symbol: str, message: str, colour: str, *, err: bool = False) -> None:
    click.secho(f"{symbol} {message}", fg=colour, err=err)


def success(message: str) -> None:
    """Print a success message in green."""
    _emit("✓", message, "green")


def error(message: str) -> None:
    """Print an error message in red on stderr."""
    _emit("✗", message, "red", err=True)


def warning(message: str) -> None:
    _emit("⚠", message, "yellow")


def info(message: str) -> None:
    _emit("ℹ", message, "blue")


def header(message: str) -> None:
    """Print a bold cyan header preceded by a blank line."""
    click.secho(f"\n{message}", fg="cyan", bold=True)


def key_value(key: str, value: object, width: int = 16) -> None:
    """Print an aligned ``key: value`` line."""
    click.echo(f"  {key + ':':<{width}} {value}")
