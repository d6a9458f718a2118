"""Run async command bodies from synchronous click callbacks."""

import asyncio
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, TypeVar

import click

T = TypeVar("T")


def coro(f: Callable[..., Awaitable[T]]) -> Callable[..., T]:
    """Decorator that runs an async click command on a fresh event loop.

    Ctrl+C outside a command's own signal handling exits with status 130.

    Usage:
        @cli.command()
        @coro
        async def execute(task_name: str) -> None:
            ...
    """

    @wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return asyncio.run(f(*args, **kwargs))
        except KeyboardInterrupt:
            click.echo("Interrupted", err=True)
            raise click.exceptions.Exit(130) from None

    return wrapper
