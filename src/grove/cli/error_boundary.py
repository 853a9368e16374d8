"""Error boundary handling for CLI commands.

This module provides a decorator to catch well-known exceptions at CLI entry
points and display clean error messages without stack traces.
"""

import functools
from collections.abc import Callable
from typing import Any

import click

from grove.cli.output import user_output
from grove.core.errors import ConcurrentUpdateError, GitCommandError, RegistryCorruptError


def cli_error_boundary[T: Callable[..., Any]](func: T) -> T:
    """Decorator that catches well-known exceptions and displays clean error messages.

    Catches:
        - RegistryCorruptError: The registry file cannot be parsed
        - ConcurrentUpdateError: The registry changed while being updated
        - GitCommandError: A git call failed outside the core's error values
        - FileNotFoundError: Missing files/directories
        - PermissionError: Permission denied errors

    All other exceptions bubble up normally with full stack traces.

    Example:
        @click.command()
        @click.pass_obj
        @cli_error_boundary
        @json_error_boundary
        def my_command(ctx):
            ...
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except (
            RegistryCorruptError,
            ConcurrentUpdateError,
            GitCommandError,
            FileNotFoundError,
            PermissionError,
        ) as e:
            user_output(click.style("Error: ", fg="red") + str(e))
            raise SystemExit(1) from None

    return wrapper  # type: ignore[return-value]
