"""Output helpers with clear intent.

user_output() is for humans and goes to stderr; machine_output() is for
consumers of the command (paths, JSON, listings) and goes to stdout. Keeping
the streams apart lets `cd "$(grove path feature)"` and `grove --json ...`
work while progress messages are still shown.
"""

from typing import Any

import click
from rich.console import Console


def user_output(message: str = "", nl: bool = True) -> None:
    """Print a message meant for a human (stderr)."""
    click.echo(message, err=True, nl=nl)


def machine_output(message: str = "", nl: bool = True) -> None:
    """Print data meant for a program or a shell substitution (stdout)."""
    click.echo(message, nl=nl)


def render(renderable: Any) -> None:
    """Print a rich renderable (table) on stdout."""
    Console(highlight=False, soft_wrap=True).print(renderable)
