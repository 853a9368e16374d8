"""CLI error handling utilities with styled output.

This module provides the Ensure class for asserting invariants in CLI commands
with consistent, user-friendly error messages. Human-mode errors use a red
"Error:" prefix; in JSON mode the same failure is emitted as an ErrorResponse.
"""

from typing import TYPE_CHECKING, NoReturn

import click

from grove.cli.json_output import emit_grove_error_json
from grove.cli.output import user_output
from grove.core.errors import ErrorKind, GroveError
from grove.core.repo_discovery import GroveLayout, NoGroveSentinel

if TYPE_CHECKING:
    from grove.core.context import GroveContext


class Ensure:
    """Helper class for asserting invariants with consistent error handling."""

    @staticmethod
    def fail(ctx: "GroveContext", error: GroveError) -> NoReturn:
        """Report ``error`` in the current output mode and exit 1.

        Raises:
            SystemExit: Always (with exit code 1)
        """
        if ctx.output.json:
            emit_grove_error_json(error)
        user_output(click.style("Error: ", fg="red") + error.message)
        if error.hint:
            for line in error.hint.splitlines():
                user_output(click.style(f"  {line}", fg="bright_black"))
        raise SystemExit(1)

    @staticmethod
    def success[T](ctx: "GroveContext", result: T | GroveError) -> T:
        """Unwrap a core operation result, failing on a GroveError.

        Returns:
            The result unchanged if it is not an error
        """
        if isinstance(result, GroveError):
            Ensure.fail(ctx, result)
        return result

    @staticmethod
    def grove(ctx: "GroveContext") -> GroveLayout:
        """Ensure the command runs inside an initialized grove.

        Returns:
            The discovered grove layout
        """
        if isinstance(ctx.grove, NoGroveSentinel):
            Ensure.fail(
                ctx,
                GroveError(
                    kind=ErrorKind.NOT_INITIALIZED,
                    message=ctx.grove.message,
                    hint="Run 'grove init' in the repository root" if ctx.grove.repo_root else None,
                ),
            )
        return ctx.grove

    @staticmethod
    def invariant(ctx: "GroveContext", condition: bool, error_message: str) -> None:
        """Ensure condition is true, otherwise fail with InvalidArguments."""
        if not condition:
            Ensure.fail(ctx, GroveError(kind=ErrorKind.INVALID_ARGUMENTS, message=error_message))
