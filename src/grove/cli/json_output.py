"""JSON output utilities for CLI commands with machine-parseable output."""

import json
from collections.abc import Callable
from functools import wraps
from typing import Any

import click
from pydantic import BaseModel

from grove.cli.json_schemas import ErrorResponse
from grove.cli.output import machine_output
from grove.core.errors import GroveError


def emit_json(data: dict[str, Any]) -> None:
    """Output JSON data to stdout for machine consumption.

    Routes JSON through machine_output() to ensure correct stream
    separation (data on stdout, human messages on stderr).
    """
    machine_output(json.dumps(data, indent=2))


def emit_model(model: BaseModel) -> None:
    """Output a response model using its camelCase wire names."""
    emit_json(model.model_dump(mode="json", by_alias=True))


def emit_json_error(
    error: str,
    message: str,
    *,
    hint: str | None = None,
    details: dict[str, Any] | None = None,
    exit_code: int = 1,
) -> None:
    """Output error as JSON and exit.

    Raises:
        SystemExit: Always raises to terminate with specified exit code
    """
    emit_model(ErrorResponse(error=error, message=message, hint=hint, details=details or {}))
    raise SystemExit(exit_code)


def emit_grove_error_json(error: GroveError) -> None:
    """Output a GroveError as JSON and exit 1."""
    emit_json_error(error.kind.value, error.message, hint=error.hint, details=error.details)


def _json_mode_active(args: tuple[Any, ...]) -> bool:
    # Commands use @click.pass_obj, so the GroveContext is the first argument
    if args:
        output = getattr(args[0], "output", None)
        if output is not None:
            return bool(output.json)
    ctx = click.get_current_context(silent=True)
    if ctx is None or ctx.obj is None:
        return False
    output = getattr(ctx.obj, "output", None)
    return bool(output is not None and output.json)


def json_error_boundary[T: Callable[..., Any]](func: T) -> T:
    """Decorator to catch exceptions and emit JSON errors when in JSON mode.

    In JSON mode any uncaught exception becomes an ErrorResponse whose
    ``error`` is the exception class name. Otherwise exceptions bubble up
    for normal error handling.

    Example:
        @click.command("prune")
        @click.pass_obj
        @json_error_boundary
        def prune_cmd(ctx: GroveContext) -> None:
            ...
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except SystemExit:
            raise
        except click.exceptions.Exit:
            raise
        except Exception as e:
            if _json_mode_active(args):
                emit_json_error(type(e).__name__, str(e))
            raise

    return wrapper  # type: ignore[return-value]
