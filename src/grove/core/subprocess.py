"""Subprocess execution with rich error context."""

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from grove.core.errors import GitCommandError

logger = logging.getLogger(__name__)


def run_subprocess_with_context(
    cmd: Sequence[str],
    operation_context: str,
    cwd: Path | None = None,
    check: bool = True,
    **kwargs: Any,
) -> subprocess.CompletedProcess[str]:
    """Execute subprocess with enriched error reporting for the integration layer.

    Wraps subprocess.run() and re-raises failures as GitCommandError with the
    operation context, command line, exit code and captured output.

    Args:
        cmd: Command and arguments to execute
        operation_context: Human-readable description of operation
        cwd: Working directory for command execution
        check: Whether to raise on non-zero exit (default: True)
        **kwargs: Additional arguments passed to subprocess.run()

    Returns:
        CompletedProcess instance from subprocess.run()

    Raises:
        GitCommandError: If command fails or its binary is not found
    """
    logger.debug("Running %s (cwd=%s)", " ".join(cmd), cwd)
    try:
        return subprocess.run(
            list(cmd),
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            check=check,
            **kwargs,
        )
    except subprocess.CalledProcessError as e:
        cmd_str = " ".join(str(arg) for arg in cmd)
        stdout_text = (e.stdout or "").strip()
        stderr_text = (e.stderr or "").strip()
        error_msg = f"Failed to {operation_context}"
        error_msg += f"\nCommand: {cmd_str}"
        error_msg += f"\nExit code: {e.returncode}"
        if stdout_text:
            error_msg += f"\nstdout: {stdout_text}"
        if stderr_text:
            error_msg += f"\nstderr: {stderr_text}"
        raise GitCommandError(
            error_msg,
            command=list(cmd),
            returncode=e.returncode,
            stdout=stdout_text,
            stderr=stderr_text,
        ) from e
    except FileNotFoundError as e:
        cmd_str = " ".join(str(arg) for arg in cmd)
        error_msg = f"Command not found while trying to {operation_context}: {cmd[0]}"
        error_msg += f"\nFull command: {cmd_str}"
        raise GitCommandError(error_msg, command=list(cmd), returncode=None) from e
