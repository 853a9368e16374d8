"""Shell command execution abstraction.

Post-plant setup commands run through this interface so tests can assert on
what would have run without spawning processes.
"""

import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND_EXIT_CODE = 127


class Shell(ABC):
    """Abstract interface for running external commands."""

    @abstractmethod
    def run_command(self, command: list[str], cwd: Path) -> int:
        """Run ``command`` in ``cwd`` and return its exit code.

        A missing executable is reported as exit code 127 rather than raised.
        """
        ...


class RealShell(Shell):
    """Production implementation using subprocess.

    Output is captured and logged at debug level so it never mixes with the
    command's own stdout (which may be JSON).
    """

    def run_command(self, command: list[str], cwd: Path) -> int:
        logger.debug("Running %s in %s", command, cwd)
        try:
            result = subprocess.run(
                command,
                cwd=cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                check=False,
            )
        except FileNotFoundError:
            logger.debug("Executable not found: %s", command[0])
            return COMMAND_NOT_FOUND_EXIT_CODE

        if result.stdout:
            logger.debug("%s", result.stdout.rstrip())
        return result.returncode
