"""Error values returned by grove's core operations.

Core operations never raise for expected failures. They return a GroveError
whose ``kind`` is a stable identifier that the CLI renders both for humans
and in JSON mode. Exceptions are reserved for conditions the caller cannot
act on (a corrupt registry, an unexpected filesystem failure).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Stable error identifiers. The value is what JSON output reports."""

    NOT_INITIALIZED = "NotInitialized"
    INVALID_TREE_NAME = "InvalidTreeName"
    TREE_NOT_FOUND = "TreeNotFound"
    TREE_ALREADY_EXISTS = "TreeAlreadyExists"
    TREE_PATH_MISSING = "TreePathMissing"
    CANNOT_REMOVE_MAIN = "CannotRemoveMain"
    LAST_TREE_REMAINING = "LastTreeRemaining"
    DIRTY_TREE = "DirtyTree"
    TARGET_REF_NOT_FOUND = "TargetRefNotFound"
    WORKTREE_NOT_FOUND = "WorktreeNotFound"
    DUPLICATE_PATH = "DuplicatePath"
    NAME_REQUIRED = "NameRequired"
    INVALID_ARGUMENTS = "InvalidArguments"
    OUTSIDE_TREES_DIR = "OutsideTreesDir"
    ACTIVE_LINK_FAILED = "ActiveLinkFailed"
    CONCURRENT_UPDATE = "ConcurrentUpdate"
    VERSION_CONTROL_COMMAND_FAILED = "VersionControlCommandFailed"
    CONFLICT_DETECTED = "ConflictDetected"


@dataclass(frozen=True)
class GroveError:
    """A failed core operation.

    Attributes:
        kind: Stable identifier of the failure
        message: Human-readable description
        hint: Optional next step for the user (e.g. "Run 'grove doctor --fix'")
        details: Extra structured data for JSON output (available names, git stderr)
    """

    kind: ErrorKind
    message: str
    hint: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


class GitCommandError(RuntimeError):
    """A git invocation exited non-zero.

    The string form carries the operation, the command line, the exit code and
    the captured output so it can be shown verbatim.
    """

    def __init__(
        self,
        message: str,
        *,
        command: list[str],
        returncode: int | None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class RegistryCorruptError(RuntimeError):
    """The registry file exists but cannot be parsed as a grove registry."""


class ConcurrentUpdateError(RuntimeError):
    """The registry file changed on disk between read and write."""


def git_failure(error: GitCommandError, hint: str | None = None) -> GroveError:
    """Wrap a failing git invocation as a VersionControlCommandFailed value."""
    return GroveError(
        kind=ErrorKind.VERSION_CONTROL_COMMAND_FAILED,
        message=str(error),
        hint=hint,
        details={"stderr": error.stderr.strip()} if error.stderr.strip() else {},
    )
