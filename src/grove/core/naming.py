"""Tree and staging name helpers."""

import re

from grove.core.errors import ErrorKind, GroveError
from grove.core.repo_discovery import STAGING_DIR_NAME

_TREE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
_UNSAFE_PATH_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_UNSAFE_BRANCH_CHARS = re.compile(r"[^A-Za-z0-9/_-]")
_REPEATED_SLASHES = re.compile(r"/{2,}")


def validate_tree_name(name: str) -> GroveError | None:
    """Check that ``name`` can be used as a tree name.

    Returns None when valid, otherwise an InvalidTreeName error describing
    the first rule that was broken.
    """
    problem: str | None = None
    if not name:
        problem = "name cannot be empty"
    elif name != name.strip():
        problem = "name cannot have leading or trailing whitespace"
    elif name in (".", "..", STAGING_DIR_NAME):
        problem = f"'{name}' is reserved"
    elif "/" in name or "\\" in name:
        problem = "name cannot contain path separators"
    elif not _TREE_NAME_PATTERN.match(name):
        problem = "only letters, digits, '.', '_' and '-' are allowed"

    if problem is None:
        return None
    return GroveError(
        kind=ErrorKind.INVALID_TREE_NAME,
        message=f"Invalid tree name '{name}': {problem}",
    )


def derive_tree_name(branch: str) -> str:
    """Default tree name for a branch: slashes become dashes.

    Examples:
        "feature/login" -> "feature-login"
        "main" -> "main"
    """
    return branch.replace("/", "-")


def sanitize_for_path(value: str) -> str:
    """Replace every character that is unsafe in a directory name with '-'."""
    return _UNSAFE_PATH_CHARS.sub("-", value)


def sanitize_for_branch(value: str) -> str:
    """Replace characters that are unsafe in a ref name and collapse '//'."""
    return _REPEATED_SLASHES.sub("/", _UNSAFE_BRANCH_CHARS.sub("-", value))


def to_base36(value: int) -> str:
    """Render a non-negative integer in lowercase base 36."""
    if value < 0:
        raise ValueError("value must be non-negative")
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if value == 0:
        return "0"
    out: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        out.append(digits[rem])
    return "".join(reversed(out))
