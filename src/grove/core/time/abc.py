"""Clock abstraction for testing.

Timestamps recorded in the registry and the suffix of staging worktree names
both come from here, so tests can pin them.
"""

from abc import ABC, abstractmethod
from datetime import datetime


class Time(ABC):
    """Abstract clock for dependency injection."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as a timezone-aware datetime."""
        ...
