"""User-facing diagnostic output with mode awareness."""

from abc import ABC, abstractmethod

import click

from grove.cli.output import user_output


class UserFeedback(ABC):
    """Provides user-facing diagnostic output that's mode-aware.

    Commands call ctx.feedback instead of threading quiet/json flags through
    every function.

    Two modes:
    - Interactive: Show all diagnostics (info, success, warnings, errors)
    - Suppressed (--quiet or --json): only errors are shown
    """

    @abstractmethod
    def info(self, message: str) -> None:
        """Show informational message (suppressed in quiet/JSON mode)."""

    @abstractmethod
    def success(self, message: str) -> None:
        """Show success message (suppressed in quiet/JSON mode)."""

    @abstractmethod
    def warning(self, message: str) -> None:
        """Show a warning (suppressed in quiet/JSON mode)."""

    @abstractmethod
    def error(self, message: str) -> None:
        """Show error message (always shown)."""


class InteractiveFeedback(UserFeedback):
    """Feedback shown in interactive mode (all messages)."""

    def info(self, message: str) -> None:
        user_output(message)

    def success(self, message: str) -> None:
        user_output(click.style(message, fg="green"))

    def warning(self, message: str) -> None:
        user_output(click.style("Warning: ", fg="yellow") + message)

    def error(self, message: str) -> None:
        user_output(click.style(message, fg="red"))


class SuppressedFeedback(UserFeedback):
    """Feedback for --quiet and --json: only errors reach stderr."""

    def info(self, message: str) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        user_output(click.style(message, fg="red"))
