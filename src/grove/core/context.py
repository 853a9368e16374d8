"""Application context with dependency injection."""

from dataclasses import dataclass, replace
from pathlib import Path

import click

from grove.cli.output import user_output
from grove.core.config_store import FileConfigStore
from grove.core.git.abc import Git
from grove.core.git.real import RealGit
from grove.core.integration import IntegrationEngine
from grove.core.previews import Processes, RealProcesses
from grove.core.repo_discovery import GroveLayout, NoGroveSentinel, discover_grove_or_sentinel
from grove.core.settings import GroveSettings, load_settings
from grove.core.shell import RealShell, Shell
from grove.core.time.abc import Time
from grove.core.time.real import RealTime
from grove.core.tree_registry import TreeRegistry
from grove.core.user_feedback import InteractiveFeedback, SuppressedFeedback, UserFeedback


@dataclass(frozen=True)
class OutputMode:
    """How results are reported for this invocation.

    ``json`` prints exactly one JSON object on stdout; ``quiet`` keeps only
    essential output (errors and the primary result).
    """

    json: bool = False
    quiet: bool = False

    @property
    def suppress_info(self) -> bool:
        return self.json or self.quiet


@dataclass(frozen=True)
class GroveContext:
    """Immutable context holding all dependencies for grove operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.

    ``grove`` is a NoGroveSentinel outside an initialized grove; only
    ``grove init`` can work with that.
    """

    git: Git
    shell: Shell
    time: Time
    processes: Processes
    feedback: UserFeedback
    cwd: Path
    grove: GroveLayout | NoGroveSentinel
    settings: GroveSettings
    output: OutputMode

    def with_output(self, output: OutputMode) -> "GroveContext":
        """Copy of this context reporting in ``output`` mode."""
        feedback = self.feedback
        if output.suppress_info and isinstance(feedback, InteractiveFeedback):
            feedback = SuppressedFeedback()
        return replace(self, output=output, feedback=feedback)

    def tree_registry(self, layout: GroveLayout) -> TreeRegistry:
        return TreeRegistry(
            layout=layout,
            store=FileConfigStore(layout.config_path),
            git=self.git,
            time=self.time,
            processes=self.processes,
            remote=self.settings.remote,
        )

    def integration_engine(self, layout: GroveLayout) -> IntegrationEngine:
        return IntegrationEngine(
            trees=self.tree_registry(layout),
            git=self.git,
            time=self.time,
            remote=self.settings.remote,
        )

    @staticmethod
    def for_test(
        git: Git | None = None,
        shell: Shell | None = None,
        time: Time | None = None,
        processes: Processes | None = None,
        feedback: UserFeedback | None = None,
        cwd: Path | None = None,
        grove: GroveLayout | NoGroveSentinel | None = None,
        settings: GroveSettings | None = None,
        output: OutputMode | None = None,
    ) -> "GroveContext":
        """Create test context with optional pre-configured integration classes.

        Unspecified dependencies get their fake implementation. When ``grove``
        is given and ``cwd`` is not, ``cwd`` defaults to the grove root.

        Example:
            >>> git = FakeGit(repo_root=tmp_path, current_branch="main")
            >>> ctx = GroveContext.for_test(git=git, grove=GroveLayout(root=tmp_path))
        """
        from tests.fakes.git import FakeGit
        from tests.fakes.processes import FakeProcesses
        from tests.fakes.shell import FakeShell
        from tests.fakes.time import FakeTime
        from tests.test_utils.paths import sentinel_path

        if git is None:
            git = FakeGit()

        if shell is None:
            shell = FakeShell()

        if time is None:
            time = FakeTime()

        if processes is None:
            processes = FakeProcesses()

        if feedback is None:
            feedback = InteractiveFeedback()

        if grove is None:
            grove = NoGroveSentinel()

        if cwd is None:
            cwd = grove.root if isinstance(grove, GroveLayout) else sentinel_path()

        if settings is None:
            settings = GroveSettings()

        if output is None:
            output = OutputMode()

        return GroveContext(
            git=git,
            shell=shell,
            time=time,
            processes=processes,
            feedback=feedback,
            cwd=cwd,
            grove=grove,
            settings=settings,
            output=output,
        )


def safe_cwd() -> tuple[Path | None, str | None]:
    """Get current working directory, detecting if it no longer exists.

    Returns:
        tuple[Path | None, str | None]: (path, error_message)
        - If successful: (Path, None)
        - If directory deleted: (None, error_message)
    """
    try:
        cwd_path = Path.cwd()
        return (cwd_path, None)
    except (FileNotFoundError, OSError):
        return (
            None,
            "Current working directory no longer exists",
        )


def create_context(*, output: OutputMode) -> GroveContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire
    command execution.
    """
    # 1. Capture cwd (no deps)
    cwd_result, error_msg = safe_cwd()
    if cwd_result is None:
        assert error_msg is not None
        user_output(click.style("Error: ", fg="red") + error_msg)
        user_output("\nThe directory you're running from has been deleted.")
        user_output("Please change to a valid directory and try again.")
        raise SystemExit(1)

    cwd = cwd_result

    # 2. Create integration classes (need git for grove discovery)
    git = RealGit()
    grove = discover_grove_or_sentinel(cwd, git)

    # 3. Load per-grove settings
    settings = GroveSettings()
    if isinstance(grove, GroveLayout):
        try:
            settings = load_settings(grove.settings_path)
        except ValueError as e:
            user_output(click.style("Error: ", fg="red") + str(e))
            raise SystemExit(1) from e

    feedback: UserFeedback
    if output.suppress_info:
        feedback = SuppressedFeedback()
    else:
        feedback = InteractiveFeedback()

    return GroveContext(
        git=git,
        shell=RealShell(),
        time=RealTime(),
        processes=RealProcesses(),
        feedback=feedback,
        cwd=cwd,
        grove=grove,
        settings=settings,
        output=output,
    )
