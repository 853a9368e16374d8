"""Tree lifecycle against a real git repository.

These tests use real git worktrees so the registry is checked against what
``git worktree list`` actually reports.
"""

import json
import shutil
from pathlib import Path

from click.testing import CliRunner

from grove.cli.cli import cli
from grove.core.context import GroveContext
from grove.core.git.real import RealGit
from grove.core.repo_discovery import GroveLayout, NoGroveSentinel, discover_grove_or_sentinel
from grove.core.shell import COMMAND_NOT_FOUND_EXIT_CODE, RealShell
from tests.fakes.processes import FakeProcesses
from tests.test_utils.git_repo import git, init_repo


def _init_grove(tmp_path: Path) -> tuple[Path, GroveContext]:
    repo = init_repo(tmp_path / "repo")
    init_ctx = GroveContext.for_test(git=RealGit(), grove=NoGroveSentinel(repo_root=repo))
    result = CliRunner().invoke(cli, ["init"], obj=init_ctx)
    assert result.exit_code == 0, result.output
    ctx = GroveContext.for_test(
        git=RealGit(), shell=RealShell(), processes=FakeProcesses(), grove=GroveLayout(root=repo)
    )
    return repo, ctx


def test_plant_creates_a_real_worktree(tmp_path: Path) -> None:
    repo, ctx = _init_grove(tmp_path)

    result = CliRunner().invoke(cli, ["--json", "plant", "feature/login"], obj=ctx)

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    tree_path = Path(data["tree"]["path"])
    assert tree_path == repo / ".grove" / "trees" / "feature-login"
    assert data["created"] is True
    assert git(tree_path, "rev-parse", "--abbrev-ref", "HEAD") == "feature/login"

    worktrees = RealGit().list_worktrees(repo)
    assert worktrees[0].is_root
    assert worktrees[0].branch == "main"
    assert {(wt.path.resolve(), wt.branch) for wt in worktrees[1:]} == {
        (tree_path.resolve(), "feature/login")
    }


def test_discovery_from_inside_a_tree(tmp_path: Path) -> None:
    repo, ctx = _init_grove(tmp_path)
    CliRunner().invoke(cli, ["plant", "feature-a"], obj=ctx)
    nested = repo / ".grove" / "trees" / "feature-a"

    layout = discover_grove_or_sentinel(nested, RealGit())

    assert layout == GroveLayout(root=repo)


def test_uproot_removes_worktree_and_keeps_branch(tmp_path: Path) -> None:
    repo, ctx = _init_grove(tmp_path)
    runner = CliRunner()
    runner.invoke(cli, ["plant", "feature-a", "-s"], obj=ctx)

    result = runner.invoke(cli, ["uproot", "feature-a"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert not (repo / ".grove" / "trees" / "feature-a").exists()
    assert git(repo, "branch", "--list", "feature-a") != ""
    assert [wt.branch for wt in RealGit().list_worktrees(repo)] == ["main"]
    assert (repo / "current").resolve() == repo


def test_uproot_refuses_dirty_tree_without_force(tmp_path: Path) -> None:
    repo, ctx = _init_grove(tmp_path)
    runner = CliRunner()
    runner.invoke(cli, ["plant", "feature-a"], obj=ctx)
    tree = repo / ".grove" / "trees" / "feature-a"
    (tree / "scratch.txt").write_text("wip\n", encoding="utf-8")

    refused = runner.invoke(cli, ["uproot", "feature-a"], obj=ctx)
    forced = runner.invoke(cli, ["uproot", "feature-a", "--force"], obj=ctx)

    assert refused.exit_code == 1
    assert forced.exit_code == 0, forced.output
    assert not tree.exists()


def test_prune_after_out_of_band_delete(tmp_path: Path) -> None:
    repo, ctx = _init_grove(tmp_path)
    runner = CliRunner()
    runner.invoke(cli, ["plant", "feature-a"], obj=ctx)
    shutil.rmtree(repo / ".grove" / "trees" / "feature-a")

    result = runner.invoke(cli, ["--json", "prune"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["prunedTrees"] == ["feature-a"]
    assert [wt.branch for wt in RealGit().list_worktrees(repo)] == ["main"]


def test_real_shell_exit_codes(tmp_path: Path) -> None:
    shell = RealShell()

    assert shell.run_command(["git", "--version"], tmp_path) == 0
    assert shell.run_command(["git", "no-such-subcommand"], tmp_path) != 0
    assert shell.run_command(["grove-no-such-binary"], tmp_path) == COMMAND_NOT_FOUND_EXIT_CODE
