import json
from pathlib import Path

from click.testing import CliRunner

from grove.cli.cli import cli
from grove.core.context import GroveContext
from grove.core.repo_discovery import NoGroveSentinel
from tests.test_utils.env_helpers import grove_env


def test_init_registers_main(tmp_path: Path) -> None:
    env = grove_env(tmp_path, initialize=False)
    ctx = GroveContext.for_test(git=env.git, grove=NoGroveSentinel(repo_root=env.root))

    result = CliRunner().invoke(cli, ["init"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert f"Initialized grove at {env.root}" in result.output
    assert "Tree 'main' is on branch 'main'" in result.output
    assert env.registry().current == "main"


def test_init_json(tmp_path: Path) -> None:
    env = grove_env(tmp_path, initialize=False)
    ctx = GroveContext.for_test(git=env.git, grove=NoGroveSentinel(repo_root=env.root))

    result = CliRunner().invoke(cli, ["--json", "init"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {
        "ok": True,
        "root": str(env.root),
        "mainBranch": "main",
        "alreadyInitialized": False,
        "gitignoreUpdated": True,
    }


def test_init_twice_is_a_no_op(tmp_path: Path) -> None:
    env = grove_env(tmp_path)

    result = CliRunner().invoke(cli, ["init"], obj=env.context())

    assert result.exit_code == 0, result.output
    assert "already initialized" in result.output


def test_init_outside_a_repository() -> None:
    ctx = GroveContext.for_test(grove=NoGroveSentinel(message="Not inside a git repository"))

    result = CliRunner().invoke(cli, ["--json", "init"], obj=ctx)

    assert result.exit_code == 1
    data = json.loads(result.stdout)
    assert data["ok"] is False
    assert data["error"] == "NotInitialized"
    assert data["message"] == "Not inside a git repository"
