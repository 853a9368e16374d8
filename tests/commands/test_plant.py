import json
from pathlib import Path

from click.testing import CliRunner

from grove.cli.cli import cli
from grove.core.settings import GroveSettings
from tests.fakes.shell import FakeShell
from tests.test_utils.env_helpers import grove_env


def test_plant_creates_tree(tmp_path: Path) -> None:
    env = grove_env(tmp_path)

    result = CliRunner().invoke(cli, ["plant", "feature/login"], obj=env.context())

    assert result.exit_code == 0, result.output
    assert "Planted 'feature-login'" in result.output
    assert "Created branch 'feature/login'" in result.output
    assert "grove tend feature-login" in result.output
    assert "feature-login" in env.registry().trees


def test_plant_switch(tmp_path: Path) -> None:
    env = grove_env(tmp_path)

    result = CliRunner().invoke(cli, ["plant", "feature-a", "-s"], obj=env.context())

    assert result.exit_code == 0, result.output
    assert "Now tending 'feature-a'" in result.output
    assert env.registry().current == "feature-a"


def test_plant_quiet_prints_only_the_path(tmp_path: Path) -> None:
    env = grove_env(tmp_path)

    result = CliRunner().invoke(cli, ["-q", "plant", "feature-a"], obj=env.context())

    assert result.exit_code == 0, result.output
    assert result.output.strip() == str(env.layout.tree_path("feature-a"))


def test_plant_copies_editor_configs(tmp_path: Path) -> None:
    env = grove_env(tmp_path)
    (env.root / ".vscode").mkdir()
    (env.root / "CLAUDE.md").write_text("notes", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--json", "plant", "feature-a"], obj=env.context())

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["copiedConfigs"] == [".vscode", "CLAUDE.md"]
    assert (env.layout.tree_path("feature-a") / "CLAUDE.md").exists()


def test_plant_skips_configs_when_disabled(tmp_path: Path) -> None:
    env = grove_env(tmp_path)
    (env.root / ".vscode").mkdir()
    settings = GroveSettings(copy_editor_configs=False)

    result = CliRunner().invoke(
        cli, ["--json", "plant", "feature-a"], obj=env.context(settings=settings)
    )

    assert json.loads(result.stdout)["copiedConfigs"] == []


def test_plant_runs_post_plant_commands(tmp_path: Path) -> None:
    env = grove_env(tmp_path, shell=FakeShell(exit_codes={"npm": 1}))
    settings = GroveSettings(post_plant_commands=["npm install", "make setup"])

    result = CliRunner().invoke(cli, ["plant", "feature-a"], obj=env.context(settings=settings))

    assert result.exit_code == 0, result.output
    tree = env.layout.tree_path("feature-a")
    assert env.shell.command_calls == [
        (["npm", "install"], tree),
        (["make", "setup"], tree),
    ]
    assert "Warning: Post-plant command failed: npm install" in result.output


def test_plant_no_install(tmp_path: Path) -> None:
    env = grove_env(tmp_path)
    settings = GroveSettings(post_plant_commands=["npm install"])

    result = CliRunner().invoke(
        cli, ["plant", "feature-a", "--no-install"], obj=env.context(settings=settings)
    )

    assert result.exit_code == 0, result.output
    assert env.shell.command_calls == []


def test_plant_json(tmp_path: Path) -> None:
    env = grove_env(tmp_path)

    result = CliRunner().invoke(
        cli, ["--json", "plant", "feature/x", "fx", "--new", "--base", "main"], obj=env.context()
    )

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["ok"] is True
    assert data["tree"] == {
        "name": "fx",
        "branch": "feature/x",
        "path": str(env.layout.tree_path("fx")),
        "created": "2024-01-15T14:30:00+00:00",
    }
    assert data["created"] is True
    assert data["fetched"] is False
    assert data["switched"] is False
    assert data["warnings"] == []
    assert env.git.added_worktrees[0][2] == "main"


def test_plant_existing_tree_fails(tmp_path: Path) -> None:
    env = grove_env(tmp_path)
    env.plant("feature-a")

    result = CliRunner().invoke(cli, ["plant", "feature-a"], obj=env.context())

    assert result.exit_code == 1
    assert "Error: Tree 'feature-a' already exists" in result.output
    assert "grove tend feature-a" in result.output


def test_plant_invalid_name_json(tmp_path: Path) -> None:
    env = grove_env(tmp_path)

    result = CliRunner().invoke(cli, ["--json", "plant", "x", "bad name"], obj=env.context())

    assert result.exit_code == 1
    data = json.loads(result.stdout)
    assert data["ok"] is False
    assert data["error"] == "InvalidTreeName"
