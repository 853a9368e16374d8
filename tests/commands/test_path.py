import json
from pathlib import Path

from click.testing import CliRunner

from grove.cli.cli import cli
from tests.test_utils.env_helpers import grove_env


def test_path_prints_tree_path(tmp_path: Path) -> None:
    env = grove_env(tmp_path)
    env.plant("feature-a")

    result = CliRunner().invoke(cli, ["path", "feature-a"], obj=env.context())

    assert result.exit_code == 0, result.output
    assert result.output.strip() == str(env.layout.tree_path("feature-a"))


def test_path_json(tmp_path: Path) -> None:
    env = grove_env(tmp_path)

    result = CliRunner().invoke(cli, ["--json", "path", "main"], obj=env.context())

    assert json.loads(result.stdout) == {"ok": True, "name": "main", "path": str(env.root)}


def test_path_unknown(tmp_path: Path) -> None:
    env = grove_env(tmp_path)

    result = CliRunner().invoke(cli, ["path", "nope"], obj=env.context())

    assert result.exit_code == 1
    assert "Tree 'nope' not found" in result.output
