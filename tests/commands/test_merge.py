import json
from pathlib import Path

from click.testing import CliRunner

from grove.cli.cli import cli
from tests.test_utils.env_helpers import grove_env


def test_merge_clean_with_apply(tmp_path: Path) -> None:
    env = grove_env(tmp_path)
    env.plant("feature-a")

    result = CliRunner().invoke(
        cli, ["merge", "feature-a", "main", "--apply"], obj=env.context()
    )

    assert result.exit_code == 0, result.output
    assert "Merged 'main' for 'feature-a'" in result.output
    assert "Applied to tree 'feature-a'" in result.output
    assert env.git.reset_calls[0][0] == env.layout.tree_path("feature-a")


def test_merge_json_success(tmp_path: Path) -> None:
    env = grove_env(tmp_path)
    env.plant("feature-a")

    result = CliRunner().invoke(
        cli, ["--json", "merge", "feature-a", "main", "--rebase", "--no-fetch"], obj=env.context()
    )

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["ok"] is True
    assert data["strategy"] == "rebase"
    assert data["applied"] is False
    assert data["source"]["name"] == "feature-a"
    assert data["target"] == {"input": "main", "branch": "main", "tree": "main", "ref": "main"}
    assert data["staging"]["kept"] is False
    assert data["staging"]["path"] is None
    assert data["conflicts"] == []
    assert data["resultCommit"] is not None
    assert data["error"] is None
    assert env.git.fetched_branches == []


def test_merge_conflict_json(tmp_path: Path) -> None:
    env = grove_env(tmp_path, conflicts={"main": ["UU src/app.py"]})
    env.plant("feature-a")

    result = CliRunner().invoke(cli, ["--json", "merge", "feature-a", "main"], obj=env.context())

    assert result.exit_code == 1
    data = json.loads(result.stdout)
    assert data["ok"] is False
    assert data["error"] == "ConflictDetected"
    assert data["conflicts"] == [{"status": "UU", "path": "src/app.py"}]
    assert data["staging"]["kept"] is True
    assert Path(data["staging"]["path"]).is_dir()
    assert data["staging"]["branch"].startswith("grove/merge/feature-a-onto-main-")


def test_merge_conflict_human(tmp_path: Path) -> None:
    lines = [f"UU file{i}.txt" for i in range(12)]
    env = grove_env(tmp_path, conflicts={"main": lines})
    env.plant("feature-a")

    result = CliRunner().invoke(cli, ["merge", "feature-a", "main"], obj=env.context())

    assert result.exit_code == 1
    assert (
        "Conflicts: Merge of 'main' into 'feature-a' stopped with 12 conflict(s)"
        in result.output
    )
    assert "UU file9.txt" in result.output
    assert "file10.txt" not in result.output
    assert "... and 2 more" in result.output
    assert "git status && git merge --continue" in result.output
    assert "cd " in result.output


def test_merge_unknown_source(tmp_path: Path) -> None:
    env = grove_env(tmp_path)

    result = CliRunner().invoke(cli, ["merge", "nope", "main"], obj=env.context())

    assert result.exit_code == 1
    assert "Error: Tree 'nope' not found" in result.output


def test_merge_rebase_conflicts_with_merge_strategy(tmp_path: Path) -> None:
    env = grove_env(tmp_path)
    env.plant("feature-a")

    result = CliRunner().invoke(
        cli, ["merge", "feature-a", "main", "-r", "-s", "merge"], obj=env.context()
    )

    assert result.exit_code == 1
    assert "--rebase conflicts with --strategy merge" in result.output


def test_merge_fetch_warning(tmp_path: Path) -> None:
    env = grove_env(tmp_path, fetch_fails=True)
    env.plant("feature-a")

    result = CliRunner().invoke(cli, ["merge", "feature-a", "main"], obj=env.context())

    assert result.exit_code == 0, result.output
    assert "Warning: Could not fetch origin/main; using local refs" in result.output
