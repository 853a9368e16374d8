from pathlib import Path

from grove.core.errors import ErrorKind
from grove.core.integration import (
    ConflictEntry,
    Strategy,
    continue_command,
    parse_conflicts,
)
from grove.core.naming import to_base36
from tests.fakes.time import DEFAULT_NOW
from tests.test_utils.env_helpers import GroveEnv, grove_env

STAMP = to_base36(int(DEFAULT_NOW.timestamp() * 1000))


def _env(tmp_path: Path, **git_kwargs: object) -> GroveEnv:
    env = grove_env(tmp_path, **git_kwargs)
    env.plant("feature-a")
    return env


def _staging_path(env: GroveEnv, target: str = "main") -> Path:
    return env.layout.staging_dir / f"feature-a-onto-{target}-{STAMP}"


def test_parse_conflicts_keeps_only_unmerged_entries() -> None:
    status = "UU src/app.py\0 M README.md\0AA new.txt\0?? scratch\0DU gone.txt\0"

    assert parse_conflicts(status) == [
        ConflictEntry(status="UU", path="src/app.py"),
        ConflictEntry(status="AA", path="new.txt"),
        ConflictEntry(status="DU", path="gone.txt"),
    ]


def test_parse_conflicts_keeps_unusual_paths_verbatim() -> None:
    status = "UU my file.txt\0R  new name.txt\0UU looks-like-a-record.txt\0AA caf\u00e9.txt\0"

    assert parse_conflicts(status) == [
        ConflictEntry(status="UU", path="my file.txt"),
        ConflictEntry(status="AA", path="caf\u00e9.txt"),
    ]


def test_continue_command() -> None:
    assert continue_command(Strategy.MERGE) == "git status && git merge --continue"
    assert continue_command(Strategy.REBASE) == "git status && git rebase --continue"


def test_clean_merge_without_apply_cleans_up(tmp_path: Path) -> None:
    env = _env(tmp_path)

    outcome = env.engine().merge_assist("feature-a", "main")

    assert outcome.ok
    assert not outcome.applied
    assert outcome.result_commit is not None
    assert outcome.target is not None
    assert outcome.target.ref == "main"
    assert outcome.target.tree == "main"
    assert outcome.staging is not None
    assert outcome.staging.path == _staging_path(env)
    assert outcome.staging.branch_name == f"grove/merge/feature-a-onto-main-{STAMP}"
    assert not outcome.staging_kept
    assert not outcome.staging.path.exists()
    assert env.git.removed_worktrees == [_staging_path(env)]
    assert env.git.deleted_branches == [outcome.staging.branch_name]
    assert env.git.integrations == [("merge", _staging_path(env), "main")]
    assert env.git.reset_calls == []
    assert env.git.fetched_branches == [("origin", "main")]


def test_clean_merge_with_apply_moves_source(tmp_path: Path) -> None:
    env = _env(tmp_path)
    source_path = env.layout.tree_path("feature-a")

    outcome = env.engine().merge_assist("feature-a", "main", apply=True)

    assert outcome.ok
    assert outcome.applied
    assert outcome.result_commit is not None
    assert env.git.checked_out == [(source_path, "feature-a")]
    assert env.git.reset_calls == [(source_path, outcome.result_commit)]
    assert env.git.get_head_commit(source_path) == outcome.result_commit


def test_rebase_strategy(tmp_path: Path) -> None:
    env = _env(tmp_path)

    outcome = env.engine().merge_assist("feature-a", "main", strategy=Strategy.REBASE)

    assert outcome.ok
    assert outcome.strategy is Strategy.REBASE
    assert env.git.integrations[0][0] == "rebase"


def test_target_tree_resolves_to_its_branch(tmp_path: Path) -> None:
    env = _env(tmp_path)
    env.plant("feature/b", name="b")

    outcome = env.engine().merge_assist("feature-a", "b", fetch=False)

    assert outcome.ok
    assert outcome.target is not None
    assert outcome.target.branch == "feature/b"
    assert outcome.target.tree == "b"
    assert env.git.integrations[0][2] == "feature/b"


def test_target_falls_back_to_remote_tracking_ref(tmp_path: Path) -> None:
    env = _env(tmp_path, remote_branches={"origin": {"release"}})

    outcome = env.engine().merge_assist("feature-a", "release")

    assert outcome.ok
    assert outcome.target is not None
    assert outcome.target.ref == "origin/release"
    assert outcome.target.tree is None


def test_unknown_target(tmp_path: Path) -> None:
    env = _env(tmp_path)

    outcome = env.engine().merge_assist("feature-a", "nope", fetch=False)

    assert not outcome.ok
    assert outcome.error is not None
    assert outcome.error.kind is ErrorKind.TARGET_REF_NOT_FOUND
    assert outcome.staging is None
    assert not env.layout.staging_dir.exists() or list(env.layout.staging_dir.iterdir()) == []


def test_conflicts_keep_staging(tmp_path: Path) -> None:
    env = _env(tmp_path, conflicts={"main": ["UU src/app.py", " M ok.py", "AA new.txt"]})

    outcome = env.engine().merge_assist("feature-a", "main", apply=True)

    assert not outcome.ok
    assert not outcome.applied
    assert outcome.error is not None
    assert outcome.error.kind is ErrorKind.CONFLICT_DETECTED
    assert outcome.conflicts == [
        ConflictEntry(status="UU", path="src/app.py"),
        ConflictEntry(status="AA", path="new.txt"),
    ]
    assert outcome.staging_kept
    assert _staging_path(env).is_dir()
    assert outcome.error.hint == f"cd {_staging_path(env)}\ngit status && git merge --continue"
    assert env.git.reset_calls == []
    assert env.git.removed_worktrees == []


def test_rebase_conflict_hint(tmp_path: Path) -> None:
    env = _env(tmp_path, conflicts={"main": ["UU a.txt"]})

    outcome = env.engine().merge_assist("feature-a", "main", strategy=Strategy.REBASE)

    assert outcome.error is not None
    assert outcome.error.hint is not None
    assert outcome.error.hint.endswith("git rebase --continue")


def test_failure_without_conflicts_keeps_staging(tmp_path: Path) -> None:
    env = _env(tmp_path, failing_refs={"main"})

    outcome = env.engine().merge_assist("feature-a", "main")

    assert not outcome.ok
    assert outcome.error is not None
    assert outcome.error.kind is ErrorKind.VERSION_CONTROL_COMMAND_FAILED
    assert outcome.conflicts == []
    assert outcome.staging_kept
    assert _staging_path(env).is_dir()


def test_apply_requires_clean_source(tmp_path: Path) -> None:
    env = _env(tmp_path, dirty_paths={tmp_path / "repo" / ".grove" / "trees" / "feature-a"})

    outcome = env.engine().merge_assist("feature-a", "main", apply=True)

    assert outcome.error is not None
    assert outcome.error.kind is ErrorKind.DIRTY_TREE
    assert env.git.integrations == []


def test_dirty_source_is_fine_without_apply(tmp_path: Path) -> None:
    env = _env(tmp_path, dirty_paths={tmp_path / "repo" / ".grove" / "trees" / "feature-a"})

    assert env.engine().merge_assist("feature-a", "main").ok


def test_source_must_differ_from_target(tmp_path: Path) -> None:
    env = _env(tmp_path)

    outcome = env.engine().merge_assist("feature-a", "feature-a")

    assert outcome.error is not None
    assert outcome.error.kind is ErrorKind.INVALID_ARGUMENTS


def test_unknown_and_invalid_sources(tmp_path: Path) -> None:
    env = _env(tmp_path)

    unknown = env.engine().merge_assist("nope", "main")
    invalid = env.engine().merge_assist("../x", "main")

    assert unknown.error is not None
    assert unknown.error.kind is ErrorKind.TREE_NOT_FOUND
    assert invalid.error is not None
    assert invalid.error.kind is ErrorKind.INVALID_TREE_NAME


def test_source_path_missing(tmp_path: Path) -> None:
    env = _env(tmp_path)
    env.layout.tree_path("feature-a").rmdir()

    outcome = env.engine().merge_assist("feature-a", "main")

    assert outcome.error is not None
    assert outcome.error.kind is ErrorKind.TREE_PATH_MISSING


def test_fetch_failure_is_a_warning(tmp_path: Path) -> None:
    env = _env(tmp_path, fetch_fails=True)

    outcome = env.engine().merge_assist("feature-a", "main")

    assert outcome.ok
    assert outcome.warnings == ["Could not fetch origin/main; using local refs"]


def test_no_fetch(tmp_path: Path) -> None:
    env = _env(tmp_path)

    env.engine().merge_assist("feature-a", "main", fetch=False)

    assert env.git.fetched_branches == []


def test_keep_temp(tmp_path: Path) -> None:
    env = _env(tmp_path)

    outcome = env.engine().merge_assist("feature-a", "main", keep_temp=True)

    assert outcome.ok
    assert outcome.staging_kept
    assert _staging_path(env).is_dir()
    assert env.git.removed_worktrees == []


def test_apply_failure_keeps_staging(tmp_path: Path) -> None:
    env = _env(tmp_path, reset_fails=True)
    source_path = env.layout.tree_path("feature-a")
    head_before = env.git.get_head_commit(source_path)

    outcome = env.engine().merge_assist("feature-a", "main", apply=True)

    assert not outcome.ok
    assert outcome.staging_kept
    assert outcome.error is not None
    assert outcome.error.hint is not None
    assert "grove/merge/" in outcome.error.hint
    assert _staging_path(env).is_dir()
    assert env.git.get_head_commit(source_path) == head_before


def test_cleanup_falls_back_to_deleting_the_directory(tmp_path: Path) -> None:
    env = _env(tmp_path, remove_worktree_fails=True)

    outcome = env.engine().merge_assist("feature-a", "main")

    assert outcome.ok
    assert not _staging_path(env).exists()
    assert env.git.prune_calls == 1


def test_staging_is_never_registered(tmp_path: Path) -> None:
    env = _env(tmp_path, conflicts={"main": ["UU a.txt"]})
    before = env.registry()

    env.engine().merge_assist("feature-a", "main")

    assert env.registry() == before
