"""Pydantic models for JSON output schemas.

Every command run with ``--json`` prints exactly one of these objects on
stdout. Field names are snake_case in Python and camelCase on the wire
(``already_current`` -> ``alreadyCurrent``); always dump with ``by_alias=True``
via emit_model().
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from grove.core.registry import TreeInfo


class _JsonModel(BaseModel):
    model_config = ConfigDict(strict=True, alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(_JsonModel):
    """JSON response for any failed command.

    Attributes:
        error: Stable error kind (e.g. "TreeNotFound") or exception class name
        message: Human-readable description
        hint: Suggested next step, if any
        details: Extra structured data (available tree names, git stderr)
    """

    ok: bool = False
    error: str
    message: str
    hint: str | None = None
    details: dict[str, Any] = {}


class TreeJson(_JsonModel):
    name: str
    branch: str
    path: str
    created: str


class InitResponse(_JsonModel):
    ok: bool = True
    root: str
    main_branch: str
    already_initialized: bool
    gitignore_updated: bool


class PlantResponse(_JsonModel):
    ok: bool = True
    tree: TreeJson
    created: bool
    fetched: bool
    copied_configs: list[str]
    failed_commands: list[str]
    switched: bool
    warnings: list[str]


class TendResponse(_JsonModel):
    ok: bool = True
    tree: TreeJson
    already_current: bool
    previous: str | None


class UprootResponse(_JsonModel):
    ok: bool = True
    removed: TreeJson
    was_current: bool
    current: str | None
    stopped_preview: bool
    warnings: list[str]


class AdoptResponse(_JsonModel):
    ok: bool = True
    tree: TreeJson
    switched: bool
    warnings: list[str]


class PruneResponse(_JsonModel):
    ok: bool = True
    dry_run: bool
    pruned_trees: list[str]
    pruned_previews: list[str]
    current: str | None


class DoctorIssueJson(_JsonModel):
    type: str
    message: str
    details: dict[str, Any]


class DoctorResponse(_JsonModel):
    """``ok`` is False when issues were found and not fixed."""

    ok: bool
    fixed: bool
    issues: list[DoctorIssueJson]
    pruned_trees: list[str]
    pruned_previews: list[str]
    current: str | None
    warnings: list[str]


class MergeSourceJson(_JsonModel):
    name: str
    branch: str
    path: str


class MergeTargetJson(_JsonModel):
    input: str
    branch: str
    tree: str | None
    ref: str


class StagingJson(_JsonModel):
    kept: bool
    path: str | None
    branch: str | None


class ConflictJson(_JsonModel):
    status: str
    path: str


class MergeResponse(_JsonModel):
    """JSON response for ``grove merge``, successful or not.

    ``error``/``message`` are only set when ``ok`` is False.
    """

    ok: bool
    strategy: str
    applied: bool
    source: MergeSourceJson | None
    target: MergeTargetJson | None
    staging: StagingJson | None
    conflicts: list[ConflictJson]
    result_commit: str | None
    warnings: list[str]
    error: str | None = None
    message: str | None = None
    hint: str | None = None


class PreviewJson(_JsonModel):
    port: int | None
    url: str | None
    pid: int
    running: bool


class ListEntryJson(_JsonModel):
    name: str
    branch: str
    path: str
    created: str
    current: bool
    exists: bool
    preview: PreviewJson | None


class ListResponse(_JsonModel):
    ok: bool = True
    current: str | None
    trees: list[ListEntryJson]


class PathResponse(_JsonModel):
    ok: bool = True
    name: str
    path: str


class StatusResponse(_JsonModel):
    ok: bool = True
    root: str
    current: str | None
    current_path: str | None
    here: str | None
    tree_count: int
    running_previews: list[str]


class ConfigListResponse(_JsonModel):
    ok: bool = True
    settings_path: str
    exists: bool
    remote: str
    copy_editor_configs: bool
    post_plant_shell: str | None
    post_plant_commands: list[str]


def tree_json(name: str, info: TreeInfo) -> TreeJson:
    return TreeJson(name=name, branch=info.branch, path=str(info.path), created=info.created)
