from pathlib import Path
from typing import Any

from grove.core.previews import PreviewInfo, PreviewTable
from grove.core.registry import PREVIEWS_KEY, Registry
from tests.fakes.processes import FakeProcesses


def _registry(previews: Any) -> Registry:
    return Registry(
        repo=Path("/repo"), trees={}, current=None, extras={PREVIEWS_KEY: previews}
    )


def test_from_dict_parses_entry() -> None:
    info = PreviewInfo.from_dict(
        {"pid": 10, "port": 3000, "mode": "dev", "url": "http://localhost:3000", "startedAt": "t"}
    )

    assert info == PreviewInfo(
        pid=10, port=3000, mode="dev", url="http://localhost:3000", started_at="t"
    )


def test_from_dict_rejects_entries_without_pid() -> None:
    assert PreviewInfo.from_dict({"port": 3000}) is None
    assert PreviewInfo.from_dict({"pid": "10"}) is None
    assert PreviewInfo.from_dict({"pid": True}) is None
    assert PreviewInfo.from_dict({"pid": 0}) is None
    assert PreviewInfo.from_dict("nope") is None


def test_running_and_stale() -> None:
    table = PreviewTable(
        _registry({"a": {"pid": 1, "port": 3001}, "b": {"pid": 2}, "c": {"port": 9}}),
        FakeProcesses(alive={1}),
    )

    assert table.is_running("a")
    assert not table.is_running("b")
    assert not table.is_running("missing")
    assert list(table.running()) == ["a"]
    assert table.stale_names() == ["b", "c"]


def test_stop_terminates_running_preview() -> None:
    processes = FakeProcesses(alive={1})
    table = PreviewTable(_registry({"a": {"pid": 1}}), processes)

    assert table.stop("a")
    assert processes.terminated == [1]
    assert not table.is_running("a")


def test_stop_ignores_dead_or_unknown_previews() -> None:
    processes = FakeProcesses()
    table = PreviewTable(_registry({"a": {"pid": 1}}), processes)

    assert not table.stop("a")
    assert not table.stop("b")
    assert processes.terminated == []


def test_malformed_table_is_empty() -> None:
    table = PreviewTable(_registry(["x"]), FakeProcesses())

    assert table.entries() == {}
    assert table.stale_names() == []
