"""Preview server bookkeeping.

grove does not start preview servers; it only reads the preview table that a
preview supervisor keeps in the registry (``previews``) so it can drop entries
for removed trees, stop a preview before its tree is uprooted, and report
entries whose process is gone.

The table is an explicit object built from a Registry and a Processes
capability, so there is no process-wide state and tests can inject liveness.
"""

import logging
import os
import signal
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from grove.core.registry import Registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreviewInfo:
    """One entry of the preview table."""

    pid: int
    port: int | None
    mode: str | None
    url: str | None
    started_at: str | None

    @staticmethod
    def from_dict(data: Any) -> "PreviewInfo | None":
        """Parse an entry, returning None for entries without a usable pid."""
        if not isinstance(data, dict):
            return None
        pid = data.get("pid")
        if not isinstance(pid, int) or isinstance(pid, bool) or pid <= 0:
            return None
        port = data.get("port")
        return PreviewInfo(
            pid=pid,
            port=port if isinstance(port, int) else None,
            mode=data.get("mode") if isinstance(data.get("mode"), str) else None,
            url=data.get("url") if isinstance(data.get("url"), str) else None,
            started_at=data.get("startedAt") if isinstance(data.get("startedAt"), str) else None,
        )


class Processes(ABC):
    """Abstract process control for dependency injection."""

    @abstractmethod
    def is_alive(self, pid: int) -> bool:
        """Check whether a process with ``pid`` exists."""
        ...

    @abstractmethod
    def terminate(self, pid: int) -> None:
        """Ask the process to stop. A process that is already gone is not an error."""
        ...


class RealProcesses(Processes):
    """Production implementation using signals."""

    def is_alive(self, pid: int) -> bool:
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            return False
        except PermissionError:
            # Exists, owned by someone else
            return True
        return True

    def terminate(self, pid: int) -> None:
        try:
            os.kill(pid, signal.SIGTERM)
        except ProcessLookupError:
            logger.debug("Process %d already exited", pid)


class PreviewTable:
    """Read-mostly view over the previews recorded in a registry."""

    def __init__(self, registry: Registry, processes: Processes) -> None:
        self._processes = processes
        self._entries: dict[str, PreviewInfo] = {}
        self._malformed: list[str] = []
        for name, raw in registry.previews().items():
            info = PreviewInfo.from_dict(raw)
            if info is None:
                self._malformed.append(name)
            else:
                self._entries[name] = info

    def entries(self) -> dict[str, PreviewInfo]:
        return dict(self._entries)

    def get(self, name: str) -> PreviewInfo | None:
        return self._entries.get(name)

    def is_running(self, name: str) -> bool:
        info = self._entries.get(name)
        return info is not None and self._processes.is_alive(info.pid)

    def running(self) -> dict[str, PreviewInfo]:
        return {
            name: info
            for name, info in self._entries.items()
            if self._processes.is_alive(info.pid)
        }

    def stale_names(self) -> list[str]:
        """Entries whose process is gone, plus entries that cannot be parsed."""
        stale = [
            name for name, info in self._entries.items() if not self._processes.is_alive(info.pid)
        ]
        return stale + [name for name in self._malformed if name not in stale]

    def stop(self, name: str) -> bool:
        """Stop the preview for ``name`` if it is running. Returns True if signalled."""
        if not self.is_running(name):
            return False
        info = self._entries[name]
        logger.debug("Stopping preview for '%s' (pid %d)", name, info.pid)
        self._processes.terminate(info.pid)
        return True
