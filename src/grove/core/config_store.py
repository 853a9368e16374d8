"""Persistence for the grove registry.

The registry file is the only shared mutable state. Writes never happen in
place: the new document is written to a temp file in the same directory and
renamed over the old one, so a crash leaves either the old or the new file.

grove assumes a single writer. ``update`` narrows the window for lost updates
by re-reading right before the write and refusing to rename when the file was
replaced by someone else since the read, but there is no lock.
"""

import json
import logging
import os
import stat
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

from grove.core.errors import ConcurrentUpdateError, RegistryCorruptError
from grove.core.registry import Registry

logger = logging.getLogger(__name__)

type Fingerprint = tuple[int, int, int]


class ConfigStore(ABC):
    """Abstract interface for reading and writing the registry."""

    @abstractmethod
    def exists(self) -> bool:
        """Check if the registry file exists."""
        ...

    @abstractmethod
    def read(self) -> Registry:
        """Load the registry.

        Raises:
            FileNotFoundError: If the registry file doesn't exist
            RegistryCorruptError: If the file is not a valid registry
        """
        ...

    @abstractmethod
    def write(self, registry: Registry) -> None:
        """Replace the registry unconditionally (used by ``grove init``)."""
        ...

    @abstractmethod
    def update(self, fn: Callable[[Registry], Registry]) -> Registry:
        """Read, transform with ``fn`` and persist the registry.

        Returns:
            The registry that was written

        Raises:
            FileNotFoundError: If the registry file doesn't exist
            ConcurrentUpdateError: If the file changed between read and write
        """
        ...

    @abstractmethod
    def path(self) -> Path:
        """Get the path of the registry file (for messages and debugging)."""
        ...


def _fingerprint(path: Path) -> Fingerprint:
    st = path.stat()
    return (st.st_ino, st.st_size, st.st_mtime_ns)


def _file_mode(path: Path) -> int:
    """Mode for a rewritten registry: the old file's, else what open() would use."""
    if path.exists():
        return stat.S_IMODE(path.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


class FileConfigStore(ConfigStore):
    """Production implementation backed by ``.grove/config.json``."""

    def __init__(self, config_path: Path) -> None:
        self._config_path = config_path

    def exists(self) -> bool:
        return self._config_path.exists()

    def read(self) -> Registry:
        registry, _ = self._read_with_fingerprint()
        return registry

    def write(self, registry: Registry) -> None:
        self._write_atomic(registry)

    def update(self, fn: Callable[[Registry], Registry]) -> Registry:
        registry, fingerprint = self._read_with_fingerprint()
        updated = fn(registry)

        if _fingerprint(self._config_path) != fingerprint:
            raise ConcurrentUpdateError(
                f"{self._config_path} was modified by another process; re-run the command"
            )

        self._write_atomic(updated)
        return updated

    def path(self) -> Path:
        return self._config_path

    def _read_with_fingerprint(self) -> tuple[Registry, Fingerprint]:
        if not self._config_path.exists():
            raise FileNotFoundError(f"Registry not found at {self._config_path}")

        before = _fingerprint(self._config_path)
        text = self._config_path.read_text(encoding="utf-8")
        if _fingerprint(self._config_path) != before:
            raise ConcurrentUpdateError(
                f"{self._config_path} changed while it was being read; re-run the command"
            )

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise RegistryCorruptError(f"{self._config_path} is not valid JSON: {e}") from e
        return Registry.from_dict(data), before

    def _write_atomic(self, registry: Registry) -> None:
        parent = self._config_path.parent
        parent.mkdir(parents=True, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(dir=parent, prefix=".config.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                # mkstemp creates 0600 files
                os.fchmod(f.fileno(), _file_mode(self._config_path))
                json.dump(registry.to_dict(), f, indent=2)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self._config_path)
        except BaseException:
            Path(temp_path).unlink(missing_ok=True)
            raise
        logger.debug("Wrote registry to %s", self._config_path)
