"""Key-value storage for the persisted game aggregate.

Each key maps to one JSON document that is always overwritten wholesale.
The local implementation keeps one ``<key>.json`` file per key with
owner-only permissions (0o600) inside an owner-only directory (0o700).
"""

import contextlib
import os
import tempfile
from pathlib import Path
from typing import Protocol

import structlog

logger = structlog.get_logger()

_STORAGE_DIR_MODE = 0o700
_STORAGE_FILE_MODE = 0o600


class KeyValueStorage(Protocol):
    """Protocol for a durable slot holding serialized text under a key."""

    def read(self, key: str) -> str | None: ...

    def write(self, key: str, value: str) -> None: ...


class InMemoryKeyValueStorage:
    """Dict-backed storage. Contents are lost with the instance."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def read(self, key: str) -> str | None:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        self._data[key] = value


class LocalKeyValueStorage:
    """Stores each key as a JSON file under a directory on the local filesystem."""

    def __init__(self, storage_dir: str | Path) -> None:
        self._storage_dir = Path(storage_dir).resolve()

    def _path_for(self, key: str) -> Path:
        target = (self._storage_dir / f"{key}.json").resolve()
        if not target.is_relative_to(self._storage_dir) or target.parent != self._storage_dir:
            raise ValueError(f"Path traversal rejected: '{key}' resolves outside storage directory")
        return target

    def read(self, key: str) -> str | None:
        """Return the stored text for key, or None when nothing was written yet."""
        target = self._path_for(key)
        if not target.exists():
            return None
        return target.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        """Atomically replace the stored text for key.

        The directory is created lazily on first write. Content goes to a temp
        file in the same directory which is then renamed over the target, so
        readers never observe a truncated document.
        """
        target = self._path_for(key)

        self._storage_dir.mkdir(mode=_STORAGE_DIR_MODE, parents=True, exist_ok=True)
        self._storage_dir.chmod(_STORAGE_DIR_MODE)

        fd, tmp_path = tempfile.mkstemp(dir=str(self._storage_dir), suffix=".tmp", prefix=".slot_")
        fd_owned = True
        try:
            with os.fdopen(fd, "wb") as f:
                fd_owned = False  # os.fdopen closes fd from here on
                f.write(value.encode("utf-8"))
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, _STORAGE_FILE_MODE)  # noqa: PTH101
            Path(tmp_path).replace(target)
        except BaseException:
            if fd_owned:
                with contextlib.suppress(OSError):
                    os.close(fd)
            with contextlib.suppress(OSError):
                Path(tmp_path).unlink()
            raise
        logger.debug("wrote storage slot", key=key, path=str(target))
