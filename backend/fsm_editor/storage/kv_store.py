"""
Key-Value Storage: the persistence media behind history and config.

``MemoryStorage`` is session-scoped: it lives exactly as long as the
hosting process. ``JsonFileStorage`` is durable: one JSON file per key
under a directory.

Backends are allowed to raise. Callers catch at their persistence
boundary and keep their in-memory state authoritative.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from logging import getLogger
from pathlib import Path
from typing import Dict, Optional

logger = getLogger(__name__)


class StorageError(Exception):
    """A storage medium could not complete a read or write."""


class StorageQuotaExceeded(StorageError):
    """A write would push the medium past its byte quota."""


class KeyValueStorage(ABC):
    """String-keyed, string-valued store."""

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_item(self, key: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class MemoryStorage(KeyValueStorage):
    """In-process store; ``quota_bytes`` caps the total UTF-8 size."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self._items: Dict[str, str] = {}
        self._quota = quota_bytes

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self._quota is not None:
            used = sum(
                len(k.encode("utf-8")) + len(v.encode("utf-8"))
                for k, v in self._items.items() if k != key
            )
            needed = len(key.encode("utf-8")) + len(value.encode("utf-8"))
            if used + needed > self._quota:
                raise StorageQuotaExceeded(
                    f"Writing {key!r} needs {needed} bytes; "
                    f"{self._quota - used} of {self._quota} left"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


class JsonFileStorage(KeyValueStorage):
    """Persist each key as ``<dir>/<sanitized key>.json``."""

    def __init__(self, storage_dir: Path) -> None:
        self._dir = Path(storage_dir)
        self._dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"JsonFileStorage initialized at {self._dir}")

    def get_item(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to read {path.name}: {e}") from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        try:
            path.write_text(value, encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write {path.name}: {e}") from e

    def remove_item(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {path.name}: {e}") from e

    def clear(self) -> None:
        try:
            for path in self._dir.glob("*.json"):
                path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to clear {self._dir}: {e}") from e

    # ── Internals ──

    def _path_for(self, key: str) -> Path:
        # Sanitize key for filesystem
        safe_key = "".join(c for c in key if c.isalnum() or c in "-_")
        if not safe_key:
            raise StorageError(f"Key {key!r} has no filesystem-safe characters")
        return self._dir / f"{safe_key}.json"
