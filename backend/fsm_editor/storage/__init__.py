"""
Persistence media for the editor core.
"""

from fsm_editor.storage.kv_store import (
    JsonFileStorage,
    KeyValueStorage,
    MemoryStorage,
    StorageError,
    StorageQuotaExceeded,
)

__all__ = [
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "StorageError",
    "StorageQuotaExceeded",
]
