"""
Config Service: the persisted application configuration.

Reads and writes the ``statemachine-ui-config`` record of a durable
``KeyValueStorage``. A missing or corrupt record means defaults; a
failed write leaves the in-memory configuration authoritative.
"""

from __future__ import annotations

import copy
import json
from logging import getLogger
from typing import Any, Mapping

from fsm_editor.config.app_config import AppConfig, HistoryConfig, UIConfig
from fsm_editor.storage.kv_store import KeyValueStorage

logger = getLogger(__name__)

CONFIG_STORAGE_KEY = "statemachine-ui-config"


class ConfigService:
    """Load, update and persist the ``AppConfig``."""

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage
        self._config = self._load()

    # ── Queries ──

    def get(self) -> AppConfig:
        """Return a copy of the whole configuration."""
        return copy.deepcopy(self._config)

    def get_history_config(self) -> HistoryConfig:
        return copy.deepcopy(self._config.history)

    def get_ui_config(self) -> UIConfig:
        return copy.deepcopy(self._config.ui)

    # ── Mutation ──

    def update(self, partial: Mapping[str, Any]) -> AppConfig:
        """Merge ``partial`` section by section and persist.

        ``{"history": {"maxDepth": 20}}`` changes only ``max_depth``;
        every field not mentioned keeps its current value. Raises
        ValueError (and changes nothing) if any value is rejected.
        """
        if not isinstance(partial, Mapping):
            raise ValueError(f"Config update must be a mapping, got {type(partial).__name__}")
        updated = {}
        for name, values in partial.items():
            if name not in AppConfig.SECTIONS:
                logger.debug(f"Ignoring unknown config section: {name}")
                continue
            if not isinstance(values, Mapping):
                raise ValueError(f"Config section {name!r} must be a mapping")
            updated[name] = getattr(self._config, name).merged(values)

        for name, section in updated.items():
            setattr(self._config, name, section)
        self._save()
        return self.get()

    def reset_to_defaults(self) -> AppConfig:
        self._config = AppConfig()
        self._save()
        logger.info("Configuration reset to defaults")
        return self.get()

    def reload(self) -> None:
        """Re-read the persisted record."""
        self._config = self._load()

    # ── Persistence ──

    def _load(self) -> AppConfig:
        try:
            raw = self._storage.get_item(CONFIG_STORAGE_KEY)
            if raw:
                return AppConfig.from_dict(json.loads(raw))
        except Exception as e:
            logger.warning(f"Failed to load configuration, using defaults: {e}")
        return AppConfig()

    def _save(self) -> None:
        try:
            self._storage.set_item(CONFIG_STORAGE_KEY, json.dumps(self._config.to_dict()))
        except Exception as e:
            logger.warning(f"Failed to save configuration: {e}")
