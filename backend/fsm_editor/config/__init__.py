"""
Application configuration.

Architecture:
    app_config      : dataclass sections (history, ui) and their defaults
    env_utils       : environment overrides for section defaults
    config_service  : persisted configuration provider
"""

from fsm_editor.config.app_config import (
    DEFAULT_MAX_DEPTH,
    AppConfig,
    ConfigSection,
    HistoryConfig,
    UIConfig,
)
from fsm_editor.config.config_service import CONFIG_STORAGE_KEY, ConfigService

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "AppConfig",
    "ConfigSection",
    "HistoryConfig",
    "UIConfig",
    "CONFIG_STORAGE_KEY",
    "ConfigService",
]
