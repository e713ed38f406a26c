"""
Application configuration sections.

Each section is a dataclass with a stable name, built-in defaults that
environment variables may override, and a tolerant ``from_dict`` that
falls back to defaults field by field instead of raising.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from logging import getLogger
from typing import Any, Dict, Mapping, Type, TypeVar

from pydantic.alias_generators import to_camel

from fsm_editor.config.env_utils import read_env_defaults

logger = getLogger(__name__)

DEFAULT_MAX_DEPTH = 50

S = TypeVar("S", bound="ConfigSection")


@dataclass
class ConfigSection:
    """Base for config sections."""

    @classmethod
    def get_config_name(cls) -> str:
        raise NotImplementedError

    @classmethod
    def get_default_instance(cls: Type[S]) -> S:
        instance = cls()
        env_map = getattr(cls, "_ENV_MAP", {})
        overrides = read_env_defaults(env_map, cls.__dataclass_fields__)
        return instance.merged(overrides, strict=False)

    def validate_field(self, name: str, value: Any) -> Any:
        """Return the accepted value for ``name``; raise ValueError otherwise."""
        return value

    def merged(self: S, values: Mapping[str, Any], strict: bool = True) -> S:
        """Copy with ``values`` applied; keys may be snake_case or camelCase.

        With ``strict`` a rejected value raises ValueError, otherwise it
        is logged and the current value kept.
        """
        names = {f.name: f.name for f in fields(self) if f.init}
        names.update({to_camel(n): n for n in list(names)})

        changes: Dict[str, Any] = {}
        for key, value in values.items():
            name = names.get(key)
            if name is None:
                logger.debug(f"Ignoring unknown {self.get_config_name()} setting: {key}")
                continue
            try:
                changes[name] = self.validate_field(name, value)
            except ValueError as e:
                if strict:
                    raise
                logger.warning(f"Invalid {self.get_config_name()}.{key}: {e}; keeping {getattr(self, name)!r}")
        return replace(self, **changes)

    @classmethod
    def from_dict(cls: Type[S], data: Any) -> S:
        defaults = cls.get_default_instance()
        if not isinstance(data, Mapping):
            if data is not None:
                logger.warning(f"Config section {cls.get_config_name()} is not an object; using defaults")
            return defaults
        return defaults.merged(data, strict=False)

    def to_dict(self) -> Dict[str, Any]:
        """Wire (camelCase) representation."""
        return {to_camel(k): v for k, v in asdict(self).items()}


@dataclass
class HistoryConfig(ConfigSection):
    """Undo/redo timeline settings."""

    max_depth: int = DEFAULT_MAX_DEPTH

    _ENV_MAP = {
        "max_depth": "FSM_EDITOR_HISTORY_MAX_DEPTH",
    }

    @classmethod
    def get_config_name(cls) -> str:
        return "history"

    def validate_field(self, name: str, value: Any) -> Any:
        if name == "max_depth":
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValueError(f"max_depth must be a positive integer, got {value!r}")
        return value


@dataclass
class UIConfig(ConfigSection):
    """Presentation-only settings; the editor core never reads them."""

    dark_mode: bool = False

    _ENV_MAP = {
        "dark_mode": "FSM_EDITOR_DARK_MODE",
    }

    @classmethod
    def get_config_name(cls) -> str:
        return "ui"

    def validate_field(self, name: str, value: Any) -> Any:
        if name == "dark_mode" and not isinstance(value, bool):
            raise ValueError(f"dark_mode must be a boolean, got {value!r}")
        return value


@dataclass
class AppConfig:
    history: HistoryConfig = field(default_factory=HistoryConfig.get_default_instance)
    ui: UIConfig = field(default_factory=UIConfig.get_default_instance)

    SECTIONS = {
        "history": HistoryConfig,
        "ui": UIConfig,
    }

    @classmethod
    def from_dict(cls, data: Any) -> "AppConfig":
        if not isinstance(data, Mapping):
            logger.warning("Persisted configuration is not an object; using defaults")
            data = {}
        return cls(**{
            name: section.from_dict(data.get(name))
            for name, section in cls.SECTIONS.items()
        })

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name).to_dict() for name in self.SECTIONS}
