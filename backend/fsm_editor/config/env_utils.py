"""
Environment helpers for config sections.
"""

from __future__ import annotations

import os
from dataclasses import MISSING, Field
from logging import getLogger
from typing import Any, Dict, Mapping

logger = getLogger(__name__)

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def parse_env_value(raw: str, default: Any) -> Any:
    """Coerce ``raw`` to the type of ``default``; raises ValueError."""
    if isinstance(default, bool):
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(f"not a boolean: {raw!r}")
    if isinstance(default, int):
        return int(raw.strip())
    return raw


def read_env_defaults(
    env_map: Mapping[str, str],
    fields: Mapping[str, Field],
) -> Dict[str, Any]:
    """Collect field overrides from environment variables.

    Only fields listed in ``env_map`` whose variable is set and parses
    are returned; malformed values are logged and skipped.
    """
    overrides: Dict[str, Any] = {}
    for field_name, env_name in env_map.items():
        raw = os.environ.get(env_name)
        if raw is None or field_name not in fields:
            continue
        default = fields[field_name].default
        if default is MISSING:
            continue
        try:
            overrides[field_name] = parse_env_value(raw, default)
        except ValueError as e:
            logger.warning(f"Ignoring {env_name}: {e}")
    return overrides
