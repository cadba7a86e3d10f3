"""User configuration: default substitutions and diff options."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from snapguard.core.errors import ConfigError

CONFIG_FILENAME = "snapguard.json"


@dataclass
class SnapshotConfig:
    """
    Options read from ``snapguard.json``::

        {
            "defaults": {"Date": "<date>", "updated_at": "<timestamp>"},
            "unifiedDiff": false,
            "allowSuperset": true
        }

    ``defaults`` maps a header name or JSON key to the value that replaces it
    before snapshots are stored or compared.
    """

    defaults: dict[str, Any] = field(default_factory=dict)
    unified_diff: bool = False
    allow_superset: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> SnapshotConfig:
        if not isinstance(data, dict):
            raise ConfigError("config must be a JSON object")
        defaults = data.get("defaults", {})
        if not isinstance(defaults, dict):
            raise ConfigError("'defaults' must be an object")
        flags = {}
        for key, attr in (("unifiedDiff", "unified_diff"), ("allowSuperset", "allow_superset")):
            if key in data:
                if not isinstance(data[key], bool):
                    raise ConfigError(f"{key!r} must be a boolean")
                flags[attr] = data[key]
        return cls(defaults=dict(defaults), **flags)


def load_config(path: str | Path) -> SnapshotConfig:
    """
    Load the config file at ``path``, or ``path/snapguard.json`` when ``path``
    is a directory. A missing file yields the default config.
    """
    path = Path(path)
    if path.is_dir():
        path = path / CONFIG_FILENAME
    if not path.exists():
        return SnapshotConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"unable to read config {path}: {exc}") from exc
    return SnapshotConfig.from_dict(data)
