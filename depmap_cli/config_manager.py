"""TOML configuration file handling for depmap.

The file lives at ``$DEPMAP_HOME/config.toml`` (``~/.depmap/config.toml`` by
default) and holds three optional sections::

    [server]
    host = "127.0.0.1"
    port = 3001
    cors_origins = ["http://localhost:4321"]

    [analysis]
    match_mode = "first"
    max_workers = 8
    include_error_files = false

    [logging]
    level = "WARNING"
"""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import toml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    "server": {
        "host": "127.0.0.1",
        "port": 3001,
        "cors_origins": ["http://localhost:4321"],
    },
    "analysis": {
        "match_mode": "first",
        "max_workers": None,
        "include_error_files": False,
    },
    "logging": {
        "level": "WARNING",
    },
}


def default_base_dir() -> Path:
    return Path(os.environ.get("DEPMAP_HOME", str(Path.home() / ".depmap"))).expanduser()


def default_config_file() -> Path:
    return default_base_dir() / "config.toml"


def load_full_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load the raw TOML document, or an empty dict if there is none."""
    path = config_file or default_config_file()
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        return {}


def load_config(config_file: Optional[Path] = None) -> Dict[str, Dict[str, Any]]:
    """Return ``DEFAULT_CONFIG`` overlaid with the values found in the file.

    Unknown sections and keys are kept so callers can extend the file.
    """
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in load_full_config(config_file).items():
        if isinstance(values, dict):
            merged.setdefault(section, {}).update(values)
    return merged


def save_config(config: Dict[str, Any], config_file: Optional[Path] = None) -> Path:
    """Write *config* to the TOML file, creating its directory if needed."""
    path = config_file or default_config_file()
    path.parent.mkdir(parents=True, exist_ok=True)
    # TOML has no null; drop unset values instead of writing them
    cleaned = {
        section: {k: v for k, v in values.items() if v is not None}
        for section, values in config.items()
        if isinstance(values, dict)
    }
    with open(path, "w", encoding="utf-8") as f:
        toml.dump(cleaned, f)
    return path
