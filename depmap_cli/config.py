"""Runtime configuration for depmap.

Values come from environment variables first, then ``config.toml``
(see :mod:`depmap_cli.config_manager`), then built-in defaults.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Tuple

from .config_manager import DEFAULT_CONFIG, default_base_dir, default_config_file, load_config

logger = logging.getLogger(__name__)

BASE_DIR = default_base_dir()
CONFIG_FILE = default_config_file()

SUPPORTED_EXTENSIONS: Tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx")

IGNORED_DIRECTORIES: FrozenSet[str] = frozenset({
    "node_modules", ".git", ".vscode", "dist", "build", "coverage",
})

MATCH_MODES: Tuple[str, ...] = ("first", "all")

_toml_config = load_config(CONFIG_FILE)
_server = _toml_config["server"]
_analysis = _toml_config["analysis"]


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer, using %s", name, raw, default)
        return default


def _match_mode(value: str) -> str:
    if value in MATCH_MODES:
        return value
    logger.warning(
        "Ignoring match mode %r: expected one of %s, using %r",
        value, ", ".join(MATCH_MODES), DEFAULT_CONFIG["analysis"]["match_mode"],
    )
    return DEFAULT_CONFIG["analysis"]["match_mode"]


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.environ.get(name)
    if raw is None:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


SERVER_HOST: str = os.environ.get("DEPMAP_HOST", _server["host"])
SERVER_PORT: int = _env_int("DEPMAP_PORT", int(_server["port"]))
CORS_ORIGINS: List[str] = _env_list("DEPMAP_CORS_ORIGINS", _server["cors_origins"])

MAX_WORKERS: Optional[int] = _env_int("DEPMAP_MAX_WORKERS", _analysis.get("max_workers"))
MATCH_MODE: str = _match_mode(os.environ.get("DEPMAP_MATCH_MODE", _analysis["match_mode"]))
INCLUDE_ERROR_FILES: bool = bool(_analysis.get("include_error_files", False))

LOG_LEVEL: str = os.environ.get("DEPMAP_LOG_LEVEL", _toml_config["logging"]["level"]).upper()


@dataclass
class ServerSettings:
    """Settings consumed by :func:`depmap_cli.server.create_app`."""

    host: str = SERVER_HOST
    port: int = SERVER_PORT
    cors_origins: List[str] = field(default_factory=lambda: list(CORS_ORIGINS))
    match_mode: str = MATCH_MODE
    max_workers: Optional[int] = MAX_WORKERS
    include_error_files: bool = INCLUDE_ERROR_FILES
