from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.toml")
CONFIG_PATH_ENV = "COPILOT_CONFIG"


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Explicit argument first, then ``$COPILOT_CONFIG``, then ``config.toml``."""
    if path is not None:
        return Path(path)
    env_path = os.getenv(CONFIG_PATH_ENV)
    return Path(env_path) if env_path else DEFAULT_CONFIG_PATH


def load_raw_config(path: str | Path | None = None) -> Dict[str, Any]:
    """
    Read the TOML config file into a plain dict.

    A missing file yields ``{}``; every section then falls back to environment
    variables. A malformed file raises ``tomllib.TOMLDecodeError``.
    """
    target = resolve_config_path(path)
    if not target.is_file():
        logger.debug("No config file at %s; using environment only", target)
        return {}

    with target.open("rb") as handle:
        return tomllib.load(handle)


__all__ = ["load_raw_config", "resolve_config_path", "DEFAULT_CONFIG_PATH", "CONFIG_PATH_ENV"]
