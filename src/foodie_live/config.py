# config.py -- Settings for the live viewer service
# Values come from os.environ; a .env file only fills in what is unset.

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

log = logging.getLogger(__name__)

# .env next to pyproject.toml (editable installs)
_project_root = Path(__file__).resolve().parent.parent.parent
load_dotenv(_project_root / ".env")
# then the working directory
load_dotenv(override=False)

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def _safe_int(
    name: str, default: int, min_val: int | None = None, max_val: int | None = None
) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        val = int(raw)
    except (ValueError, TypeError):
        log.warning("Invalid integer for %s=%r, using default %d", name, raw, default)
        return default
    if min_val is not None and val < min_val:
        log.warning("%s=%d below minimum %d, using %d", name, val, min_val, min_val)
        return min_val
    if max_val is not None and val > max_val:
        log.warning("%s=%d above maximum %d, using %d", name, val, max_val, max_val)
        return max_val
    return val


def _safe_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    log.warning("Invalid boolean for %s=%r, using default %s", name, raw, default)
    return default


def _log_level(name: str, default: str) -> str:
    raw = os.getenv(name, default).strip().upper()
    if raw not in _LOG_LEVELS:
        log.warning("Invalid log level %s=%r, using %s", name, raw, default)
        return default
    return raw


class Config:
    # Web server
    web_host: str = os.getenv("WEB_HOST", "0.0.0.0")
    web_port: int = _safe_int("WEB_PORT", 8080, min_val=1, max_val=65535)
    log_level: str = _log_level("LOG_LEVEL", "INFO")

    # Viewer tracking: drop dish entries once nobody is watching
    prune_empty_dishes: bool = _safe_bool("PRUNE_EMPTY_DISHES", True)


config = Config()
