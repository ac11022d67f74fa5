"""Configuration and environment helpers for the project.

Provides small helpers to read typed environment variables and exposes
project-level configuration constants (LOG_LEVEL, LOG_JSON) used by the
logging setup.
"""

from __future__ import annotations

import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


# Logging
LOG_LEVEL = _env_str("TIMEMAP_LOG_LEVEL", "WARNING").upper()
LOG_JSON = _env_bool("TIMEMAP_LOG_JSON", False)
