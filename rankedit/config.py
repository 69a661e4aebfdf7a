"""Runtime settings for rankedit.

Read from RANKEDIT_* environment variables; CLI options override them.
Self-contained, no external dependencies.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_POLL_INTERVAL = 3.0
DEFAULT_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "INFO"


@dataclass
class Settings:
    """Server and client settings."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL


def _env_number(env: dict[str, str], key: str, default, cast):
    """Parse a numeric env var, falling back to the default when unset or bad."""
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def load_settings(env: Optional[dict[str, str]] = None) -> Settings:
    """Build Settings from the environment (os.environ unless given)."""
    env = os.environ if env is None else env
    return Settings(
        host=env.get("RANKEDIT_HOST", "").strip() or DEFAULT_HOST,
        port=_env_number(env, "RANKEDIT_PORT", DEFAULT_PORT, int),
        poll_interval=_env_number(env, "RANKEDIT_POLL_INTERVAL", DEFAULT_POLL_INTERVAL, float),
        timeout=_env_number(env, "RANKEDIT_TIMEOUT", DEFAULT_TIMEOUT, float),
        log_level=env.get("RANKEDIT_LOG_LEVEL", "").strip().upper() or DEFAULT_LOG_LEVEL,
    )
