"""
Configuration and environment loading for the chess debug client.

- Loads settings.yml (YAML) from the working directory, or the path in CHESS_CLIENT_SETTINGS, if present.
- Falls back to environment variables (a local .env is loaded first), then to built-in defaults.
- Exposes SETTINGS with the knobs used across the client (API endpoint, HTTP timeouts, polling bounds).
"""
from __future__ import annotations
from dataclasses import dataclass
import os
from typing import Any, Callable

import yaml
from dotenv import load_dotenv

# .env values never override variables already set in the process environment
load_dotenv()

DEFAULT_SETTINGS_FILE = "settings.yml"


def _load_yaml(path: str) -> dict:
    if not os.path.isfile(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping of setting names to values")
    return data


def _getter(cfg: dict) -> Callable[..., Any]:
    def _get(name: str, default: Any, cast: Callable[[Any], Any] | None = None) -> Any:
        # YAML takes precedence over the environment
        if name in cfg:
            val = cfg[name]
            return cast(val) if cast else val
        env = os.environ.get(name)
        if env is not None:
            return cast(env) if cast else env
        return default
    return _get


@dataclass(frozen=True)
class Settings:
    # Remote service
    api_url: str
    api_prefix: str

    # HTTP timeouts (seconds). Long-poll requests get their own, longer read timeout.
    http_timeout_s: float
    long_poll_timeout_s: float

    # Bounded polling after a computer move is triggered
    poll_interval_s: float
    poll_attempts: int

    log_level: str


def load_settings(path: str | None = None) -> Settings:
    """Build Settings from a YAML file (optional), the environment, and defaults."""
    path = path or os.environ.get("CHESS_CLIENT_SETTINGS") or DEFAULT_SETTINGS_FILE
    _get = _getter(_load_yaml(path))
    return Settings(
        api_url=str(_get("CHESS_CLIENT_API_URL", "http://localhost:8080")),
        api_prefix=str(_get("CHESS_CLIENT_API_PREFIX", "/api/v1")),
        http_timeout_s=float(_get("CHESS_CLIENT_HTTP_TIMEOUT_S", 30.0, cast=float)),
        long_poll_timeout_s=float(_get("CHESS_CLIENT_LONG_POLL_TIMEOUT_S", 35.0, cast=float)),
        poll_interval_s=float(_get("CHESS_CLIENT_POLL_INTERVAL_S", 0.2, cast=float)),
        poll_attempts=int(_get("CHESS_CLIENT_POLL_ATTEMPTS", 50, cast=int)),
        log_level=str(_get("CHESS_CLIENT_LOG_LEVEL", "WARNING")).upper(),
    )


SETTINGS = load_settings()
