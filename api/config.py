"""
Runtime configuration.

Values come from the process environment, after loading a `.env` file from the
project root when present.

Environment variables (all optional):
- PORT: HTTP port for the launcher (default 3000)
- API_TOKEN: shared secret expected as `Authorization: Bearer <token>` on deal creation
- WEBHOOK_ACCEPT_URL: endpoint notified when a deal is accepted (empty disables it)
- WEBHOOK_TIMEOUT_SECONDS: timeout of the accept notification (default 10)
- RETENTION_HORIZON_SECONDS: age after which deals are evicted (default 3600)
- SWEEP_INTERVAL_SECONDS: period of the eviction pass (default 3600)
- ENABLE_TEST_DEAL: expose GET /api/test-deal (default false)
- PROTECT_RESOLUTION: also require the token on accept/skip (default false)
- LOG_LEVEL: logging level name (default INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_API_TOKEN = "dev-token-local"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True, slots=True)
class Settings:
    port: int = 3000
    api_token: str = DEFAULT_API_TOKEN
    webhook_accept_url: Optional[str] = None
    webhook_timeout_seconds: float = 10.0
    retention_horizon: timedelta = timedelta(hours=1)
    sweep_interval: timedelta = timedelta(hours=1)
    enable_test_deal: bool = False
    protect_resolution: bool = False
    log_level: str = "INFO"


def _read_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"Invalid environment variable {name}: expected an integer, got {raw!r}")
    if value <= 0:
        raise RuntimeError(f"Invalid environment variable {name}: must be positive")
    return value


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"Invalid environment variable {name}: expected a number, got {raw!r}")
    if value <= 0:
        raise RuntimeError(f"Invalid environment variable {name}: must be positive")
    return value


def _read_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    text = raw.strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise RuntimeError(f"Invalid environment variable {name}: expected a boolean, got {raw!r}")


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from an environment mapping.

    Args:
        env: Mapping to read from; defaults to os.environ after loading `.env`

    Raises:
        RuntimeError: a variable is present but malformed
    """

    if env is None:
        env_path = Path(__file__).parent.parent / ".env"
        load_dotenv(dotenv_path=env_path)
        env = os.environ

    api_token = (env.get("API_TOKEN") or "").strip() or DEFAULT_API_TOKEN
    if api_token == DEFAULT_API_TOKEN:
        logger.warning("API_TOKEN is not set; using the development token. Set API_TOKEN in production.")

    webhook_url = (env.get("WEBHOOK_ACCEPT_URL") or "").strip() or None
    if webhook_url is None:
        logger.warning("WEBHOOK_ACCEPT_URL is not set; accepted deals will not be notified.")

    return Settings(
        port=_read_int(env, "PORT", 3000),
        api_token=api_token,
        webhook_accept_url=webhook_url,
        webhook_timeout_seconds=_read_float(env, "WEBHOOK_TIMEOUT_SECONDS", 10.0),
        retention_horizon=timedelta(seconds=_read_int(env, "RETENTION_HORIZON_SECONDS", 3600)),
        sweep_interval=timedelta(seconds=_read_int(env, "SWEEP_INTERVAL_SECONDS", 3600)),
        enable_test_deal=_read_bool(env, "ENABLE_TEST_DEAL", False),
        protect_resolution=_read_bool(env, "PROTECT_RESOLUTION", False),
        log_level=(env.get("LOG_LEVEL") or "INFO").strip().upper(),
    )


__all__ = ["Settings", "load_settings", "DEFAULT_API_TOKEN"]
