"""
Environment variable loading for Backend Wallet Feed.

- WALLET_ADDRESS: wallet to watch (base58)
- HELIUS_API_KEY: Helius API key
- HELIUS_BASE_URL: enhanced API base (default https://api.helius.xyz/v0)
- HELIUS_TIMEOUT_SEC, POLL_INTERVAL_SEC, POLL_LIMIT, POLL_ENABLED
- API_HOST, API_PORT
- LOG_LEVEL, LOG_FORMAT
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from backend_walletfeed.walletfeed_logging import get_logger
from backend_walletfeed.walletfeed_logging.logger import (
    DEFAULT_LOG_FORMAT,
    DEFAULT_LOG_LEVEL,
    LOG_FORMATS,
)

logger = get_logger(__name__)

# Project root: config is backend_walletfeed/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

HELIUS_BASE_URL = "https://api.helius.xyz/v0"
DEFAULT_TIMEOUT_SEC = 15.0
DEFAULT_POLL_INTERVAL_SEC = 10.0
DEFAULT_POLL_LIMIT = 10
DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 8000

_LOG_LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_walletfeed_env() -> None:
    """Load .env from project root. Safe to call multiple times; real env wins."""
    load_dotenv(_ENV_PATH, override=False)


def _env_str(name: str) -> str | None:
    raw = (os.getenv(name) or "").strip()
    return raw or None


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("config_invalid_number", variable=name, value=raw, default=default)
        return default
    if value <= 0:
        logger.warning("config_non_positive_number", variable=name, value=raw, default=default)
        return default
    return value


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("config_invalid_number", variable=name, value=raw, default=default)
        return default
    if value <= 0:
        logger.warning("config_non_positive_number", variable=name, value=raw, default=default)
        return default
    return value


def get_wallet_address() -> str | None:
    load_walletfeed_env()
    return _env_str("WALLET_ADDRESS")


def get_helius_api_key() -> str | None:
    load_walletfeed_env()
    return _env_str("HELIUS_API_KEY")


def get_helius_base_url() -> str:
    load_walletfeed_env()
    return (_env_str("HELIUS_BASE_URL") or HELIUS_BASE_URL).rstrip("/")


def get_request_timeout_sec() -> float:
    load_walletfeed_env()
    return _env_float("HELIUS_TIMEOUT_SEC", DEFAULT_TIMEOUT_SEC)


def get_poll_interval_sec() -> float:
    load_walletfeed_env()
    return _env_float("POLL_INTERVAL_SEC", DEFAULT_POLL_INTERVAL_SEC)


def get_poll_limit() -> int:
    load_walletfeed_env()
    return _env_int("POLL_LIMIT", DEFAULT_POLL_LIMIT)


def is_poll_enabled() -> bool:
    """Return False only when POLL_ENABLED is explicitly off (0/false/no/off)."""
    load_walletfeed_env()
    raw = (os.getenv("POLL_ENABLED") or "").strip().lower()
    return raw not in ("0", "false", "no", "off")


def get_api_host() -> str:
    load_walletfeed_env()
    return _env_str("API_HOST") or DEFAULT_API_HOST


def get_api_port() -> int:
    load_walletfeed_env()
    return _env_int("API_PORT", DEFAULT_API_PORT)


def get_log_level() -> str:
    """LOG_LEVEL as a stdlib level name (WARN/FATAL accepted); unknown -> INFO."""
    load_walletfeed_env()
    raw = (os.getenv("LOG_LEVEL") or "").strip().upper()
    if not raw:
        return DEFAULT_LOG_LEVEL
    level = _LOG_LEVEL_ALIASES.get(raw, raw)
    if level not in LOG_LEVELS:
        logger.warning("config_invalid_log_level", value=raw, default=DEFAULT_LOG_LEVEL)
        return DEFAULT_LOG_LEVEL
    return level


def get_log_format() -> str:
    load_walletfeed_env()
    raw = (os.getenv("LOG_FORMAT") or "").strip().lower()
    return raw if raw in LOG_FORMATS else DEFAULT_LOG_FORMAT
