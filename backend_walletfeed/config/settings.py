"""
Application settings.

Settings is an immutable snapshot of the environment. get_settings() reads
the environment on every call so the poll job and the history query each see
current configuration; nothing is cached.
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_walletfeed.config.env import (
    DEFAULT_API_HOST,
    DEFAULT_API_PORT,
    DEFAULT_LOG_FORMAT,
    DEFAULT_LOG_LEVEL,
    DEFAULT_POLL_INTERVAL_SEC,
    DEFAULT_POLL_LIMIT,
    DEFAULT_TIMEOUT_SEC,
    HELIUS_BASE_URL,
    get_api_host,
    get_api_port,
    get_helius_api_key,
    get_helius_base_url,
    get_log_format,
    get_log_level,
    get_poll_interval_sec,
    get_poll_limit,
    get_request_timeout_sec,
    get_wallet_address,
    is_poll_enabled,
)


@dataclass(frozen=True)
class Settings:
    """Typed view of the service configuration."""

    wallet_address: str | None = None
    helius_api_key: str | None = None
    helius_base_url: str = HELIUS_BASE_URL
    request_timeout_sec: float = DEFAULT_TIMEOUT_SEC
    poll_interval_sec: float = DEFAULT_POLL_INTERVAL_SEC
    poll_limit: int = DEFAULT_POLL_LIMIT
    poll_enabled: bool = True
    api_host: str = DEFAULT_API_HOST
    api_port: int = DEFAULT_API_PORT
    log_level: str = DEFAULT_LOG_LEVEL
    log_format: str = DEFAULT_LOG_FORMAT


def get_settings() -> Settings:
    """Return the current application settings built from env / .env."""
    return Settings(
        wallet_address=get_wallet_address(),
        helius_api_key=get_helius_api_key(),
        helius_base_url=get_helius_base_url(),
        request_timeout_sec=get_request_timeout_sec(),
        poll_interval_sec=get_poll_interval_sec(),
        poll_limit=get_poll_limit(),
        poll_enabled=is_poll_enabled(),
        api_host=get_api_host(),
        api_port=get_api_port(),
        log_level=get_log_level(),
        log_format=get_log_format(),
    )
