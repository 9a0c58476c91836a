"""
Configuration management for Backend Wallet Feed.

Loads settings from environment variables and an optional .env file.
Exposes a single source of truth for wallet, upstream and polling settings.
"""

from backend_walletfeed.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
