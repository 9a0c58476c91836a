"""
Structured logging for the wallet feed.

Every record is one JSON object (or a console line with LOG_FORMAT=console)
carrying event_type, level, logger and timestamp plus keyword context such as
wallet_id, signature or status_code. Helius API keys travel in the request
query string, so every string value is scrubbed of api-key=... before
rendering.

No backend_walletfeed imports here; config and every other module import this.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

import structlog
from structlog._config import BoundLoggerLazyProxy

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "json"
LOG_FORMATS = ("json", "console")

_API_KEY_RE = re.compile(r"(api-key=)[^&\s\"']+", re.IGNORECASE)
_SECRET_FIELDS = frozenset({"api_key", "helius_api_key"})


def redact_api_key(text: str) -> str:
    """Mask every api-key query value in text."""
    return _API_KEY_RE.sub(r"\1***", text)


def _scrub(value: Any) -> Any:
    if isinstance(value, str):
        return redact_api_key(value) if "api-key=" in value.lower() else value
    if isinstance(value, dict):
        return {k: _scrub(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_scrub(v) for v in value]
    return value


def _redact_secrets(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    for key in list(event_dict):
        if key in _SECRET_FIELDS and event_dict[key]:
            event_dict[key] = "***"
        else:
            event_dict[key] = _scrub(event_dict[key])
    return event_dict


def configure_logging(level: str = DEFAULT_LOG_LEVEL, fmt: str = DEFAULT_LOG_FORMAT) -> None:
    """
    (Re)configure structlog. level is a stdlib level name; fmt is json or
    console. Loggers from get_logger() pick the change up on their next call.
    """
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        _redact_secrets,
    ]
    if fmt == "console":
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    else:
        processors += [
            structlog.processors.EventRenamer("event_type"),
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )


# Defaults until the entrypoint applies LOG_LEVEL / LOG_FORMAT from config
if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> Any:
    """
    Return a structured logger tagged with the module name.

        logger = get_logger(__name__)
        logger.info("transactions_poll_processed", wallet_id=addr, processed=3)

    {"event_type": "transactions_poll_processed", "level": "info",
     "logger": "backend_walletfeed.transactions.service", "processed": 3,
     "timestamp": "...", "wallet_id": "..."}
    """
    # "logger" collides with wrap_logger's first parameter, so the initial
    # context is handed to the lazy proxy directly.
    return BoundLoggerLazyProxy(None, logger_factory_args=(name,), initial_values={"logger": name})
