"""
Main entrypoint: FastAPI server with the transaction poll loop in its lifespan.

The poll loop runs as a background task on the server's event loop; on
SIGINT/SIGTERM uvicorn shuts the app down and the lifespan stops the loop.

Env: WALLET_ADDRESS, HELIUS_API_KEY, POLL_INTERVAL_SEC, POLL_ENABLED, API_HOST,
API_PORT, LOG_LEVEL, LOG_FORMAT (process env or .env).

Equivalent: uvicorn backend_walletfeed.api_server.app:app --host 0.0.0.0 --port 8000
"""

from backend_walletfeed.walletfeed_logging import configure_logging, get_logger

logger = get_logger("main")


def main() -> None:
    """Run the FastAPI server in the main thread."""
    from backend_walletfeed.config import get_settings
    from backend_walletfeed.transactions.validation import is_valid_wallet_address

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)
    if not is_valid_wallet_address(settings.wallet_address) or not settings.helius_api_key:
        # Not fatal: poll ticks no-op and history returns [] until config is fixed
        logger.warning(
            "main_config_incomplete",
            wallet_configured=bool(settings.wallet_address),
            api_key_configured=bool(settings.helius_api_key),
        )

    from backend_walletfeed.api_server.app import app
    import uvicorn

    logger.info("main_server_starting", host=settings.api_host, port=settings.api_port)
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        # get_log_level() only yields names uvicorn also knows
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
