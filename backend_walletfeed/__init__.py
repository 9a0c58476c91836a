"""
Backend Wallet Feed — transaction ingestion for a single Solana wallet.

Polls the Helius enhanced-transactions API on a fixed cadence, normalizes
raw records into a stable schema, and serves on-demand history over HTTP.
Modular layout: fetcher, validation/normalizer, orchestrator, API server.
"""

__version__ = "0.1.0"
