"""Shared household expense ledger with receipt QR scanning."""

__version__ = "0.1.0"
