"""Ingest bank statements, crypto holdings and manual expense logs."""

__version__ = "0.3.0"
