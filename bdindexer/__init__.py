"""Blockchain indexer row types, SQLite validator store and HTTP actions worker."""

__version__ = "0.1.0"