"""Atomic on-disk persistence for OAuth tokens."""

__version__ = "0.1.0"
