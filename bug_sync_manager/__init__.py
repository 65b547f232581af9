"""Sync bugs from Sentry instances into Linear instances."""

__version__ = "0.1.0"
