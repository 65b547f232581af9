"""Sentry (source) API client."""
