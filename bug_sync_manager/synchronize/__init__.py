"""Sentry to Linear synchronization workflows."""
