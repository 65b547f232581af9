"""Pydantic schemas for the configuration document and API payloads."""
