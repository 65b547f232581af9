"""Configuration loading, migration and the command line interface."""
