"""Core configuration, errors and shared utilities."""
