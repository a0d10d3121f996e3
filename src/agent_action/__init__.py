"""Automation glue that runs an AI coding assistant on GitHub events."""

__version__ = "0.1.0"
