"""Utility functions."""

from .logging import setup_logging, get_logger, JsonLineFormatter

__all__ = [
    "setup_logging",
    "get_logger",
    "JsonLineFormatter",
]
