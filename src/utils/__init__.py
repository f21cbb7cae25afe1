"""Utility functions."""

from src.utils.activity import log_activity

__all__ = [
    "log_activity",
]
