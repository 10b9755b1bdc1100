"""Utility modules for logging and helpers."""

from .logging import setup_logging
from .timeutil import now_ms

__all__ = ["setup_logging", "now_ms"]
