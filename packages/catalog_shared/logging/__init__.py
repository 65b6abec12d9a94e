"""Structured logging for catalog components."""

from .config import JsonLineFormatter, PlainFormatter, configure_logging
from .context import bind_context, clear_context, get_context, log_context

__all__ = [
    "JsonLineFormatter",
    "PlainFormatter",
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_context",
    "log_context",
]
