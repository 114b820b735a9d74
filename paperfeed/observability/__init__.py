"""Structured logging for paperfeed."""

from paperfeed.observability.logging import (
    bind_user_context,
    clear_user_context,
    configure_logging,
    get_logger,
)


__all__ = [
    "bind_user_context",
    "clear_user_context",
    "configure_logging",
    "get_logger",
]
