"""Unit tests for per-user logging context."""

import structlog

from paperfeed.observability import bind_user_context, clear_user_context


class TestUserContext:
    """Tests for bind_user_context and clear_user_context."""

    def test_bind_and_clear(self) -> None:
        """Test the user ID is bound to and removed from the context."""
        bind_user_context("user-42")
        assert structlog.contextvars.get_contextvars()["user_id"] == "user-42"

        clear_user_context()
        assert "user_id" not in structlog.contextvars.get_contextvars()

    def test_clear_without_bind(self) -> None:
        clear_user_context()
        assert "user_id" not in structlog.contextvars.get_contextvars()
