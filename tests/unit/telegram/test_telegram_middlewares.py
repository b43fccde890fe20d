"""
Unit tests for Telegram bot middlewares.

Tests the update logging middleware.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import structlog
from aiogram.types import Update

from modules.telegram.middlewares.logging import LoggingMiddleware


def _create_mock_update(text: str | None = "чат привіт", thread_id: int | None = None) -> MagicMock:
    """Create a mock Update object that passes isinstance checks."""
    user = MagicMock()
    user.id = 7
    user.username = "olena"

    message = MagicMock()
    message.chat.id = 42
    message.chat.type = "group"
    message.message_thread_id = thread_id
    message.from_user = user
    message.text = text

    event = MagicMock(spec=Update)
    event.update_id = 555
    event.event_type = "message"
    event.message = message
    event.edited_message = None
    return event


class TestLoggingMiddleware:
    """Tests for LoggingMiddleware."""

    @pytest.mark.asyncio
    async def test_passes_through_result(self):
        middleware = LoggingMiddleware()
        handler = AsyncMock(return_value="result")
        event = _create_mock_update()

        result = await middleware(handler, event, {"key": "value"})

        assert result == "result"
        handler.assert_awaited_once_with(event, {"key": "value"})

    @pytest.mark.asyncio
    async def test_logs_update_context(self):
        middleware = LoggingMiddleware()
        handler = AsyncMock()

        with patch("modules.telegram.middlewares.logging.log_with_source") as mock_log:
            await middleware(handler, _create_mock_update(thread_id=9), {})

        received = mock_log.call_args_list[0]
        assert received.args[1:4] == ("telegram", "info", "Telegram update received")
        assert received.kwargs["update_id"] == 555
        assert received.kwargs["chat_id"] == 42
        assert received.kwargs["thread_id"] == 9
        assert received.kwargs["user_id"] == 7
        assert received.kwargs["text_preview"] == "чат привіт"

    @pytest.mark.asyncio
    async def test_long_text_is_truncated(self):
        middleware = LoggingMiddleware()

        with patch("modules.telegram.middlewares.logging.log_with_source") as mock_log:
            await middleware(AsyncMock(), _create_mock_update(text="ж" * 80), {})

        preview = mock_log.call_args_list[0].kwargs["text_preview"]
        assert preview == "ж" * 50 + "..."

    @pytest.mark.asyncio
    async def test_command_is_logged_instead_of_preview(self):
        middleware = LoggingMiddleware()

        with patch("modules.telegram.middlewares.logging.log_with_source") as mock_log:
            await middleware(AsyncMock(), _create_mock_update(text="/start now"), {})

        context = mock_log.call_args_list[0].kwargs
        assert context["command"] == "/start"
        assert "text_preview" not in context

    @pytest.mark.asyncio
    async def test_logs_and_reraises_errors(self):
        middleware = LoggingMiddleware()
        handler = AsyncMock(side_effect=ValueError("boom"))

        with patch("modules.telegram.middlewares.logging.log_with_source") as mock_log:
            with pytest.raises(ValueError, match="boom"):
                await middleware(handler, _create_mock_update(), {})

        error_call = mock_log.call_args_list[-1]
        assert error_call.args[2] == "error"
        assert error_call.kwargs["error_type"] == "ValueError"
        assert "elapsed_ms" in error_call.kwargs

    @pytest.mark.asyncio
    async def test_non_update_event_has_no_context(self):
        middleware = LoggingMiddleware()

        with patch("modules.telegram.middlewares.logging.log_with_source") as mock_log:
            await middleware(AsyncMock(), MagicMock(), {})

        assert mock_log.call_args_list[0].kwargs == {}

    @pytest.mark.asyncio
    async def test_binds_update_id_while_handling(self):
        middleware = LoggingMiddleware()
        seen: dict = {}

        async def handler(event, data):
            seen.update(structlog.contextvars.get_contextvars())

        await middleware(handler, _create_mock_update(), {})

        assert seen["update_id"] == 555
        assert "update_id" not in structlog.contextvars.get_contextvars()
