"""
Logging Middleware.

Logs every incoming Telegram update with chat and sender context and the
time spent handling it.
"""

import time
from typing import Any, Awaitable, Callable

import structlog
from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Update

from modules.backend.core.logging import get_logger, log_with_source

logger = get_logger(__name__)

_TEXT_PREVIEW_CHARS = 50


class LoggingMiddleware(BaseMiddleware):
    """
    Middleware for logging all Telegram updates.

    Usage:
        dp.update.outer_middleware(LoggingMiddleware())
    """

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        start_time = time.perf_counter()
        context = self._extract_context(event)

        log_with_source(logger, "telegram", "info", "Telegram update received", **context)

        try:
            # Every record emitted while handling carries the update id
            with structlog.contextvars.bound_contextvars(update_id=context.get("update_id")):
                result = await handler(event, data)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            log_with_source(
                logger,
                "telegram",
                "error",
                "Telegram update processing error",
                error=str(e),
                error_type=type(e).__name__,
                elapsed_ms=round(elapsed_ms, 2),
                **context,
            )
            raise

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        log_with_source(
            logger,
            "telegram",
            "debug",
            "Telegram update processed",
            elapsed_ms=round(elapsed_ms, 2),
            **context,
        )
        return result

    def _extract_context(self, event: TelegramObject) -> dict[str, Any]:
        """Pull update id, chat, sender and a text preview out of the event."""
        context: dict[str, Any] = {}

        if not isinstance(event, Update):
            return context

        context["update_id"] = event.update_id
        context["update_type"] = event.event_type

        msg = event.message or event.edited_message
        if msg is None:
            return context

        context["chat_id"] = msg.chat.id
        context["chat_type"] = msg.chat.type
        if msg.message_thread_id is not None:
            context["thread_id"] = msg.message_thread_id
        if msg.from_user:
            context["user_id"] = msg.from_user.id
            context["username"] = msg.from_user.username
        if msg.text:
            if msg.text.startswith("/"):
                context["command"] = msg.text.split()[0]
            elif len(msg.text) > _TEXT_PREVIEW_CHARS:
                context["text_preview"] = msg.text[:_TEXT_PREVIEW_CHARS] + "..."
            else:
                context["text_preview"] = msg.text

        return context
