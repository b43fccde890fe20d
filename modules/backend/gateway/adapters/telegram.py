"""
Telegram Channel Adapter.

Sends replies through the aiogram Bot: chunked to Telegram's message limit,
threaded under the triggering message and kept in its forum topic.
"""

from typing import TYPE_CHECKING

from aiogram.exceptions import TelegramAPIError, TelegramBadRequest
from aiogram.types import ReplyParameters

from modules.backend.core.logging import get_logger
from modules.backend.gateway.adapters.base import ChannelAdapter, OutboundReply

if TYPE_CHECKING:
    from aiogram import Bot

logger = get_logger(__name__)

TELEGRAM_MAX_MESSAGE_LENGTH = 4096


class TelegramAdapter(ChannelAdapter):
    """
    Telegram channel adapter.

    When Telegram rejects a rich-text chunk (unbalanced markup from the
    flow's answer), the chunk is sent again as plain text.
    """

    def __init__(self, bot: "Bot") -> None:
        self._bot = bot

    @property
    def channel_name(self) -> str:
        return "telegram"

    @property
    def max_message_length(self) -> int:
        return TELEGRAM_MAX_MESSAGE_LENGTH

    async def deliver(self, reply: OutboundReply) -> bool:
        chunks = self.chunk_message(reply.text)
        try:
            for index, chunk in enumerate(chunks):
                # Only the first chunk quotes the triggering message
                reply_parameters = None
                if index == 0 and reply.reply_to_message_id is not None:
                    reply_parameters = ReplyParameters(
                        message_id=reply.reply_to_message_id,
                        allow_sending_without_reply=True,
                    )
                await self._send_chunk(reply, chunk, reply_parameters)

        except TelegramAPIError as e:
            logger.error(
                "Failed to deliver Telegram reply",
                extra={"chat_id": reply.chat_id, "error": str(e)},
            )
            return False

        logger.debug(
            "Telegram reply delivered",
            extra={
                "chat_id": reply.chat_id,
                "chunks": len(chunks),
                "total_length": len(reply.text),
            },
        )
        return True

    async def _send_chunk(
        self,
        reply: OutboundReply,
        text: str,
        reply_parameters: ReplyParameters | None,
    ) -> None:
        try:
            await self._bot.send_message(
                chat_id=reply.chat_id,
                text=text,
                message_thread_id=reply.thread_id,
                reply_parameters=reply_parameters,
                parse_mode=reply.parse_mode,
            )
        except TelegramBadRequest as e:
            if reply.parse_mode is None:
                raise
            logger.warning(
                "Rich-text reply rejected, resending as plain text",
                extra={"chat_id": reply.chat_id, "parse_mode": reply.parse_mode, "error": str(e)},
            )
            await self._bot.send_message(
                chat_id=reply.chat_id,
                text=text,
                message_thread_id=reply.thread_id,
                reply_parameters=reply_parameters,
                parse_mode=None,
            )
