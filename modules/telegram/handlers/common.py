"""
Common Handlers.

/start and /help: explain how to address the bot.
"""

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from modules.backend.core.logging import get_logger
from modules.telegram.intake import IntakePolicy
from modules.telegram.replies import welcome_text

logger = get_logger(__name__)


async def cmd_start(message: Message, intake_policy: IntakePolicy) -> None:
    """Send the usage hint naming the trigger words."""
    await message.answer(welcome_text(intake_policy.matcher.trigger_words))

    logger.info(
        "User started bot",
        extra={
            "chat_id": message.chat.id,
            "user_id": message.from_user.id if message.from_user else None,
        },
    )


def create_router() -> Router:
    """Router for /start and /help. A new instance per dispatcher."""
    router = Router(name="common")
    router.message.register(cmd_start, CommandStart())
    router.message.register(cmd_start, Command("help"))
    return router
