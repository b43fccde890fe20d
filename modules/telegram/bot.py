"""
Bot and Dispatcher Configuration.

Creates and configures the aiogram Bot and Dispatcher instances.
Uses lazy initialization to prevent import-time failures.

Handler dependencies are placed in the dispatcher's workflow data, so
handlers receive them as keyword arguments:
    intake_policy      - IntakePolicy (trigger words, allow-lists)
    flow_dispatcher    - FlowDispatcher (Langflow client + conversation gate)
    channel_adapter    - TelegramAdapter used to deliver replies
    answer_parse_mode  - parse mode for flow answers (None for plain text)
"""

from typing import TYPE_CHECKING

from modules.backend.core.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from aiogram import Bot, Dispatcher

    from modules.backend.services.dispatcher import FlowDispatcher
    from modules.telegram.intake import IntakePolicy

# Module-level state for lazy initialization
_bot: "Bot | None" = None
_dispatcher: "Dispatcher | None" = None


def create_bot() -> "Bot":
    """
    Create the aiogram Bot instance.

    Answers from the flow are free text, so no default parse mode is set.

    Raises:
        RuntimeError: If TELEGRAM_BOT_TOKEN is not configured
    """
    from aiogram import Bot

    from modules.backend.core.config import get_settings

    settings = get_settings()

    if not settings.telegram_bot_token:
        raise RuntimeError(
            "TELEGRAM_BOT_TOKEN not configured. "
            "Set TELEGRAM_BOT_TOKEN environment variable or configure it in config/.env"
        )

    bot = Bot(token=settings.telegram_bot_token)

    logger.info("Telegram bot created")
    return bot


def create_dispatcher(
    bot: "Bot",
    flow_dispatcher: "FlowDispatcher | None" = None,
    intake_policy: "IntakePolicy | None" = None,
) -> "Dispatcher":
    """
    Create the aiogram Dispatcher with routers, middlewares and handler data.

    Args:
        bot: Bot used by the reply adapter
        flow_dispatcher: Defaults to one built from langflow.yaml
        intake_policy: Defaults to one built from application.yaml
    """
    from aiogram import Dispatcher

    from modules.backend.core.config import get_app_config
    from modules.backend.gateway.adapters.telegram import TelegramAdapter
    from modules.backend.services.dispatcher import FlowDispatcher
    from modules.backend.services.langflow import LangflowClient
    from modules.telegram.handlers import get_all_routers
    from modules.telegram.intake import IntakePolicy
    from modules.telegram.middlewares import setup_middlewares

    if flow_dispatcher is None:
        flow_dispatcher = FlowDispatcher(LangflowClient.from_config())
    if intake_policy is None:
        intake_policy = IntakePolicy.from_config()

    dp = Dispatcher(
        intake_policy=intake_policy,
        flow_dispatcher=flow_dispatcher,
        channel_adapter=TelegramAdapter(bot),
        answer_parse_mode=get_app_config().application.telegram.answer_parse_mode,
    )

    setup_middlewares(dp)

    for router in get_all_routers():
        dp.include_router(router)

    logger.info(
        "Telegram dispatcher created",
        extra={
            "trigger_words": list(intake_policy.matcher.trigger_words),
            "access_open": intake_policy.access.is_open,
        },
    )
    return dp


def get_bot() -> "Bot":
    """Get or create the Bot instance (lazy initialization)."""
    global _bot
    if _bot is None:
        _bot = create_bot()
    return _bot


def get_dispatcher() -> "Dispatcher":
    """Get or create the Dispatcher instance (lazy initialization)."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = create_dispatcher(get_bot())
    return _dispatcher


async def setup_webhook(bot: "Bot", dp: "Dispatcher", webhook_url: str, secret_token: str) -> None:
    """
    Register the webhook with Telegram.

    Args:
        bot: Bot instance
        dp: Dispatcher whose handlers decide the allowed update types
        webhook_url: Full public webhook URL
        secret_token: Echoed back by Telegram in X-Telegram-Bot-Api-Secret-Token
    """
    await bot.set_webhook(
        url=webhook_url,
        secret_token=secret_token or None,
        allowed_updates=dp.resolve_used_update_types(),
    )
    logger.info("Webhook configured", extra={"webhook_url": webhook_url})


async def cleanup_bot(bot: "Bot", dp: "Dispatcher | None" = None) -> None:
    """
    Release bot resources on shutdown.

    The webhook is left registered so a restarting instance keeps
    receiving updates.
    """
    if dp is not None:
        flow_dispatcher = dp.workflow_data.get("flow_dispatcher")
        if flow_dispatcher is not None:
            await flow_dispatcher.client.aclose()
    await bot.session.close()
    logger.info("Bot session closed")


def reset_bot_state() -> None:
    """Forget the lazily created Bot and Dispatcher."""
    global _bot, _dispatcher
    _bot = None
    _dispatcher = None
