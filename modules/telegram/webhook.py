"""
Webhook Endpoint for Telegram Bot.

Provides FastAPI router for handling Telegram webhook requests.

The webhook secret protects the endpoint twice: it is part of the URL path
({webhook_path}/{secret}) and Telegram echoes it in the
X-Telegram-Bot-Api-Secret-Token header, which is compared in constant time.
"""

import hmac
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, Response

from modules.backend.core.config import get_app_config, get_settings
from modules.backend.core.logging import get_logger

if TYPE_CHECKING:
    from aiogram import Bot, Dispatcher

logger = get_logger(__name__)

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


def get_webhook_path() -> str:
    """Webhook path with the shared secret appended when one is configured."""
    base_path = get_app_config().application.telegram.webhook_path.rstrip("/") or "/telegram"
    secret = get_settings().telegram_webhook_secret
    return f"{base_path}/{secret}" if secret else base_path


def get_webhook_router(bot: "Bot", dp: "Dispatcher") -> APIRouter:
    """
    Create a FastAPI router for handling Telegram webhook requests.

    Args:
        bot: aiogram Bot instance
        dp: aiogram Dispatcher instance

    Returns:
        FastAPI APIRouter with webhook endpoint
    """
    from aiogram.types import Update

    router = APIRouter(tags=["telegram"])

    webhook_path = get_webhook_path()
    webhook_secret = get_settings().telegram_webhook_secret

    @router.post(webhook_path)
    async def telegram_webhook(request: Request) -> Response:
        """Validate the secret header and feed the update to the dispatcher."""
        if webhook_secret:
            secret_header = request.headers.get(SECRET_HEADER)
            if not secret_header or not hmac.compare_digest(secret_header, webhook_secret):
                logger.warning(
                    "Invalid webhook secret token",
                    extra={"client_ip": request.client.host if request.client else None},
                )
                return Response(status_code=403)

        try:
            update_data = await request.json()
            update = Update.model_validate(update_data, context={"bot": bot})
            await dp.feed_update(bot, update)

        except Exception as e:
            logger.error(
                "Error processing Telegram update",
                extra={"error": str(e)},
                exc_info=True,
            )

        # Always 200 so Telegram does not redeliver the update
        return Response(status_code=200)

    return router


def get_webhook_url(base_url: str) -> str:
    """
    Construct the full webhook URL.

    Args:
        base_url: Public base URL of the application (e.g., https://example.com)
    """
    return f"{base_url.rstrip('/')}{get_webhook_path()}"
