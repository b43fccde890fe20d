"""
Telegram Bot Module.

aiogram v3 bot that relays trigger-prefixed messages to a Langflow flow,
running in webhook mode inside the FastAPI application (or long polling
for local development).

Structure:
    modules/telegram/
    ├── __init__.py          # This file
    ├── bot.py               # Bot and dispatcher setup
    ├── webhook.py           # Webhook endpoint for FastAPI
    ├── intake.py            # Trigger matching, "id" diagnostic, allow-lists
    ├── replies.py           # Fixed reply texts
    ├── handlers/
    │   ├── common.py        # /start, /help
    │   └── relay.py         # Text → Langflow → reply
    └── middlewares/
        └── logging.py       # Update logging

Environment Variables:
    TELEGRAM_BOT_TOKEN: Bot token from BotFather
    TELEGRAM_WEBHOOK_SECRET: Secret appended to the webhook path and
        checked in the X-Telegram-Bot-Api-Secret-Token header
"""

from modules.telegram.bot import create_bot, create_dispatcher, get_bot, get_dispatcher

__all__ = [
    "create_bot",
    "create_dispatcher",
    "get_bot",
    "get_dispatcher",
]
