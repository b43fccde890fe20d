"""
Telegram Bot Middlewares.

Access control and busy gating live in the relay pipeline, not here:
a denial must only be sent for messages addressed to the bot.
"""

from typing import TYPE_CHECKING

from modules.telegram.middlewares.logging import LoggingMiddleware

if TYPE_CHECKING:
    from aiogram import Dispatcher

__all__ = [
    "LoggingMiddleware",
    "setup_middlewares",
]


def setup_middlewares(dp: "Dispatcher") -> None:
    """Register middlewares on the dispatcher (outer: runs on every update)."""
    dp.update.outer_middleware(LoggingMiddleware())
