"""
Telegram Bot Handlers.

Handler Organization:
- common.py: /start, /help
- relay.py: trigger-prefixed text relayed to Langflow

An aiogram Router attaches to a single parent, so every dispatcher gets
freshly built routers. The common router is included first so commands
never reach the relay.
"""

from aiogram import Router

from modules.telegram.handlers import common, relay

__all__ = [
    "get_all_routers",
]


def get_all_routers() -> list[Router]:
    """
    Build the routers to include in a new dispatcher.

    Returns:
        List of Router instances, in matching order
    """
    return [
        common.create_router(),
        relay.create_router(),
    ]
