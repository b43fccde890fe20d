"""
Integration Test Fixtures.

Wires the real aiogram Dispatcher, handlers, conversation gate and Langflow
client together. Only the network edges are replaced: Langflow with
httpx.MockTransport and Telegram's send_message with an AsyncMock.
"""

import asyncio
import json
from collections.abc import AsyncGenerator, Callable
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from aiogram import Bot, Dispatcher
from aiogram.types import Update

from modules.backend.core.concurrency import ConversationGate
from modules.backend.services.dispatcher import FlowDispatcher
from modules.backend.services.langflow import LangflowClient
from modules.telegram.bot import create_dispatcher

TEST_TOKEN = "123456:TEST-token"


def _echo(payload: dict[str, Any]) -> httpx.Response:
    text = f"echo: {payload['input_value']}"
    return httpx.Response(
        200,
        json={
            "outputs": [
                {"component_name": "ChatOutput", "outputs": [{"results": {"message": {"text": text}}}]}
            ]
        },
    )


class FakeLangflow:
    """
    Records run requests and answers them from ``respond``.

    While ``hold`` is set, requests wait for it before answering; ``entered``
    fires once a request has arrived.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.respond: Callable[[dict[str, Any]], httpx.Response] = _echo
        self.hold: asyncio.Event | None = None
        self.entered = asyncio.Event()

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.entered.set()
        if self.hold is not None:
            await self.hold.wait()
        return self.respond(json.loads(request.content))

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture
def langflow() -> FakeLangflow:
    return FakeLangflow()


@pytest_asyncio.fixture
async def bot() -> AsyncGenerator[Bot, None]:
    bot = Bot(token=TEST_TOKEN)
    bot.send_message = AsyncMock()
    yield bot
    await bot.session.close()


@pytest_asyncio.fixture
async def relay(bot: Bot, langflow: FakeLangflow) -> AsyncGenerator[Dispatcher, None]:
    """Dispatcher as the application builds it, pointed at the fake Langflow."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(langflow))
    client = LangflowClient(
        base_url="https://langflow.example.com",
        flow_id="flow-123",
        http_client=http_client,
    )
    dp = create_dispatcher(bot, flow_dispatcher=FlowDispatcher(client, ConversationGate(lease_seconds=120)))
    yield dp
    await http_client.aclose()


@pytest.fixture
def make_update(bot: Bot) -> Callable[..., Update]:
    """
    Build a group-chat text Update bound to the test bot.

    Usage:
        update = make_update("Кріш як твій настрій", chat_id=-100500)
    """
    counter = iter(range(1, 10_000))

    def _make(text: str, chat_id: int = -100500, user_id: int = 7, message_id: int = 100) -> Update:
        update_id = next(counter)
        return Update.model_validate(
            {
                "update_id": update_id,
                "message": {
                    "message_id": message_id,
                    "date": 1700000000,
                    "chat": {"id": chat_id, "type": "supergroup", "title": "Тест"},
                    "from": {"id": user_id, "is_bot": False, "first_name": "Олена", "username": "olena"},
                    "text": text,
                },
            },
            context={"bot": bot},
        )

    return _make
