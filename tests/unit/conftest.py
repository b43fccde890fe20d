"""
Unit Test Fixtures.

Fixtures for unit tests - all external dependencies are mocked.
The Langflow API is replaced with httpx.MockTransport, Telegram objects
with MagicMock.
"""

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from modules.backend.core.concurrency import ConversationGate
from modules.backend.services.langflow import LangflowClient


class ManualClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def gate(clock: ManualClock) -> ConversationGate:
    """Gate with a 120 second lease on a manual clock."""
    return ConversationGate(lease_seconds=120, clock=clock)


@pytest.fixture
def make_langflow_client() -> Callable[..., LangflowClient]:
    """
    Build a LangflowClient whose HTTP traffic goes to ``handler``.

    Usage:
        def test_x(make_langflow_client):
            client = make_langflow_client(lambda request: httpx.Response(200, json={}))
    """

    def _make(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any) -> LangflowClient:
        options: dict[str, Any] = {
            "base_url": "https://langflow.example.com/",
            "flow_id": "flow-123",
        }
        options.update(kwargs)
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return LangflowClient(http_client=http_client, **options)

    return _make


@pytest.fixture
def mock_message() -> Callable[..., MagicMock]:
    """
    Build a MagicMock aiogram Message.

    Usage:
        message = mock_message("чат привіт", chat_id=42, user_id=7)
    """

    def _make(
        text: str | None,
        chat_id: int = 42,
        user_id: int = 7,
        message_id: int = 100,
        thread_id: int | None = None,
        first_name: str | None = "Олена",
        last_name: str | None = None,
        username: str | None = "olena",
    ) -> MagicMock:
        user = MagicMock()
        user.id = user_id
        user.first_name = first_name
        user.last_name = last_name
        user.username = username

        message = MagicMock()
        message.text = text
        message.chat.id = chat_id
        message.chat.type = "group"
        message.from_user = user
        message.message_id = message_id
        message.message_thread_id = thread_id
        message.answer = AsyncMock()
        return message

    return _make
