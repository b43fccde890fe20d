"""
Root Pytest Fixtures.

Shared fixtures available to all test types.
"""

from collections.abc import Generator

import pytest

from modules.backend.core.concurrency import reset_conversation_gate
from modules.backend.core.config import get_app_config, get_settings


@pytest.fixture(autouse=True)
def _fresh_process_state() -> Generator[None, None, None]:
    """Clear cached configuration and the shared conversation gate around each test."""
    get_settings.cache_clear()
    get_app_config.cache_clear()
    reset_conversation_gate()
    yield
    get_settings.cache_clear()
    get_app_config.cache_clear()
    reset_conversation_gate()
