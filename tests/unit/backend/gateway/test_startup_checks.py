"""Unit tests for startup validation."""

from unittest.mock import MagicMock, patch

import pytest

from modules.backend.core.exceptions import ConfigurationError
from modules.backend.gateway.security.startup_checks import StartupCheckError, run_startup_checks


def _settings(token: str = "123:abc", secret: str = "s3cret_token-1") -> MagicMock:
    settings = MagicMock()
    settings.telegram_bot_token = token
    settings.telegram_webhook_secret = secret
    return settings


def _app_config(base_url: str = "https://langflow.example.com", flow_id: str = "flow-1") -> MagicMock:
    config = MagicMock()
    config.langflow.base_url = base_url
    config.langflow.flow_id = flow_id
    config.application.public_url = "https://bot.example.com"
    config.application.environment = "test"
    return config


def _run(settings: MagicMock, app_config: MagicMock) -> None:
    module = "modules.backend.gateway.security.startup_checks"
    with patch(f"{module}.get_settings", return_value=settings), patch(
        f"{module}.get_app_config", return_value=app_config
    ):
        run_startup_checks()


class TestRunStartupChecks:
    def test_passes_with_complete_config(self):
        _run(_settings(), _app_config())

    def test_empty_secret_is_allowed(self):
        _run(_settings(secret=""), _app_config())

    def test_missing_token(self):
        with pytest.raises(StartupCheckError, match="TELEGRAM_BOT_TOKEN"):
            _run(_settings(token=""), _app_config())

    @pytest.mark.parametrize("secret", ["has space", "slash/inside", "x" * 257, "пароль"])
    def test_rejects_secret_telegram_would_refuse(self, secret):
        with pytest.raises(StartupCheckError, match="TELEGRAM_WEBHOOK_SECRET"):
            _run(_settings(secret=secret), _app_config())

    @pytest.mark.parametrize("base_url", ["", "   ", "langflow:7860", "ftp://langflow"])
    def test_rejects_bad_base_url(self, base_url):
        with pytest.raises(StartupCheckError, match="base_url"):
            _run(_settings(), _app_config(base_url=base_url))

    def test_missing_flow_id(self):
        with pytest.raises(StartupCheckError, match="flow_id"):
            _run(_settings(), _app_config(flow_id=""))

    def test_reports_every_failure(self):
        with pytest.raises(StartupCheckError) as exc_info:
            _run(_settings(token=""), _app_config(base_url="", flow_id=""))

        assert "3 check(s) failed" in exc_info.value.message
        assert isinstance(exc_info.value, ConfigurationError)
