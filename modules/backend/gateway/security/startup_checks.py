"""
Startup Validation.

Checks that the settings the relay cannot run without are present before
the application accepts traffic. If any check fails, the application
refuses to start with a clear error message.

Called during FastAPI lifespan initialization and by run.py.
"""

import re

from modules.backend.core.config import get_app_config, get_settings
from modules.backend.core.exceptions import ConfigurationError
from modules.backend.core.logging import get_logger

logger = get_logger(__name__)

# Characters Telegram accepts in a webhook secret_token
_SECRET_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]{1,256}$")


class StartupCheckError(ConfigurationError):
    """Raised when a startup check fails."""

    pass


def run_startup_checks() -> None:
    """
    Validate required configuration at startup.

    Raises:
        StartupCheckError: If any check fails
    """
    app_config = get_app_config()
    settings = get_settings()

    errors: list[str] = []

    _check_telegram(settings, errors)
    _check_langflow(app_config, errors)

    if errors:
        for error in errors:
            logger.error("Startup check failed", extra={"check": error})
        raise StartupCheckError(
            f"Startup blocked: {len(errors)} check(s) failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )

    if not app_config.application.public_url:
        logger.warning("public_url not set; webhook will not be registered")

    logger.info(
        "Startup checks passed",
        extra={"environment": app_config.application.environment},
    )


def _check_telegram(settings, errors: list[str]) -> None:
    if not settings.telegram_bot_token:
        errors.append("TELEGRAM_BOT_TOKEN is empty")

    secret = settings.telegram_webhook_secret
    if secret and not _SECRET_TOKEN_RE.match(secret):
        errors.append(
            "TELEGRAM_WEBHOOK_SECRET may only contain A-Z, a-z, 0-9, '_' and '-' "
            "(1-256 characters)"
        )


def _check_langflow(app_config, errors: list[str]) -> None:
    langflow = app_config.langflow
    if not langflow.base_url.strip():
        errors.append("langflow.base_url is empty")
    elif not langflow.base_url.startswith(("http://", "https://")):
        errors.append(f"langflow.base_url must be an http(s) URL, got {langflow.base_url!r}")

    if not langflow.flow_id.strip():
        errors.append("langflow.flow_id is empty")
