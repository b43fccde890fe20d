"""
FastAPI Application Entry Point.

Serves the health endpoints and the Telegram webhook. On startup the bot
is created and, when public_url is configured, its webhook is registered.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from modules.backend.api import health
from modules.backend.core.config import get_app_config, get_public_base_url, get_settings
from modules.backend.core.logging import get_logger, setup_logging

logger = get_logger(__name__)

_app: FastAPI | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    from modules.backend.core.concurrency import reset_conversation_gate
    from modules.backend.gateway.security.startup_checks import run_startup_checks
    from modules.telegram.bot import cleanup_bot, get_bot, get_dispatcher, setup_webhook
    from modules.telegram.webhook import get_webhook_url

    app_config = get_app_config()
    setup_logging()
    run_startup_checks()

    bot = get_bot()
    dp = get_dispatcher()
    app.state.conversation_gate = dp["flow_dispatcher"].gate

    logger.info(
        "Application starting",
        extra={
            "app_name": app_config.application.name,
            "env": app_config.application.environment,
        },
    )

    public_url = get_public_base_url()
    if public_url:
        await setup_webhook(
            bot,
            dp,
            get_webhook_url(public_url),
            get_settings().telegram_webhook_secret,
        )
    else:
        logger.warning("public_url not set; set it and restart to register the webhook")

    yield

    logger.info("Application shutting down")
    await cleanup_bot(bot, dp)
    app.state.conversation_gate = None
    reset_conversation_gate()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app_settings = get_app_config().application

    app = FastAPI(
        title=app_settings.name,
        description=app_settings.description,
        version=app_settings.version,
        docs_url="/docs" if app_settings.debug else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.include_router(health.router, tags=["health"])
    _mount_telegram(app)

    return app


def _mount_telegram(app: FastAPI) -> None:
    """Mount the Telegram webhook route."""
    from modules.telegram.bot import get_bot, get_dispatcher
    from modules.telegram.webhook import get_webhook_router

    try:
        app.include_router(get_webhook_router(get_bot(), get_dispatcher()))
    except Exception as e:
        logger.error("Failed to mount Telegram webhook", extra={"error": str(e)})
        raise


def get_app() -> FastAPI:
    """
    Get the application instance (lazy initialization).

    Use this instead of importing `app` directly to avoid
    import-time configuration errors.
    """
    global _app
    if _app is None:
        _app = create_app()
    return _app


# For uvicorn: `uvicorn modules.backend.main:app`
def __getattr__(name: str) -> FastAPI:
    """Support lazy access to `app` for uvicorn compatibility."""
    if name == "app":
        return get_app()
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
