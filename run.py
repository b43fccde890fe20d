#!/usr/bin/env python3
"""
Application Entry Script.

Usage:
    python run.py --help
    python run.py --action server --verbose
    python run.py --action polling --debug
    python run.py --action webhook
    python run.py --action config
"""

import asyncio
import subprocess
import sys
from pathlib import Path

import click

# Ensure project root is in path for absolute imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from modules.backend.core.logging import get_logger, setup_logging


def validate_project_root() -> Path:
    """Validate that we're running from the project root."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(
            click.style("Error: .project_root not found. Run from project root.", fg="red"),
            err=True,
        )
        sys.exit(1)
    return PROJECT_ROOT


@click.command()
@click.option(
    "--action",
    type=click.Choice(["server", "polling", "webhook", "config", "info"]),
    default="info",
    help="Action to perform.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output (INFO level logging).")
@click.option("--debug", "-d", is_flag=True, help="Enable debug output (DEBUG level logging).")
@click.option("--host", default=None, help="Server host (for server action).")
@click.option("--port", default=None, type=int, help="Server port (for server action).")
@click.option("--reload", is_flag=True, help="Enable auto-reload (for server action).")
def main(
    action: str,
    verbose: bool,
    debug: bool,
    host: str | None,
    port: int | None,
    reload: bool,
) -> None:
    """
    Langflow relay bot.

    Run the webhook server, poll Telegram locally, register the webhook,
    or inspect configuration.

    Examples:

        # Start the webhook server
        python run.py --action server --verbose

        # Local development without a public URL
        python run.py --action polling --debug

        # Register the webhook for application.yaml public_url
        python run.py --action webhook
    """
    validate_project_root()

    if debug:
        log_level = "DEBUG"
    elif verbose:
        log_level = "INFO"
    else:
        log_level = "WARNING"

    setup_logging(level=log_level, format_type="console")
    logger = get_logger(__name__)

    logger.debug("Starting application", extra={"action": action, "log_level": log_level})

    if action == "server":
        run_server(logger, host, port, reload)
    elif action == "polling":
        run_polling(logger)
    elif action == "webhook":
        register_webhook(logger)
    elif action == "config":
        show_config(logger)
    elif action == "info":
        show_info(logger)


def run_server(logger, host: str | None, port: int | None, reload: bool) -> None:
    """Start the FastAPI server with uvicorn."""
    from modules.backend.core.config import get_app_config

    server = get_app_config().application.server
    server_host = host or server.host
    server_port = port or server.port

    logger.info(
        "Starting server",
        extra={"host": server_host, "port": server_port, "reload": reload},
    )

    cmd = [
        sys.executable, "-m", "uvicorn",
        "modules.backend.main:app",
        "--host", server_host,
        "--port", str(server_port),
    ]

    if reload:
        cmd.append("--reload")

    click.echo(f"Starting server at http://{server_host}:{server_port}")
    click.echo("Press Ctrl+C to stop\n")

    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info("Server stopped")
    except subprocess.CalledProcessError as e:
        logger.error("Server failed to start", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


def run_polling(logger) -> None:
    """Run the bot with long polling (drops any registered webhook)."""
    from modules.backend.gateway.security.startup_checks import run_startup_checks
    from modules.telegram.bot import cleanup_bot, create_bot, create_dispatcher

    run_startup_checks()

    async def _poll() -> None:
        bot = create_bot()
        dp = create_dispatcher(bot)
        await bot.delete_webhook(drop_pending_updates=False)
        logger.info("Polling started")
        try:
            await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
        finally:
            await cleanup_bot(bot, dp)

    click.echo("Polling Telegram. Press Ctrl+C to stop\n")
    try:
        asyncio.run(_poll())
    except KeyboardInterrupt:
        logger.info("Polling stopped")


def register_webhook(logger) -> None:
    """Register the webhook URL derived from public_url."""
    from modules.backend.core.config import get_public_base_url, get_settings
    from modules.telegram.bot import create_bot, create_dispatcher, setup_webhook
    from modules.telegram.webhook import get_webhook_url

    public_url = get_public_base_url()
    if not public_url:
        click.echo(click.style("public_url is not set in application.yaml", fg="red"), err=True)
        sys.exit(1)

    async def _register() -> None:
        bot = create_bot()
        try:
            dp = create_dispatcher(bot)
            await setup_webhook(
                bot, dp, get_webhook_url(public_url), get_settings().telegram_webhook_secret
            )
            info = await bot.get_webhook_info()
            click.echo(f"Webhook set -> {info.url}")
        finally:
            await bot.session.close()

    asyncio.run(_register())
    logger.info("Webhook registered")


def show_config(logger) -> None:
    """Display loaded configuration. Secrets are shown only as set/unset."""
    click.echo("Application Configuration:\n")

    try:
        from modules.backend.core.config import get_app_config, get_settings

        app_config = get_app_config()
        settings = get_settings()

        sections = {
            "Application (application.yaml)": app_config.application.model_dump(),
            "Langflow (langflow.yaml)": app_config.langflow.model_dump(),
            "Concurrency (concurrency.yaml)": app_config.concurrency.model_dump(),
            "Logging (logging.yaml)": app_config.logging.model_dump(),
        }
        for title, values in sections.items():
            click.echo(title)
            click.echo("-" * 40)
            _echo_mapping(values, indent=2)
            click.echo()

        click.echo("Secrets (.env)")
        click.echo("-" * 40)
        for name, value in settings.model_dump().items():
            state = click.style("set", fg="green") if value else click.style("unset", fg="yellow")
            click.echo(f"  {name.upper()}: {state}")

        logger.info("Configuration displayed successfully")

    except Exception as e:
        logger.error("Failed to load configuration", extra={"error": str(e)})
        click.echo(click.style(f"Error loading configuration: {e}", fg="red"))
        sys.exit(1)


def _echo_mapping(values: dict, indent: int) -> None:
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{' ' * indent}{key}:")
            _echo_mapping(value, indent + 2)
        else:
            click.echo(f"{' ' * indent}{key}: {value}")


def show_info(logger) -> None:
    """Display application information."""
    try:
        from modules.backend.core.config import get_app_config

        app = get_app_config().application
        click.echo(f"{app.name} {app.version}")
        click.echo("=" * 40)
        click.echo(app.description)
    except Exception:
        click.echo("langflow-relay")

    click.echo()
    click.echo("Available Actions:")
    click.echo("  --action server    Start the webhook server")
    click.echo("  --action polling   Poll Telegram (local development)")
    click.echo("  --action webhook   Register the Telegram webhook")
    click.echo("  --action config    Display configuration")
    click.echo("  --action info      Show this information")
    click.echo()
    click.echo("Logging Options:")
    click.echo("  --verbose, -v      Enable INFO level logging")
    click.echo("  --debug, -d        Enable DEBUG level logging")

    logger.debug("Info displayed")


if __name__ == "__main__":
    main()
