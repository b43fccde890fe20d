"""
Health Check Endpoints.

Endpoints:
- / and /healthz: Plain "OK" for platform health probes
- /health: Liveness check (JSON)
- /health/detailed: Application info and in-flight conversation count
"""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from modules.backend.core.logging import get_logger

router = APIRouter()
logger = get_logger(__name__)


@router.get("/", response_class=PlainTextResponse)
@router.get("/healthz", response_class=PlainTextResponse)
async def probe() -> str:
    """Process is up. Used by hosting platform health checks."""
    return "OK"


@router.get("/health")
async def health_check() -> dict[str, str]:
    """
    Liveness check.

    Returns 200 if the process is running. No dependency checks.
    """
    return {"status": "healthy"}


@router.get("/health/detailed")
async def detailed_health_check(request: Request) -> dict[str, Any]:
    """
    Application identity, webhook mode and conversation gate usage.

    The gate is the one the running dispatcher submits through, published
    on app.state by the lifespan. Outside a running application the
    in-flight count is null.
    """
    try:
        from modules.backend.core.config import get_app_config

        app_settings = get_app_config().application
        app_info: dict[str, Any] = {
            "name": app_settings.name,
            "env": app_settings.environment,
            "version": app_settings.version,
            "webhook_registered": bool(app_settings.public_url),
        }
    except Exception as e:
        logger.warning("Could not load application config", extra={"error": str(e)})
        app_info = {"status": "not_configured"}

    gate = getattr(request.app.state, "conversation_gate", None)
    in_flight = gate.active_count() if gate is not None else None

    return {
        "status": "healthy",
        "application": app_info,
        "conversations_in_flight": in_flight,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
