"""
Disc Rescue Backend — Health Check Route
=========================================

What:  GET /health for uptime monitors and load balancer probes.
How:   Pings the database and reports whether the providers are configured.
       Providers are not called: a Twilio or Vision round-trip per probe would
       cost money and quota.

Status levels:
    - healthy:   Database reachable and Twilio configured
    - degraded:  Database reachable, Twilio not configured (webhooks will 403)
    - unhealthy: Database unreachable
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from app import __version__
from app.config import settings
from app.database import engine
from app.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

STARTED_AT = time.time()


async def database_status() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Health check: database unreachable: %s", str(e))
        return "disconnected"
    return "connected"


@router.get("/health", response_model=HealthResponse, summary="Database and provider status")
async def health_check() -> HealthResponse:
    database = await database_status()
    twilio_ready = bool(
        settings.twilio_account_sid and settings.twilio_auth_token and settings.twilio_send_from
    )

    if database != "connected":
        status = "unhealthy"
    elif not twilio_ready:
        status = "degraded"
    else:
        status = "healthy"

    return HealthResponse(
        status=status,
        version=__version__,
        database=database,
        messaging="configured" if twilio_ready else "not_configured",
        vision="service_account" if settings.google_application_credentials else "default_credentials",
        uptime_seconds=round(time.time() - STARTED_AT, 2),
    )
