"""
Deskmate Backend — Health Check Route
=======================================

What:  Liveness and readiness endpoints for monitoring and load balancer probes.
How:   GET / answers without touching anything. GET /health runs SELECT 1
       through the request's database session and reports the result.
Who:   Called by Docker health checks, load balancers and monitoring systems.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from deskmate import __version__
from deskmate.database import get_db_session
from deskmate.schemas.common import HealthResponse, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get("/", response_model=MessageResponse, summary="Liveness probe")
async def root() -> MessageResponse:
    return MessageResponse(message="Deskmate API is running")


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> HealthResponse:
    """
    Check the database and report uptime.

    SELECT 1 is enough to prove the pool can hand out a working connection.
    """
    db_status = "connected"
    overall = "healthy"

    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        await db.rollback()
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
