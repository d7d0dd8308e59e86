"""
EventHub Backend — Health Check Route
=======================================

What:  Health endpoint for monitoring and load balancer probes.
How:   Pings MongoDB and reports overall status plus uptime.
Who:   Docker health checks, load balancers, monitoring.

Status levels:
    - healthy:   MongoDB answered the ping (HTTP 200)
    - unhealthy: MongoDB unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response

from eventhub import __version__
from eventhub.database import MongoDatabase, get_database
from eventhub.exceptions import DatabaseError
from eventhub.schemas.event import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Initialized once when the module loads
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(
    response: Response,
    database: MongoDatabase = Depends(get_database),
) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        await database.ping()
    except DatabaseError as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", e.reason)

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
