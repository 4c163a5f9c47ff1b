"""
Kafiza Backend — Health Check Route
=====================================

What:  GET /api/health for monitoring and load balancer probes.
How:   Pings the store with SELECT 1 through the connection manager.
Who:   Docker health checks, load balancers, uptime monitors.

Status levels:
    - healthy:   store answered (HTTP 200)
    - unhealthy: store unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response, status

from kafiza import __version__
from kafiza.database import ConnectionManager, get_connection_manager
from kafiza.routes.methods import record_methods
from kafiza.routes.resources import options_response
from kafiza.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Health"])

# Uptime is measured from module import
_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check(
    response: Response,
    connections: ConnectionManager = Depends(get_connection_manager),
) -> HealthResponse:
    if await connections.ping():
        db_status, overall = "connected", "healthy"
    else:
        db_status, overall = "disconnected", "unhealthy"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning("Health check: database unreachable")

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
        timestamp=datetime.now(timezone.utc),
    )


router.add_api_route("/health", options_response, methods=["OPTIONS"], include_in_schema=False)
record_methods(router, "/health", "GET", "OPTIONS")
