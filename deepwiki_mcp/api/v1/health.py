"""Health Check Endpoint"""

from typing import Any, Dict

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, Response

from deepwiki_mcp.core.monitoring import get_metrics, get_metrics_content_type

router = APIRouter(tags=["health"])


async def check_database() -> bool:
    """Check database connection health"""
    from deepwiki_mcp.core.database import check_database_connection
    return await check_database_connection()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(request: Request) -> JSONResponse:
    """
    Health check endpoint.

    Returns:
        200 OK if the database is reachable
        503 Service Unavailable otherwise

    The usage log writer and statistics aggregator are reported but do not
    affect the status.
    """
    checks = {"database": await check_database()}

    writer = getattr(request.app.state, "usage_log_writer", None)
    aggregator = getattr(request.app.state, "statistics_aggregator", None)

    all_healthy = all(checks.values())
    response_data: Dict[str, Any] = {
        "status": "healthy" if all_healthy else "unhealthy",
        "services": checks,
        "background": {
            "usage_log_writer": bool(writer and writer.is_running),
            "usage_log_queue": writer.pending if writer else 0,
            "statistics_aggregator": bool(aggregator and aggregator.is_running),
        },
    }

    return JSONResponse(
        status_code=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=response_data
    )


@router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format for scraping by Prometheus server.
    """
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )
