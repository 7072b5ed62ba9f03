"""FastAPI Application Entry Point"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.cors import CORSMiddleware

from deepwiki_mcp.api.middleware import (
    ErrorHandlingMiddleware,
    LoggingMiddleware,
    MCPUsageLoggingMiddleware,
    RequestIDMiddleware,
)
from deepwiki_mcp.api.v1 import admin_mcp_providers, health, mcp_providers
from deepwiki_mcp.core.config import settings
from deepwiki_mcp.core.database import close_database, get_session_factory, init_database
from deepwiki_mcp.core.logging_config import get_logger
from deepwiki_mcp.mcp.server import create_mcp_http_app
from deepwiki_mcp.services.statistics_aggregator import StatisticsAggregationService
from deepwiki_mcp.services.usage_log_service import MCPUsageLogService
from deepwiki_mcp.services.usage_log_writer import UsageLogWriter

logger = get_logger(__name__)

mcp_app = create_mcp_http_app()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown events"""
    # Startup: database, usage log writer, aggregation loop, MCP session manager
    await init_database()

    usage_log_service = MCPUsageLogService(get_session_factory())
    writer = UsageLogWriter(usage_log_service, max_queue_size=settings.USAGE_LOG_QUEUE_SIZE)
    await writer.start()
    app.state.usage_log_writer = writer

    aggregator = None
    if settings.MCP_AGGREGATION_ENABLED:
        aggregator = StatisticsAggregationService(
            usage_log_service,
            initial_delay=settings.MCP_AGGREGATION_INITIAL_DELAY_SECONDS,
            interval=settings.MCP_AGGREGATION_INTERVAL_SECONDS,
        )
        await aggregator.start()
    app.state.statistics_aggregator = aggregator

    logger.info("application_started", mcp_path=settings.repository_scoped_mcp_path)

    try:
        async with mcp_app.router.lifespan_context(mcp_app):
            yield
    finally:
        # Shutdown: reverse order
        if aggregator is not None:
            await aggregator.stop()
        await writer.stop()
        await close_database()
        logger.info("application_stopped")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan
)


# Add validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with detailed field-level information."""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": "Request validation failed",
            "error": {
                "type": "ValidationError",
                "details": errors,
                "request_id": getattr(request.state, "request_id", "unknown")
            }
        }
    )

# Add middleware (last added runs first)
# Execution order: Error Handler -> Request ID -> Logging -> MCP Usage Logging -> CORS

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)
app.add_middleware(MCPUsageLoggingMiddleware, path_prefix=settings.MCP_PATH_PREFIX)
app.add_middleware(LoggingMiddleware)
# Request ID must be set before logging reads it
app.add_middleware(RequestIDMiddleware)
# Outermost: turns anything unhandled into a JSON 500
app.add_middleware(ErrorHandlingMiddleware)

# Include routers
app.include_router(health.router)
app.include_router(mcp_providers.router, prefix="/api")
app.include_router(admin_mcp_providers.router, prefix="/api")

# Repository-scoped MCP server: {MCP_PATH_PREFIX}/{owner}/{repo}
app.mount(settings.MCP_PATH_PREFIX, mcp_app)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "mcp": settings.repository_scoped_mcp_path,
        "docs": "/api/docs",
    }
