"""API Middleware for request processing"""

import re
import time
from typing import Any, Callable, Optional
from uuid import uuid4

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from deepwiki_mcp.core.config import settings
from deepwiki_mcp.core.logging_config import get_logger
from deepwiki_mcp.core.monitoring import MetricsCollector
from deepwiki_mcp.core.security import decode_access_token, extract_user_id, get_bearer_token
from deepwiki_mcp.services.usage_log_service import UsageLogRecord


# Configure structured logging
logger = get_logger(__name__)

USER_AGENT_MAX_LENGTH = 500
TOOL_NAME_MAX_LENGTH = 200


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add unique request ID to each request.

    Generates a UUID for each request (or reuses an incoming X-Request-ID)
    and adds it to:
    - Request state (accessible in route handlers)
    - Response headers (X-Request-ID)
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and add request ID"""
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all requests and responses with correlation IDs.

    Logs structured information including:
    - Request ID (correlation ID)
    - HTTP method and path
    - Request/response timing
    - Status code
    - Sensitive data redaction
    """

    # Patterns for sensitive data redaction
    SENSITIVE_PATTERNS = [
        (re.compile(r'"password"\s*:\s*"[^"]*"'), '"password": "[REDACTED]"'),
        (re.compile(r'"token"\s*:\s*"[^"]*"'), '"token": "[REDACTED]"'),
        (re.compile(r'"(system)?_?api_?key"\s*:\s*"[^"]*"', re.IGNORECASE), '"apiKey": "[REDACTED]"'),
        (re.compile(r'"secret"\s*:\s*"[^"]*"'), '"secret": "[REDACTED]"'),
        (re.compile(r'"authorization"\s*:\s*"[^"]*"', re.IGNORECASE), '"authorization": "[REDACTED]"'),
        (re.compile(r'Bearer\s+[A-Za-z0-9\-._~+/]+=*', re.IGNORECASE), 'Bearer [REDACTED]'),
    ]

    # Paths to exclude from detailed logging (health checks, metrics, etc.)
    EXCLUDED_PATHS = {
        "/health",
        "/metrics",
        "/favicon.ico",
        "/robots.txt"
    }

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and log details"""
        request_id = getattr(request.state, "request_id", "unknown")

        skip_detailed_logging = (
            request.url.path in self.EXCLUDED_PATHS and
            not settings.LOG_HEALTH_CHECKS
        )

        start_time = time.time()

        if not skip_detailed_logging or settings.DEBUG:
            logger.info(
                "request_started",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                query_params=str(request.query_params),
                client_host=request.client.host if request.client else None,
            )

        try:
            response = await call_next(request)

            response_time = time.time() - start_time
            MetricsCollector.record_http_request(request.method, response.status_code, response_time)

            if not skip_detailed_logging or settings.DEBUG or response.status_code >= 400:
                logger.info(
                    "request_completed",
                    request_id=request_id,
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    response_time_ms=int(response_time * 1000),
                )

            return response

        except Exception as e:
            response_time = time.time() - start_time
            MetricsCollector.record_http_request(request.method, 500, response_time)

            # Always log errors, even for health checks
            logger.error(
                "request_failed",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                error_type=type(e).__name__,
                error_message=self._redact_sensitive_data(str(e)),
                response_time_ms=int(response_time * 1000),
                exc_info=True
            )

            # Re-raise to be handled by error handler
            raise

    @classmethod
    def _redact_sensitive_data(cls, text: str) -> str:
        """
        Redact sensitive data from text.

        Replaces passwords, tokens, API keys, and other sensitive
        information with [REDACTED] placeholder.
        """
        for pattern, replacement in cls.SENSITIVE_PATTERNS:
            text = pattern.sub(replacement, text)
        return text


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches all unhandled exceptions and formats them into
    consistent JSON error responses.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and handle errors"""
        try:
            return await call_next(request)

        except Exception as e:
            request_id = getattr(request.state, "request_id", "unknown")

            logger.error(
                "unhandled_exception",
                request_id=request_id,
                error_type=type(e).__name__,
                error_message=str(e),
                exc_info=True
            )

            return JSONResponse(
                status_code=500,
                content={
                    "error": {
                        "type": type(e).__name__,
                        "message": str(e),
                        "request_id": request_id,
                    }
                }
            )


def is_mcp_path(path: str, prefix: str) -> bool:
    """True for the prefix itself and anything below it (``/api/mcpx`` does not match)"""
    return path == prefix or path.startswith(prefix + "/")


def resolve_user_id(request: Request) -> Optional[str]:
    """User id from request state, else from a valid bearer token, else None"""
    user_id = getattr(request.state, "user_id", None)
    if user_id:
        return str(user_id)

    token = get_bearer_token(request.headers.get("Authorization"))
    if token is None:
        return None
    return extract_user_id(decode_access_token(token))


class MCPUsageLoggingMiddleware(BaseHTTPMiddleware):
    """
    Record one usage log per request under the MCP path prefix.

    The record is handed to the ``UsageLogWriter`` on ``app.state`` and
    persisted in the background; the response is never delayed or altered by
    logging. Requests outside the prefix pass straight through.
    """

    def __init__(self, app, path_prefix: Optional[str] = None):
        super().__init__(app)
        self.path_prefix = path_prefix or settings.MCP_PATH_PREFIX

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not is_mcp_path(request.url.path, self.path_prefix):
            return await call_next(request)

        # Mounted sub-apps rebind request.app, so resolve the writer up front
        writer = getattr(request.app.state, "usage_log_writer", None)
        start_time = time.perf_counter()
        status_code = 500
        error_message = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        except Exception as e:
            error_message = str(e)[:2000]
            raise
        finally:
            duration_ms = int((time.perf_counter() - start_time) * 1000)
            self._submit(request, writer, status_code, duration_ms, error_message)

    def _submit(
        self,
        request: Request,
        writer: Any,
        status_code: int,
        duration_ms: int,
        error_message: Optional[str],
    ) -> None:
        if writer is None:
            return

        try:
            tool_name = getattr(request.state, "mcp_tool_name", None)
            if not tool_name:
                tool_name = f"{request.method} {request.url.path}"

            user_agent = request.headers.get("User-Agent")
            if user_agent and len(user_agent) > USER_AGENT_MAX_LENGTH:
                user_agent = user_agent[:USER_AGENT_MAX_LENGTH]

            writer.submit(UsageLogRecord(
                tool_name=tool_name[:TOOL_NAME_MAX_LENGTH],
                response_status=status_code,
                duration_ms=duration_ms,
                user_id=resolve_user_id(request),
                ip_address=request.client.host if request.client else None,
                user_agent=user_agent,
                error_message=error_message,
            ))
        except Exception as e:
            logger.error(
                "mcp_usage_log_submit_failed",
                path=request.url.path,
                error=str(e),
                exc_info=True,
            )
