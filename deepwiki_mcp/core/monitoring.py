"""Prometheus Metrics Configuration"""

from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST

# Create a custom registry for our metrics
registry = CollectorRegistry()

# ============================================================================
# HTTP Request Metrics
# ============================================================================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'status'],
    registry=registry
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method'],
    registry=registry,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

# ============================================================================
# MCP Metrics
# ============================================================================

mcp_tool_calls_total = Counter(
    'mcp_tool_calls_total',
    'Total MCP tool invocations',
    ['tool', 'outcome'],  # outcome: ok | error
    registry=registry
)

mcp_tool_call_duration_seconds = Histogram(
    'mcp_tool_call_duration_seconds',
    'MCP tool invocation duration in seconds',
    ['tool'],
    registry=registry,
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)
)

mcp_usage_logs_total = Counter(
    'mcp_usage_logs_total',
    'MCP usage log records by result',
    ['result'],  # written | dropped | failed
    registry=registry
)

mcp_statistics_aggregations_total = Counter(
    'mcp_statistics_aggregations_total',
    'MCP daily statistics aggregation cycles',
    ['status'],  # success | failure
    registry=registry
)

mcp_search_summaries_total = Counter(
    'mcp_search_summaries_total',
    'AI summaries requested for documentation search',
    ['result'],  # generated | skipped | failed
    registry=registry
)

# ============================================================================
# Helper Functions
# ============================================================================

def get_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format.

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(registry)


def get_metrics_content_type() -> str:
    """Get the content type for Prometheus metrics."""
    return CONTENT_TYPE_LATEST


class MetricsCollector:
    """Helper class for collecting and updating metrics"""

    @staticmethod
    def record_http_request(method: str, status: int, duration: float):
        """Record HTTP request metrics"""
        http_requests_total.labels(method=method, status=status).inc()
        http_request_duration_seconds.labels(method=method).observe(duration)

    @staticmethod
    def record_tool_call(tool: str, outcome: str, duration: float = None):
        """Record an MCP tool invocation"""
        mcp_tool_calls_total.labels(tool=tool, outcome=outcome).inc()
        if duration is not None:
            mcp_tool_call_duration_seconds.labels(tool=tool).observe(duration)

    @staticmethod
    def record_usage_log(result: str):
        """Record the fate of a usage log record"""
        mcp_usage_logs_total.labels(result=result).inc()

    @staticmethod
    def record_aggregation(status: str):
        """Record a statistics aggregation cycle"""
        mcp_statistics_aggregations_total.labels(status=status).inc()

    @staticmethod
    def record_search_summary(result: str):
        """Record a search summarization attempt"""
        mcp_search_summaries_total.labels(result=result).inc()


__all__ = [
    'registry',
    'get_metrics',
    'get_metrics_content_type',
    'MetricsCollector',
]
