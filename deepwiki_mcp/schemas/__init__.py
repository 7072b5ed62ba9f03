"""Pydantic schemas"""

from deepwiki_mcp.schemas.common import CamelModel, PagedResult, envelope
from deepwiki_mcp.schemas.mcp_provider import (
    MCPProviderRequest,
    MCPProviderDTO,
    PublicMCPProvider,
    MCPUsageLogDTO,
    MCPUsageLogFilter,
    MCPDailyUsage,
    MCPUsageStatisticsResponse,
)

__all__ = [
    "CamelModel",
    "PagedResult",
    "envelope",
    "MCPProviderRequest",
    "MCPProviderDTO",
    "PublicMCPProvider",
    "MCPUsageLogDTO",
    "MCPUsageLogFilter",
    "MCPDailyUsage",
    "MCPUsageStatisticsResponse",
]
