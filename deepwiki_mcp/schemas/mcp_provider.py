"""Pydantic schemas for MCP provider management and usage reporting"""

from datetime import date, datetime
from typing import Optional, List
from pydantic import Field, field_validator
from deepwiki_mcp.schemas.common import CamelModel


class MCPProviderRequest(CamelModel):
    """Schema for creating or updating an MCP provider"""
    name: str = Field(..., min_length=1, max_length=100, description="Provider display name")
    description: Optional[str] = Field(None, max_length=500)
    # Accepted for compatibility; the stored URL is always the scoped path template
    server_url: Optional[str] = Field(None, max_length=500)
    transport_type: str = Field("streamable_http", max_length=50)
    requires_api_key: bool = True
    api_key_obtain_url: Optional[str] = Field(None, max_length=500)
    system_api_key: Optional[str] = Field(None, max_length=500, description="Write-only")
    model_config_id: Optional[str] = Field(None, max_length=36)
    request_types: Optional[str] = Field(None, description="JSON array of request types")
    allowed_tools: Optional[str] = Field(None, description="JSON array of allowed tool names")
    is_active: bool = True
    sort_order: int = 0
    icon_url: Optional[str] = Field(None, max_length=500)
    max_requests_per_day: int = Field(0, ge=0, description="0 means unlimited")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Provider names cannot be blank"""
        if not v.strip():
            raise ValueError('Name cannot be blank')
        return v.strip()


class MCPProviderDTO(CamelModel):
    """Provider as returned to admins; the system key is reduced to a flag"""
    id: str
    name: str
    description: Optional[str] = None
    server_url: str
    transport_type: str
    requires_api_key: bool
    api_key_obtain_url: Optional[str] = None
    has_system_api_key: bool = False
    model_config_id: Optional[str] = None
    model_config_name: Optional[str] = None
    request_types: Optional[str] = None
    allowed_tools: Optional[str] = None
    is_active: bool
    sort_order: int
    icon_url: Optional[str] = None
    max_requests_per_day: int
    created_at: datetime


class PublicMCPProvider(CamelModel):
    """Provider as listed to anonymous visitors"""
    id: str
    name: str
    description: Optional[str] = None
    server_url: str
    transport_type: str
    requires_api_key: bool
    api_key_obtain_url: Optional[str] = None
    icon_url: Optional[str] = None
    max_requests_per_day: int
    allowed_tools: Optional[str] = None


class MCPUsageLogDTO(CamelModel):
    id: str
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    mcp_provider_id: Optional[str] = None
    mcp_provider_name: Optional[str] = None
    tool_name: str
    request_summary: Optional[str] = None
    response_status: int
    duration_ms: int
    input_tokens: int
    output_tokens: int
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime


class MCPUsageLogFilter(CamelModel):
    """
    Query filter for usage logs.

    Out-of-range paging values are clamped rather than rejected:
    page <= 0 -> 1, page_size <= 0 -> 20, page_size > 100 -> 100.
    """
    mcp_provider_id: Optional[str] = None
    user_id: Optional[str] = None
    tool_name: Optional[str] = None
    page: int = 1
    page_size: int = 20

    @field_validator('page')
    @classmethod
    def clamp_page(cls, v: int) -> int:
        return 1 if v <= 0 else v

    @field_validator('page_size')
    @classmethod
    def clamp_page_size(cls, v: int) -> int:
        if v <= 0:
            return 20
        return min(v, 100)

    @field_validator('mcp_provider_id', 'user_id', 'tool_name')
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    @property
    def offset(self) -> int:
        """Calculate offset for database queries"""
        return (self.page - 1) * self.page_size


class MCPDailyUsage(CamelModel):
    date: date
    request_count: int = 0
    success_count: int = 0
    error_count: int = 0
    input_tokens: int = 0
    output_tokens: int = 0


class MCPUsageStatisticsResponse(CamelModel):
    """Zero-filled daily usage summed over all providers, with totals"""
    daily_usages: List[MCPDailyUsage] = Field(default_factory=list)
    total_requests: int = 0
    total_successful: int = 0
    total_errors: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
