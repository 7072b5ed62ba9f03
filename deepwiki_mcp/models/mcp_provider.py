"""MCP provider model"""

from sqlalchemy import Column, String, Boolean, Integer, Text, Index
from sqlalchemy.dialects.mysql import CHAR
from deepwiki_mcp.models.base import BaseModel, SoftDeleteMixin


class MCPProviderModel(SoftDeleteMixin, BaseModel):
    """
    MCP provider advertised to clients and configured by admins.

    ``system_api_key`` is write-only from the API's point of view: responses
    only report whether one is set. ``request_types`` and ``allowed_tools``
    hold JSON arrays serialized as text.
    """
    __tablename__ = "mcp_providers"

    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    server_url = Column(String(500), nullable=False)
    transport_type = Column(String(50), default="streamable_http", nullable=False)
    requires_api_key = Column(Boolean, default=True, nullable=False)
    api_key_obtain_url = Column(String(500), nullable=True)
    system_api_key = Column(String(500), nullable=True)
    model_config_id = Column(CHAR(36), nullable=True)
    request_types = Column(Text, nullable=True)
    allowed_tools = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    icon_url = Column(String(500), nullable=True)
    # 0 means unlimited; stored and exposed, not enforced
    max_requests_per_day = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index('idx_mcp_providers_active_sort', 'is_active', 'sort_order'),
    )

    def __repr__(self) -> str:
        return f"<MCPProviderModel(id={self.id}, name={self.name}, active={self.is_active})>"
