"""MCP usage log model"""

from sqlalchemy import Column, String, Integer, BigInteger, Text, Index
from deepwiki_mcp.models.base import BaseModel, SoftDeleteMixin


class MCPUsageLogModel(SoftDeleteMixin, BaseModel):
    """
    One row per HTTP request under the MCP prefix.

    Rows are written once by the usage log writer and never updated.
    """
    __tablename__ = "mcp_usage_logs"

    user_id = Column(String(36), nullable=True, index=True)
    mcp_provider_id = Column(String(36), nullable=True, index=True)
    tool_name = Column(String(200), nullable=False)
    request_summary = Column(Text, nullable=True)
    response_status = Column(Integer, nullable=False)
    duration_ms = Column(BigInteger, default=0, nullable=False)
    input_tokens = Column(Integer, default=0, nullable=False)
    output_tokens = Column(Integer, default=0, nullable=False)
    ip_address = Column(String(50), nullable=True)
    user_agent = Column(String(500), nullable=True)
    error_message = Column(String(2000), nullable=True)

    __table_args__ = (
        Index('idx_mcp_usage_logs_created_at', 'created_at'),
        Index('idx_mcp_usage_logs_provider_created', 'mcp_provider_id', 'created_at'),
    )

    def __repr__(self) -> str:
        return (
            f"<MCPUsageLogModel(id={self.id}, tool_name={self.tool_name}, "
            f"status={self.response_status})>"
        )
