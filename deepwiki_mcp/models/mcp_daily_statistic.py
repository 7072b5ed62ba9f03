"""MCP daily statistics model"""

from sqlalchemy import Column, String, Integer, BigInteger, Date, UniqueConstraint
from deepwiki_mcp.models.base import BaseModel, SoftDeleteMixin


class MCPDailyStatisticModel(SoftDeleteMixin, BaseModel):
    """
    Per-provider daily roll-up of usage logs.

    Exactly one row per (provider, date); the aggregator overwrites it on
    every run for that day.
    """
    __tablename__ = "mcp_daily_statistics"

    mcp_provider_id = Column(String(36), nullable=False)
    date = Column(Date, nullable=False)
    request_count = Column(BigInteger, default=0, nullable=False)
    success_count = Column(BigInteger, default=0, nullable=False)
    error_count = Column(BigInteger, default=0, nullable=False)
    total_duration_ms = Column(BigInteger, default=0, nullable=False)
    input_tokens = Column(BigInteger, default=0, nullable=False)
    output_tokens = Column(BigInteger, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint('mcp_provider_id', 'date', name='uq_mcp_daily_statistics_provider_date'),
    )

    def __repr__(self) -> str:
        return (
            f"<MCPDailyStatisticModel(provider={self.mcp_provider_id}, date={self.date}, "
            f"requests={self.request_count})>"
        )
