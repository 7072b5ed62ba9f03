"""MCP usage log persistence and daily aggregation"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from sqlalchemy import and_, case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from deepwiki_mcp.core.logging_config import get_logger
from deepwiki_mcp.core.monitoring import MetricsCollector
from deepwiki_mcp.models import (
    MCPDailyStatisticModel,
    MCPProviderModel,
    MCPUsageLogModel,
    utcnow,
)

logger = get_logger(__name__)

ANONYMOUS_USER_ID = "anonymous"
UNKNOWN_PROVIDER_ID = "unknown"


@dataclass
class UsageLogRecord:
    """One MCP request as observed by the usage logging middleware"""
    tool_name: str
    response_status: int
    duration_ms: int
    user_id: Optional[str] = None
    mcp_provider_id: Optional[str] = None
    request_summary: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    error_message: Optional[str] = None


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


async def get_default_provider_id(session: AsyncSession) -> Optional[str]:
    """Id of the first active, non-deleted provider by sort order"""
    result = await session.execute(
        select(MCPProviderModel.id)
        .where(
            MCPProviderModel.is_active.is_(True),
            MCPProviderModel.is_deleted.is_(False),
        )
        .order_by(MCPProviderModel.sort_order, MCPProviderModel.created_at)
        .limit(1)
    )
    return result.scalar_one_or_none()


def day_bounds(day: date) -> tuple:
    """Half-open [start, end) datetime range covering one UTC day"""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class MCPUsageLogService:
    """
    Writes usage logs and rolls them up into daily statistics.

    Each call opens its own session from ``session_factory`` so the service
    can run from background tasks outside any request.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def log_usage(self, record: UsageLogRecord) -> bool:
        """
        Persist one usage log.

        Blank user ids become ``"anonymous"``; blank provider ids become the
        default provider, or ``"unknown"`` when none is active. Failures are
        logged and reported as False, never raised.
        """
        try:
            async with self.session_factory() as session:
                user_id = ANONYMOUS_USER_ID if _is_blank(record.user_id) else record.user_id
                provider_id = record.mcp_provider_id
                if _is_blank(provider_id):
                    provider_id = await get_default_provider_id(session) or UNKNOWN_PROVIDER_ID

                session.add(MCPUsageLogModel(
                    user_id=user_id,
                    mcp_provider_id=provider_id,
                    tool_name=record.tool_name,
                    request_summary=record.request_summary,
                    response_status=record.response_status,
                    duration_ms=record.duration_ms,
                    input_tokens=record.input_tokens,
                    output_tokens=record.output_tokens,
                    ip_address=record.ip_address,
                    user_agent=record.user_agent,
                    error_message=record.error_message,
                    created_at=utcnow(),
                ))
                await session.commit()

            MetricsCollector.record_usage_log("written")
            return True

        except Exception as e:
            MetricsCollector.record_usage_log("failed")
            logger.error(
                "mcp_usage_log_write_failed",
                tool_name=record.tool_name,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return False

    async def aggregate_daily_statistics(self, day: date) -> int:
        """
        Recompute the statistics of every provider for one UTC day.

        Existing rows are overwritten (a soft-deleted row for the same slot is
        revived), so running this twice for a day gives the same result.

        Returns:
            Number of provider rows written

        Raises:
            Exception: Database errors propagate to the caller
        """
        start, end = day_bounds(day)
        status = MCPUsageLogModel.response_status
        provider_key = func.coalesce(MCPUsageLogModel.mcp_provider_id, UNKNOWN_PROVIDER_ID)

        async with self.session_factory() as session:
            result = await session.execute(
                select(
                    provider_key.label("provider_id"),
                    func.count(MCPUsageLogModel.id).label("request_count"),
                    func.sum(case((and_(status >= 200, status < 300), 1), else_=0)).label("success_count"),
                    func.sum(case((status >= 400, 1), else_=0)).label("error_count"),
                    func.coalesce(func.sum(MCPUsageLogModel.duration_ms), 0).label("total_duration_ms"),
                    func.coalesce(func.sum(MCPUsageLogModel.input_tokens), 0).label("input_tokens"),
                    func.coalesce(func.sum(MCPUsageLogModel.output_tokens), 0).label("output_tokens"),
                )
                .where(
                    MCPUsageLogModel.is_deleted.is_(False),
                    MCPUsageLogModel.created_at >= start,
                    MCPUsageLogModel.created_at < end,
                )
                .group_by(provider_key)
            )
            groups = result.all()

            for group in groups:
                existing_result = await session.execute(
                    select(MCPDailyStatisticModel).where(
                        MCPDailyStatisticModel.mcp_provider_id == group.provider_id,
                        MCPDailyStatisticModel.date == day,
                    )
                )
                statistic = existing_result.scalar_one_or_none()
                if statistic is None:
                    statistic = MCPDailyStatisticModel(mcp_provider_id=group.provider_id, date=day)
                    session.add(statistic)
                elif statistic.is_deleted:
                    statistic.is_deleted = False
                    statistic.deleted_at = None

                statistic.request_count = int(group.request_count or 0)
                statistic.success_count = int(group.success_count or 0)
                statistic.error_count = int(group.error_count or 0)
                statistic.total_duration_ms = int(group.total_duration_ms or 0)
                statistic.input_tokens = int(group.input_tokens or 0)
                statistic.output_tokens = int(group.output_tokens or 0)
                statistic.updated_at = utcnow()

            await session.commit()

        logger.info(
            "mcp_daily_statistics_aggregated",
            date=day.isoformat(),
            provider_count=len(groups),
        )
        return len(groups)
