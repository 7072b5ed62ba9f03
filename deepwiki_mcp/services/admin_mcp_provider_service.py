"""Admin management of MCP providers, usage logs and usage statistics"""

from datetime import date, timedelta
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from deepwiki_mcp.core.config import settings
from deepwiki_mcp.core.logging_config import get_logger
from deepwiki_mcp.models import (
    AIModelConfigModel,
    MCPDailyStatisticModel,
    MCPProviderModel,
    MCPUsageLogModel,
    UserModel,
    utcnow,
)
from deepwiki_mcp.schemas.common import PagedResult
from deepwiki_mcp.schemas.mcp_provider import (
    MCPDailyUsage,
    MCPProviderDTO,
    MCPProviderRequest,
    MCPUsageLogDTO,
    MCPUsageLogFilter,
    MCPUsageStatisticsResponse,
    PublicMCPProvider,
)
from deepwiki_mcp.services.statistics_aggregator import utc_today

logger = get_logger(__name__)

DEFAULT_STATISTICS_DAYS = 7
MAX_STATISTICS_DAYS = 365


def clamp_statistics_days(days: Optional[int]) -> int:
    """Statistics window in days: default 7, clamped to 1..365"""
    if days is None:
        return DEFAULT_STATISTICS_DAYS
    return max(1, min(days, MAX_STATISTICS_DAYS))


class AdminMCPProviderService:
    """
    MCP provider administration.

    Provides:
    - Provider CRUD with soft delete
    - Usage log queries with batch name resolution
    - Zero-filled daily usage statistics

    The session is request-scoped; changes are flushed here and committed by
    the ``get_db`` dependency.
    """

    def __init__(self, db: AsyncSession, clock: Optional[Callable[[], date]] = None):
        self.db = db
        self.clock = clock or utc_today

    # ========================================================================
    # Providers
    # ========================================================================

    async def list_providers(self) -> List[MCPProviderDTO]:
        """All non-deleted providers ordered by sort order then name."""
        result = await self.db.execute(
            select(MCPProviderModel)
            .where(MCPProviderModel.is_deleted.is_(False))
            .order_by(MCPProviderModel.sort_order, MCPProviderModel.name)
        )
        providers = result.scalars().all()

        model_names = await self._model_config_names(
            p.model_config_id for p in providers if p.model_config_id
        )
        return [self._to_dto(p, model_names.get(p.model_config_id)) for p in providers]

    async def create_provider(self, request: MCPProviderRequest) -> MCPProviderDTO:
        provider = MCPProviderModel(server_url=settings.repository_scoped_mcp_path)
        self._apply_request(provider, request)
        provider.system_api_key = request.system_api_key
        provider.created_at = utcnow()

        self.db.add(provider)
        await self.db.flush()
        await self.db.refresh(provider)

        logger.info("mcp_provider_created", provider_id=provider.id, name=provider.name)

        model_names = await self._model_config_names([provider.model_config_id] if provider.model_config_id else [])
        return self._to_dto(provider, model_names.get(provider.model_config_id))

    async def update_provider(self, provider_id: str, request: MCPProviderRequest) -> Optional[MCPProviderDTO]:
        """
        Overwrite the editable fields of a provider.

        The system API key is only replaced when the request carries one.

        Returns:
            Updated provider, or None if it does not exist or is deleted
        """
        provider = await self._get_provider(provider_id)
        if provider is None:
            return None

        self._apply_request(provider, request)
        if request.system_api_key is not None:
            provider.system_api_key = request.system_api_key
        provider.updated_at = utcnow()

        await self.db.flush()
        await self.db.refresh(provider)

        logger.info("mcp_provider_updated", provider_id=provider.id, name=provider.name)

        model_names = await self._model_config_names([provider.model_config_id] if provider.model_config_id else [])
        return self._to_dto(provider, model_names.get(provider.model_config_id))

    async def delete_provider(self, provider_id: str) -> bool:
        """
        Soft delete a provider.

        Returns:
            True if deleted, False if not found
        """
        provider = await self._get_provider(provider_id)
        if provider is None:
            return False

        provider.mark_deleted()
        provider.updated_at = utcnow()
        await self.db.flush()

        logger.info("mcp_provider_deleted", provider_id=provider.id, name=provider.name)
        return True

    async def list_public_providers(self) -> List[PublicMCPProvider]:
        """Active providers visible without authentication."""
        result = await self.db.execute(
            select(MCPProviderModel)
            .where(
                MCPProviderModel.is_active.is_(True),
                MCPProviderModel.is_deleted.is_(False),
            )
            .order_by(MCPProviderModel.sort_order, MCPProviderModel.name)
        )
        return [
            PublicMCPProvider(
                id=p.id,
                name=p.name,
                description=p.description,
                server_url=settings.repository_scoped_mcp_path,
                transport_type=p.transport_type,
                requires_api_key=p.requires_api_key,
                api_key_obtain_url=p.api_key_obtain_url,
                icon_url=p.icon_url,
                max_requests_per_day=p.max_requests_per_day,
                allowed_tools=p.allowed_tools,
            )
            for p in result.scalars().all()
        ]

    # ========================================================================
    # Usage
    # ========================================================================

    async def get_usage_logs(self, log_filter: MCPUsageLogFilter) -> PagedResult[MCPUsageLogDTO]:
        """Newest-first usage logs matching the filter, one page at a time."""
        conditions = [MCPUsageLogModel.is_deleted.is_(False)]
        if log_filter.mcp_provider_id:
            conditions.append(MCPUsageLogModel.mcp_provider_id == log_filter.mcp_provider_id)
        if log_filter.user_id:
            conditions.append(MCPUsageLogModel.user_id == log_filter.user_id)
        if log_filter.tool_name:
            conditions.append(MCPUsageLogModel.tool_name.contains(log_filter.tool_name, autoescape=True))

        total_result = await self.db.execute(
            select(func.count()).select_from(MCPUsageLogModel).where(*conditions)
        )
        total = total_result.scalar_one()

        result = await self.db.execute(
            select(MCPUsageLogModel)
            .where(*conditions)
            .order_by(MCPUsageLogModel.created_at.desc())
            .offset(log_filter.offset)
            .limit(log_filter.page_size)
        )
        logs = result.scalars().all()

        user_names = await self._names_by_id(
            UserModel, UserModel.name, {log.user_id for log in logs if log.user_id}
        )
        provider_names = await self._names_by_id(
            MCPProviderModel, MCPProviderModel.name, {log.mcp_provider_id for log in logs if log.mcp_provider_id}
        )

        items = [
            MCPUsageLogDTO(
                id=log.id,
                user_id=log.user_id,
                user_name=user_names.get(log.user_id),
                mcp_provider_id=log.mcp_provider_id,
                mcp_provider_name=provider_names.get(log.mcp_provider_id),
                tool_name=log.tool_name,
                request_summary=log.request_summary,
                response_status=log.response_status,
                duration_ms=log.duration_ms,
                input_tokens=log.input_tokens,
                output_tokens=log.output_tokens,
                ip_address=log.ip_address,
                user_agent=log.user_agent,
                error_message=log.error_message,
                created_at=log.created_at,
            )
            for log in logs
        ]

        return PagedResult[MCPUsageLogDTO](
            items=items,
            total=total,
            page=log_filter.page,
            page_size=log_filter.page_size,
        )

    async def get_usage_statistics(self, days: Optional[int] = None) -> MCPUsageStatisticsResponse:
        """
        Daily usage for the last ``days`` days ending today (UTC).

        Days without statistics are reported as zero; values are summed over
        all providers.
        """
        days = clamp_statistics_days(days)
        today = self.clock()
        start_date = today - timedelta(days=days - 1)

        result = await self.db.execute(
            select(
                MCPDailyStatisticModel.date,
                func.sum(MCPDailyStatisticModel.request_count),
                func.sum(MCPDailyStatisticModel.success_count),
                func.sum(MCPDailyStatisticModel.error_count),
                func.sum(MCPDailyStatisticModel.input_tokens),
                func.sum(MCPDailyStatisticModel.output_tokens),
            )
            .where(
                MCPDailyStatisticModel.is_deleted.is_(False),
                MCPDailyStatisticModel.date >= start_date,
                MCPDailyStatisticModel.date <= today,
            )
            .group_by(MCPDailyStatisticModel.date)
        )
        by_date = {row[0]: row[1:] for row in result.all()}

        response = MCPUsageStatisticsResponse()
        for offset in range(days):
            day = start_date + timedelta(days=offset)
            requests, successes, errors, input_tokens, output_tokens = (
                int(value or 0) for value in by_date.get(day, (0, 0, 0, 0, 0))
            )
            response.daily_usages.append(MCPDailyUsage(
                date=day,
                request_count=requests,
                success_count=successes,
                error_count=errors,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
            ))
            response.total_requests += requests
            response.total_successful += successes
            response.total_errors += errors
            response.total_input_tokens += input_tokens
            response.total_output_tokens += output_tokens

        return response

    # ========================================================================
    # Helpers
    # ========================================================================

    async def _get_provider(self, provider_id: str) -> Optional[MCPProviderModel]:
        result = await self.db.execute(
            select(MCPProviderModel).where(
                MCPProviderModel.id == provider_id,
                MCPProviderModel.is_deleted.is_(False),
            )
        )
        return result.scalar_one_or_none()

    async def _model_config_names(self, ids: Iterable[str]) -> Dict[str, str]:
        ids = set(ids)
        if not ids:
            return {}
        result = await self.db.execute(
            select(AIModelConfigModel.id, AIModelConfigModel.name).where(
                AIModelConfigModel.id.in_(ids),
                AIModelConfigModel.is_deleted.is_(False),
            )
        )
        return {row.id: row.name for row in result.all()}

    async def _names_by_id(self, model, name_column, ids: set) -> Dict[str, str]:
        if not ids:
            return {}
        result = await self.db.execute(select(model.id, name_column).where(model.id.in_(ids)))
        return {row[0]: row[1] for row in result.all()}

    @staticmethod
    def _apply_request(provider: MCPProviderModel, request: MCPProviderRequest) -> None:
        provider.name = request.name
        provider.description = request.description
        provider.server_url = settings.repository_scoped_mcp_path
        provider.transport_type = request.transport_type
        provider.requires_api_key = request.requires_api_key
        provider.api_key_obtain_url = request.api_key_obtain_url
        provider.model_config_id = request.model_config_id or None
        provider.request_types = request.request_types
        provider.allowed_tools = request.allowed_tools
        provider.is_active = request.is_active
        provider.sort_order = request.sort_order
        provider.icon_url = request.icon_url
        provider.max_requests_per_day = request.max_requests_per_day

    @staticmethod
    def _to_dto(provider: MCPProviderModel, model_config_name: Optional[str]) -> MCPProviderDTO:
        return MCPProviderDTO(
            id=provider.id,
            name=provider.name,
            description=provider.description,
            server_url=settings.repository_scoped_mcp_path,
            transport_type=provider.transport_type,
            requires_api_key=provider.requires_api_key,
            api_key_obtain_url=provider.api_key_obtain_url,
            has_system_api_key=bool(provider.system_api_key),
            model_config_id=provider.model_config_id,
            model_config_name=model_config_name,
            request_types=provider.request_types,
            allowed_tools=provider.allowed_tools,
            is_active=provider.is_active,
            sort_order=provider.sort_order,
            icon_url=provider.icon_url,
            max_requests_per_day=provider.max_requests_per_day,
            created_at=provider.created_at,
        )
