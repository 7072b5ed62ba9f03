"""Admin endpoints for MCP providers, usage logs and usage statistics"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from deepwiki_mcp.api.dependencies import require_admin
from deepwiki_mcp.core.database import get_db
from deepwiki_mcp.models import UserModel
from deepwiki_mcp.schemas.common import envelope
from deepwiki_mcp.schemas.mcp_provider import MCPProviderRequest, MCPUsageLogFilter
from deepwiki_mcp.services.admin_mcp_provider_service import AdminMCPProviderService

router = APIRouter(prefix="/admin/mcp-providers", tags=["admin-mcp-providers"])

PROVIDER_NOT_FOUND = "MCP provider not found"


def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminMCPProviderService:
    return AdminMCPProviderService(db)


def _not_found() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=envelope(message=PROVIDER_NOT_FOUND, success=False),
    )


@router.get("")
async def list_providers(
    service: AdminMCPProviderService = Depends(get_admin_service),
    _admin: UserModel = Depends(require_admin),
) -> dict:
    """All providers that are not deleted, active or not."""
    return envelope(await service.list_providers())


@router.post("", status_code=status.HTTP_200_OK)
async def create_provider(
    request: MCPProviderRequest,
    service: AdminMCPProviderService = Depends(get_admin_service),
    _admin: UserModel = Depends(require_admin),
) -> dict:
    return envelope(await service.create_provider(request))


@router.get("/usage-logs")
async def get_usage_logs(
    mcp_provider_id: Optional[str] = Query(None, alias="mcpProviderId"),
    user_id: Optional[str] = Query(None, alias="userId"),
    tool_name: Optional[str] = Query(None, alias="toolName"),
    page: int = Query(1),
    page_size: int = Query(20, alias="pageSize"),
    service: AdminMCPProviderService = Depends(get_admin_service),
    _admin: UserModel = Depends(require_admin),
) -> dict:
    """
    Paged usage logs, newest first.

    ``toolName`` matches as a substring; provider and user ids match exactly.
    Out-of-range paging values are clamped.
    """
    log_filter = MCPUsageLogFilter(
        mcp_provider_id=mcp_provider_id,
        user_id=user_id,
        tool_name=tool_name,
        page=page,
        page_size=page_size,
    )
    return envelope(await service.get_usage_logs(log_filter))


@router.get("/statistics")
async def get_usage_statistics(
    days: Optional[int] = Query(None),
    service: AdminMCPProviderService = Depends(get_admin_service),
    _admin: UserModel = Depends(require_admin),
) -> dict:
    """Daily usage for the last ``days`` days (default 7, clamped to 1..365)."""
    return envelope(await service.get_usage_statistics(days))


@router.put("/{provider_id}")
async def update_provider(
    provider_id: str,
    request: MCPProviderRequest,
    service: AdminMCPProviderService = Depends(get_admin_service),
    _admin: UserModel = Depends(require_admin),
):
    provider = await service.update_provider(provider_id, request)
    if provider is None:
        return _not_found()
    return envelope(provider)


@router.delete("/{provider_id}")
async def delete_provider(
    provider_id: str,
    service: AdminMCPProviderService = Depends(get_admin_service),
    _admin: UserModel = Depends(require_admin),
):
    if not await service.delete_provider(provider_id):
        return _not_found()
    return envelope(message="MCP provider deleted")
