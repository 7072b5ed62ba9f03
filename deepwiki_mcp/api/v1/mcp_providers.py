"""Public MCP provider listing"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from deepwiki_mcp.core.database import get_db
from deepwiki_mcp.schemas.common import envelope
from deepwiki_mcp.services.admin_mcp_provider_service import AdminMCPProviderService

router = APIRouter(prefix="/mcp-providers", tags=["mcp-providers"])


@router.get("")
async def list_public_providers(db: AsyncSession = Depends(get_db)) -> dict:
    """
    Active MCP providers, visible without login.

    The system API key is never included; ``serverUrl`` is the
    repository-scoped path template clients fill in.
    """
    service = AdminMCPProviderService(db)
    return envelope(await service.list_public_providers())
