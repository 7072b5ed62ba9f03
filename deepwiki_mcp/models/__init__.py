"""Database models"""

from deepwiki_mcp.models.base import Base, BaseModel, SoftDeleteMixin, utcnow
from deepwiki_mcp.models.user import UserModel, UserRole
from deepwiki_mcp.models.mcp_provider import MCPProviderModel
from deepwiki_mcp.models.mcp_usage_log import MCPUsageLogModel
from deepwiki_mcp.models.mcp_daily_statistic import MCPDailyStatisticModel
from deepwiki_mcp.models.ai_model_config import AIModelConfigModel
from deepwiki_mcp.models.documentation import (
    RepositoryModel,
    RepositoryBranchModel,
    BranchLanguageModel,
    DocCatalogModel,
    DocFileModel,
)

__all__ = [
    "Base",
    "BaseModel",
    "SoftDeleteMixin",
    "utcnow",
    "UserModel",
    "UserRole",
    "MCPProviderModel",
    "MCPUsageLogModel",
    "MCPDailyStatisticModel",
    "AIModelConfigModel",
    "RepositoryModel",
    "RepositoryBranchModel",
    "BranchLanguageModel",
    "DocCatalogModel",
    "DocFileModel",
]
