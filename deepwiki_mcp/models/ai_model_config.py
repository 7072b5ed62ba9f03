"""AI model configuration model"""

from sqlalchemy import Column, String, Boolean
from deepwiki_mcp.models.base import BaseModel, SoftDeleteMixin


class AIModelConfigModel(SoftDeleteMixin, BaseModel):
    """
    Chat model endpoint configured by admins.

    ``provider`` names the API dialect (``openai``, ``azureopenai``, ...).
    Read-only here: it picks the model that summarizes search results.
    """
    __tablename__ = "model_configs"

    name = Column(String(100), nullable=False)
    provider = Column(String(50), default="openai", nullable=False)
    model_id = Column(String(200), nullable=False)
    endpoint = Column(String(500), nullable=True)
    api_key = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<AIModelConfigModel(id={self.id}, name={self.name}, model_id={self.model_id})>"
