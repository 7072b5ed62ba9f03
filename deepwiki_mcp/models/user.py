"""User model"""

import enum
from sqlalchemy import Column, String, Boolean, Enum, Index
from deepwiki_mcp.models.base import BaseModel, SoftDeleteMixin


class UserRole(str, enum.Enum):
    """User role used for admin checks"""
    ADMIN = "admin"
    USER = "user"


class UserModel(SoftDeleteMixin, BaseModel):
    """
    User account as seen by the MCP backend.

    Accounts and credentials are owned by the identity service; this service
    only reads them to authorize admin endpoints and to show display names
    next to usage logs.
    """
    __tablename__ = "users"

    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    role = Column(
        Enum(UserRole, values_callable=lambda roles: [r.value for r in roles]),
        default=UserRole.USER,
        nullable=False
    )
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index('idx_users_email', 'email'),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, name={self.name}, role={self.role})>"
