"""Base model with common fields"""

from datetime import datetime, timezone
from sqlalchemy import Column, TIMESTAMP, Boolean
from sqlalchemy.dialects.mysql import CHAR
from sqlalchemy.orm import declarative_base
import uuid

Base = declarative_base()


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the columns store UTC without tzinfo)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class BaseModel(Base):
    """
    Abstract base model with common fields for all tables.

    Provides:
    - id: UUID primary key
    - created_at: Timestamp of creation
    - updated_at: Timestamp of last update
    """
    __abstract__ = True

    id = Column(CHAR(36), primary_key=True, default=new_id)
    created_at = Column(TIMESTAMP, default=utcnow, nullable=False)
    updated_at = Column(
        TIMESTAMP,
        default=utcnow,
        onupdate=utcnow,
        nullable=False
    )


class SoftDeleteMixin:
    """Soft deletion flag and timestamp; rows are hidden instead of removed"""

    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    deleted_at = Column(TIMESTAMP, nullable=True)

    def mark_deleted(self) -> None:
        self.is_deleted = True
        self.deleted_at = utcnow()
