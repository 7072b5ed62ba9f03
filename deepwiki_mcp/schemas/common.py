"""Common Pydantic schemas used across the application"""

from typing import Any, Dict, Generic, TypeVar, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


T = TypeVar('T')


class CamelModel(BaseModel):
    """Base schema serialized with camelCase field names (the admin UI contract)"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        protected_namespaces=(),
    )


class PagedResult(CamelModel, Generic[T]):
    """Schema for paginated response"""
    items: List[T] = Field(default_factory=list, description="List of items for current page")
    total: int = Field(0, ge=0, description="Total number of items")
    page: int = Field(1, ge=1, description="Current page number")
    page_size: int = Field(20, ge=1, description="Items per page")


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value


def envelope(data: Any = None, message: Optional[str] = None, success: bool = True) -> Dict[str, Any]:
    """Build the ``{success, data?, message?}`` body with camelCase payload keys"""
    body: Dict[str, Any] = {"success": success}
    if data is not None:
        body["data"] = _dump(data)
    if message is not None:
        body["message"] = message
    return body
