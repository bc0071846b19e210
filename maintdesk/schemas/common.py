# maintdesk/schemas/common.py
from pydantic import BaseModel
from typing import Any, Optional, Generic, TypeVar

from maintdesk.utils.datetime_utils import get_utc_now, to_iso_string

T = TypeVar('T')

class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Optional[dict[str, Any]] = None

class APIResponse(BaseModel, Generic[T]):
    """Standard API response envelope."""
    success: bool
    data: Optional[T] = None
    error: Optional[ErrorDetail] = None
    meta: dict[str, Any] = {}

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool
    
    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        pages = (total + limit - 1) // limit
        return cls(
            page=page,
            limit=limit,
            total=total,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
        )

class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated list response."""
    items: list[T]
    pagination: Pagination

def response_meta() -> dict[str, Any]:
    return {"timestamp": to_iso_string(get_utc_now())}

def ok(data: Any = None, **meta: Any) -> APIResponse:
    """Success envelope with a timestamp in meta."""
    return APIResponse(success=True, data=data, meta={**response_meta(), **meta})
