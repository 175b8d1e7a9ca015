"""Shared response envelope, caller identity and pagination models."""

import math
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel

from swapapi.models.user import UserRole

T = TypeVar("T")


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Optional[dict] = None


class BaseResponse(BaseModel):
    """Envelope for every API response"""

    success: bool = True
    message: Optional[str] = None
    data: Optional[Any] = None
    errors: Optional[List[ErrorDetail]] = None


class Actor(BaseModel):
    """Authenticated caller passed explicitly to every service operation"""

    id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return UserRole.is_admin(self.role)

    @property
    def is_staff(self) -> bool:
        return self.role == UserRole.STAFF

    @property
    def is_driver(self) -> bool:
        return self.role == UserRole.DRIVER


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        return cls(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit) if limit else 0,
        )


class Page(BaseModel, Generic[T]):
    """Paginated projection: {items, pagination}"""

    items: List[T]
    pagination: PaginationMeta

