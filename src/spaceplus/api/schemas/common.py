"""Response envelope and pagination shared by every endpoint."""

from __future__ import annotations

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")
ItemT = TypeVar("ItemT")


class ApiResponse(BaseModel, Generic[DataT]):
    """Success envelope: ``{"success": true, "data": ..., "message": ...}``."""

    success: bool = Field(True, description="Whether the operation succeeded")
    data: DataT | None = Field(None, description="Operation payload")
    message: str | None = Field(None, description="Human-readable outcome")


class Page(BaseModel, Generic[ItemT]):
    """One page of a paginated listing."""

    items: list[ItemT] = Field(default_factory=list, description="Items on this page")
    total: int = Field(..., ge=0, description="Total number of matching items")
    page: int = Field(..., ge=1, description="Current page (1-based)")
    page_size: int = Field(..., ge=1, description="Items per page")
    total_pages: int = Field(..., ge=0, description="Number of pages")

    @classmethod
    def build(cls, items: list[ItemT], total: int, page: int, page_size: int) -> Page[ItemT]:
        return cls(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if total else 0,
        )
