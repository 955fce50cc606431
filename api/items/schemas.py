"""
Items API schemas (response models).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class PageMeta(BaseModel):
    per_page: int = Field(..., ge=1)
    count: int = Field(..., ge=0)
    # Opaque cursor: whatever type the `id` column has.
    next_after_id: Any = None


class ItemsResponse(BaseModel):
    meta: PageMeta
    items: list[dict[str, Any]]


class ErrorResponse(BaseModel):
    error: str
