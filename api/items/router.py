"""
Items API endpoints.
"""

from __future__ import annotations

import asyncpg
from fastapi import APIRouter, Depends, Query

from core import db

from . import schemas, service
from .params import ItemFilters, PageRequest

router = APIRouter()


@router.get(
    "/v1/items",
    response_model=schemas.ItemsResponse,
    responses={500: {"model": schemas.ErrorResponse}},
)
async def list_items(
    category: str | None = Query(default=None),
    material: str | None = Query(default=None),
    # Taken as raw strings: bad values fall back to defaults instead of a 422.
    per_page: str | None = Query(default=None),
    after_id: str | None = Query(default=None),
    pool: asyncpg.Pool = Depends(db.get_pool),
) -> schemas.ItemsResponse:
    """
    List items newest first. Pass `meta.next_after_id` as `after_id` for the next page.
    """
    page = await service.list_items(
        pool,
        ItemFilters.from_raw(category=category, material=material),
        PageRequest.from_raw(per_page=per_page, after_id=after_id),
    )
    return schemas.ItemsResponse(
        meta=schemas.PageMeta(
            per_page=page.per_page,
            count=page.count,
            next_after_id=page.next_after_id,
        ),
        items=page.items,
    )
