"""
Item listing (orchestration).

Flow:
1) Build the seek-pagination query from filters + page request
2) Run it on a pooled connection under a deadline
3) Derive the next cursor from the last returned row
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import asyncpg

from core import db
from core.rows import Row

from . import repository
from .params import ItemFilters, PageRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemsPage:
    items: list[Row]
    per_page: int
    count: int
    next_after_id: Any


def next_after_id(items: list[Row]) -> Any:
    # Rows are id DESC, so the last one carries the smallest id of the page.
    if not items:
        return None
    return items[-1].get("id")


async def list_items(
    pool: asyncpg.Pool,
    filters: ItemFilters,
    page: PageRequest,
    *,
    timeout_s: float | None = None,
) -> ItemsPage:
    """
    One page of items, newest first.

    The deadline covers connection acquisition and the query. Any storage
    failure is raised as db.StoreError; there are no partial pages.
    """
    timeout = timeout_s if timeout_s is not None else db.query_timeout_s()
    query = repository.build_list_query(filters, page)

    try:
        items = await asyncio.wait_for(repository.fetch_items(pool, query), timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.error(
            "items_query_timeout timeout_s=%s filters=%s after_id=%s per_page=%s",
            timeout,
            filters.active(),
            page.after_id,
            page.per_page,
        )
        raise db.StoreError("db query failed") from exc
    except db.StoreError as exc:
        logger.error(
            "items_query_failed error=%s cause=%r",
            exc,
            exc.__cause__,
            exc_info=exc.__cause__,
        )
        raise

    return ItemsPage(
        items=items,
        per_page=page.per_page,
        count=len(items),
        next_after_id=next_after_id(items),
    )
