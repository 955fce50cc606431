"""
Items SQL (raw).

Listing uses seek pagination over `items.id`:
- newest first (`ORDER BY id DESC`)
- the next page is everything with `id < last id of this page`

Query text is built only from constants and placeholder numbers. Filter
values and the cursor are always bound as parameters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import asyncpg

from core import db, rows

from .params import ItemFilters, PageRequest

ITEMS_TABLE = "items"


@dataclass(frozen=True)
class ListQuery:
    sql: str
    args: tuple[Any, ...]


def build_list_query(filters: ItemFilters, page: PageRequest) -> ListQuery:
    where = ["1=1"]
    args: list[Any] = []

    for column, value in filters.active():
        args.append(value)
        where.append(f"{column} = ${len(args)}")

    if page.after_id is not None and page.after_id > 0:
        args.append(page.after_id)
        where.append(f"id < ${len(args)}::bigint")

    args.append(page.per_page)
    sql = (
        f"SELECT * FROM {ITEMS_TABLE}\n"
        f"WHERE {' AND '.join(where)}\n"
        "ORDER BY id DESC\n"
        f"LIMIT ${len(args)}"
    )
    return ListQuery(sql=sql, args=tuple(args))


async def fetch_items(pool: asyncpg.Pool, query: ListQuery) -> list[rows.Row]:
    """
    Run a listing query on one pooled connection and return its rows.

    Raises StoreError("db query failed") for connection/query errors and
    StoreError("db scan failed") when a record does not match the statement's columns.
    """
    try:
        async with pool.acquire() as conn:
            stmt = await conn.prepare(query.sql)
            columns = rows.column_names(stmt.get_attributes())
            records = await stmt.fetch(*query.args)
    except (
        asyncpg.PostgresError,
        asyncpg.InterfaceError,
        asyncpg.exceptions.InternalClientError,
        OSError,
    ) as exc:
        raise db.StoreError("db query failed") from exc

    try:
        return rows.materialize(columns, records)
    except rows.RowDecodeError as exc:
        raise db.StoreError("db scan failed") from exc
