import asyncio
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import main

ITEM_COLUMNS = ("id", "category", "material", "name", "price", "in_stock", "discontinued_at")

_PREDICATE = re.compile(r"(\w+) (=|<) \$(\d+)")
_LIMIT = re.compile(r"LIMIT \$(\d+)")


@dataclass(frozen=True)
class FakeAttribute:
    name: str


class FakeStatement:
    """Evaluates the listing query shape (`col = $n`, `id < $n`, `ORDER BY id DESC`, `LIMIT $n`)."""

    def __init__(self, pool, sql):
        self.pool = pool
        self.sql = sql

    def get_attributes(self):
        self.pool.attribute_calls += 1
        return tuple(FakeAttribute(name) for name in self.pool.columns)

    async def fetch(self, *args, timeout=None):
        self.pool.executed.append((self.sql, args))
        if self.pool.delay_s:
            await asyncio.sleep(self.pool.delay_s)
        if self.pool.fetch_error is not None:
            raise self.pool.fetch_error

        assert "ORDER BY id DESC" in self.sql
        selected = list(self.pool.rows)
        for column, op, index in _PREDICATE.findall(self.sql):
            value = args[int(index) - 1]
            if op == "=":
                selected = [row for row in selected if row.get(column) == value]
            else:
                selected = [row for row in selected if row[column] < value]
        selected.sort(key=lambda row: row["id"], reverse=True)

        limit = _LIMIT.search(self.sql)
        assert limit is not None
        selected = selected[: args[int(limit.group(1)) - 1]]
        records = [tuple(row.get(name) for name in self.pool.columns) for row in selected]
        if self.pool.short_records:
            records = [record[:-1] for record in records]
        return records


class FakeConnection:
    def __init__(self, pool):
        self.pool = pool

    async def prepare(self, sql):
        if self.pool.prepare_error is not None:
            raise self.pool.prepare_error
        return FakeStatement(self.pool, sql)

    async def execute(self, sql, *args):
        self.pool.executed.append((sql, args))
        if self.pool.delay_s:
            await asyncio.sleep(self.pool.delay_s)
        if self.pool.execute_error is not None:
            raise self.pool.execute_error
        return "SELECT 1"


class FakePool:
    """In-memory stand-in for asyncpg.Pool."""

    def __init__(self, rows=(), columns=ITEM_COLUMNS):
        self.rows = list(rows)
        self.columns = tuple(columns)
        self.executed = []
        self.acquired = 0
        self.released = 0
        self.attribute_calls = 0
        self.delay_s = 0.0
        self.prepare_error = None
        self.fetch_error = None
        self.execute_error = None
        self.short_records = False

    @asynccontextmanager
    async def acquire(self):
        self.acquired += 1
        try:
            yield FakeConnection(self)
        finally:
            self.released += 1


def make_item(item_id, *, category="ring", material=None):
    return {
        "id": item_id,
        "category": category,
        "material": material or ("gold" if item_id % 2 else "silver"),
        "name": f"item-{item_id}".encode("utf-8"),
        "price": 10.5 * item_id,
        "in_stock": item_id % 3 != 0,
        "discontinued_at": None,
    }


@pytest.fixture
def ring_items():
    return [make_item(i) for i in range(1, 121)]


@pytest.fixture
def mixed_items():
    items = []
    for i in range(1, 61):
        category = ("ring", "necklace", "bracelet")[i % 3]
        material = ("gold", "silver")[i % 2]
        items.append(make_item(i, category=category, material=material))
    return items


@pytest.fixture
def ring_pool(ring_items):
    return FakePool(ring_items)


@pytest.fixture
def mixed_pool(mixed_items):
    return FakePool(mixed_items)


@pytest.fixture
def empty_pool():
    return FakePool([])


@pytest.fixture
def app():
    return main.create_app()


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
