"""
Async database access helpers (raw SQL) using asyncpg.

The connection pool is owned by the FastAPI app: `main.py` creates it in the
lifespan, stores it on `app.state.pool`, and closes it on shutdown. Request
handlers receive it through the `get_pool` dependency.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import asyncio
import os
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg
from fastapi import Request

DEFAULT_QUERY_TIMEOUT_S = 2.0
DEFAULT_HEALTHZ_TIMEOUT_S = 2.0


# Storage failures are explicit and separable from other runtime errors.
# The message is safe to show to API callers; the cause is chained.
class StoreError(RuntimeError):
    pass


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip() or os.environ.get("DB_DSN", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


def query_timeout_s() -> float:
    timeout = _env_float("ITEMS_QUERY_TIMEOUT_S", DEFAULT_QUERY_TIMEOUT_S)
    return timeout if timeout > 0 else DEFAULT_QUERY_TIMEOUT_S


def healthz_timeout_s() -> float:
    timeout = _env_float("HEALTHZ_TIMEOUT_S", DEFAULT_HEALTHZ_TIMEOUT_S)
    return timeout if timeout > 0 else DEFAULT_HEALTHZ_TIMEOUT_S


async def init_pool() -> asyncpg.Pool:
    min_size = max(_env_int("DB_POOL_MIN_SIZE", 1), 0)
    max_size = max(_env_int("DB_POOL_MAX_SIZE", 10), 1)
    return await asyncpg.create_pool(
        dsn=database_url(),
        min_size=min(min_size, max_size),
        max_size=max_size,
        max_inactive_connection_lifetime=_env_float("DB_CONN_MAX_IDLE_S", 300.0),
    )


async def close_pool(pool: asyncpg.Pool | None) -> None:
    if pool is None:
        return None
    await pool.close()


def get_pool(request: Request) -> asyncpg.Pool:
    """
    FastAPI dependency: the pool owned by the running app.
    """
    pool = getattr(request.app.state, "pool", None)
    if pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return pool


async def _select_one(pool: asyncpg.Pool) -> None:
    async with pool.acquire() as conn:
        await conn.execute("SELECT 1")


async def ping(pool: asyncpg.Pool, *, timeout_s: float | None = None) -> None:
    """
    Liveness check: round-trip a trivial query within the deadline.
    """
    timeout = timeout_s if timeout_s is not None else healthz_timeout_s()
    try:
        await asyncio.wait_for(_select_one(pool), timeout=timeout)
    except (
        asyncio.TimeoutError,
        asyncpg.PostgresError,
        asyncpg.InterfaceError,
        asyncpg.exceptions.InternalClientError,
        OSError,
    ) as exc:
        raise StoreError("db not ready") from exc
