"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`).

Every borrowed connection goes through one of two scopes:
- `connection()`  -> a bare connection, released on exit
- `transaction()` -> a connection inside a transaction, committed on normal
                     exit and rolled back on any exception (cancellation too)

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

logger = logging.getLogger(__name__)

T = TypeVar("T")

_pool: asyncpg.Pool | None = None


class RowNotFoundError(LookupError):
    """
    A statement that must produce a row produced none.
    """

    def __init__(self, message: str = "No rows returned by a query that expected to return at least one row") -> None:
        super().__init__(message)


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    min_size = _env_int("DB_POOL_MIN_SIZE", 1)
    max_size = max(min_size, _env_int("DB_POOL_MAX_SIZE", 5))
    _pool = await asyncpg.create_pool(
        dsn=database_url(),
        min_size=min_size,
        max_size=max_size,
        command_timeout=30,
    )
    logger.info("db_pool_ready min_size=%s max_size=%s", min_size, max_size)


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None


def set_pool(new_pool: Any) -> None:
    """
    Install an already-created pool (used by tests and embedding apps).
    """
    global _pool
    _pool = new_pool


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


@asynccontextmanager
async def connection() -> AsyncIterator[asyncpg.Connection]:
    """
    Borrow one connection for the duration of the block.

    The connection goes back to the pool however the block exits.
    """
    async with pool().acquire() as conn:
        yield conn


async def _settle(step: Awaitable[None]) -> None:
    # Commit/rollback must finish before the connection is released,
    # even if the waiting task is cancelled meanwhile.
    task = asyncio.ensure_future(step)
    try:
        await asyncio.shield(task)
    except asyncio.CancelledError:
        if not task.done():
            await task
        raise


@asynccontextmanager
async def transaction() -> AsyncIterator[asyncpg.Connection]:
    """
    Borrow one connection and run the block inside a transaction.

    Normal exit commits; any exception rolls back and is re-raised. A failing
    commit propagates even though the block itself succeeded.
    """
    async with connection() as conn:
        tx = conn.transaction()
        await tx.start()
        try:
            yield conn
        except BaseException as exc:
            logger.debug("transaction_rollback reason=%s", type(exc).__name__)
            try:
                await _settle(tx.rollback())
            except Exception:
                logger.exception("transaction_rollback_failed")
            raise
        await _settle(tx.commit())


async def run(work: Callable[[asyncpg.Connection], Awaitable[T]], *, atomic: bool = False) -> T:
    """
    Run `work(conn)` inside a transaction when `atomic`, else on a bare connection.
    """
    scope = transaction() if atomic else connection()
    async with scope as conn:
        return await work(conn)


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_required(conn: asyncpg.Connection, sql: str, *args: Any) -> dict[str, Any]:
    """
    Run a query on `conn` and return its single row, raising RowNotFoundError when empty.
    """
    row = await conn.fetchrow(sql, *args)
    if row is None:
        raise RowNotFoundError()
    return _record_to_dict(row)
