"""
Shared fixtures.

`FakePool` mimics the part of asyncpg's pool/connection surface the API uses
(acquire, transaction, fetchrow, cursor) over an in-memory status table, and
raises real asyncpg exception classes so error classification is exercised
as in production.
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any

import asyncpg
import pytest
from fastapi.testclient import TestClient

from core import db
from helpers import foreign_key_violation, unique_violation
from statuses import repository


class FakeStore:
    def __init__(self) -> None:
        self.rows: dict[int, str] = {}
        self.referenced: set[int] = set()
        self.statements: list[str] = []
        self.events: list[str] = []
        self.fail_with: BaseException | None = None
        self.commit_error: BaseException | None = None
        self._next_id = 1
        self._planned_ids: list[int] = []

    def plan_ids(self, *ids: int) -> None:
        self._planned_ids.extend(ids)

    def _new_id(self) -> int:
        if self._planned_ids:
            return self._planned_ids.pop(0)
        while self._next_id in self.rows:
            self._next_id += 1
        new_id = self._next_id
        self._next_id += 1
        return new_id

    def _id_of(self, name: str) -> int | None:
        for status_id, existing in self.rows.items():
            if existing == name:
                return status_id
        return None

    def snapshot(self) -> dict[int, str]:
        return copy.deepcopy(self.rows)

    def restore(self, rows: dict[int, str]) -> None:
        self.rows = rows

    def run(self, sql: str, args: tuple[Any, ...]) -> list[dict[str, Any]]:
        self.statements.append(sql)
        if self.fail_with is not None:
            raise self.fail_with

        if sql == repository.INSERT_STATUS_SQL:
            (name,) = args
            if self._id_of(name) is not None:
                raise unique_violation()
            status_id = self._new_id()
            self.rows[status_id] = name
            return [{"id": status_id}]

        if sql == repository.SELECT_NAME_BY_ID_SQL:
            (status_id,) = args
            return [{"name": self.rows[status_id]}] if status_id in self.rows else []

        if sql == repository.SELECT_ID_BY_NAME_SQL:
            status_id = self._id_of(args[0])
            return [{"id": status_id}] if status_id is not None else []

        if sql in (repository.DELETE_BY_ID_SQL, repository.DELETE_BY_NAME_SQL):
            if sql == repository.DELETE_BY_ID_SQL:
                status_id = args[0] if args[0] in self.rows else None
            else:
                status_id = self._id_of(args[0])
            if status_id is None:
                return []
            if status_id in self.referenced:
                raise foreign_key_violation()
            name = self.rows.pop(status_id)
            return [{"id": status_id, "name": name}]

        if sql in (repository.UPDATE_NAME_BY_ID_SQL, repository.UPDATE_NAME_BY_NAME_SQL):
            new_name, key = args
            if sql == repository.UPDATE_NAME_BY_ID_SQL:
                status_id = key if key in self.rows else None
            else:
                status_id = self._id_of(key)
            if status_id is None:
                return []
            owner = self._id_of(new_name)
            if owner is not None and owner != status_id:
                raise unique_violation()
            self.rows[status_id] = new_name
            return [{"id": status_id}]

        if sql == repository.LIST_STATUSES_SQL:
            return [{"id": k, "name": v} for k, v in sorted(self.rows.items())]

        if sql.strip() == "SELECT 1 AS ok":
            return [{"ok": 1}]

        raise asyncpg.UndefinedTableError(f"fake store does not understand: {sql.strip()[:60]}")


class FakeTransaction:
    def __init__(self, conn: FakeConnection) -> None:
        self._conn = conn
        self._saved: dict[int, str] | None = None

    async def start(self) -> None:
        self._saved = self._conn.store.snapshot()
        self._conn.in_transaction = True
        self._conn.store.events.append("begin")

    async def commit(self) -> None:
        await asyncio.sleep(0)
        self._conn.in_transaction = False
        if self._conn.store.commit_error is not None:
            self._conn.store.restore(self._saved or {})
            self._conn.store.events.append("commit_failed")
            raise self._conn.store.commit_error
        self._conn.store.events.append("commit")

    async def rollback(self) -> None:
        await asyncio.sleep(0)
        self._conn.in_transaction = False
        self._conn.store.restore(self._saved or {})
        self._conn.store.events.append("rollback")


class FakeCursor:
    def __init__(self, rows: list[dict[str, Any]]) -> None:
        self._rows = rows

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for row in self._rows:
            await asyncio.sleep(0)
            yield row


class FakeConnection:
    def __init__(self, store: FakeStore) -> None:
        self.store = store
        self.in_transaction = False

    def transaction(self) -> FakeTransaction:
        return FakeTransaction(self)

    async def fetchrow(self, sql: str, *args: Any) -> dict[str, Any] | None:
        await asyncio.sleep(0)
        rows = self.store.run(sql, args)
        return rows[0] if rows else None

    def cursor(self, sql: str, *args: Any) -> FakeCursor:
        if not self.in_transaction:
            raise asyncpg.InterfaceError("cursor cannot be created outside of a transaction")
        return FakeCursor(self.store.run(sql, args))


class _Acquire:
    def __init__(self, pool: FakePool) -> None:
        self._pool = pool
        self._conn: FakeConnection | None = None

    async def __aenter__(self) -> FakeConnection:
        if self._pool.acquire_error is not None:
            raise self._pool.acquire_error
        self._pool.active += 1
        self._pool.acquired += 1
        self._conn = FakeConnection(self._pool.store)
        return self._conn

    async def __aexit__(self, *exc_info: Any) -> None:
        assert self._conn is not None
        self._pool.active -= 1
        self._pool.released += 1
        if self._conn.in_transaction:
            self._pool.released_mid_transaction += 1


class FakePool:
    def __init__(self, store: FakeStore) -> None:
        self.store = store
        self.active = 0
        self.acquired = 0
        self.released = 0
        self.released_mid_transaction = 0
        self.acquire_error: BaseException | None = None
        self.closed = False

    def acquire(self) -> _Acquire:
        return _Acquire(self)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def fake_pool(store: FakeStore):
    pool = FakePool(store)
    db.set_pool(pool)
    yield pool
    db.set_pool(None)


@pytest.fixture
def client(fake_pool: FakePool):
    from main import app

    with TestClient(app) as test_client:
        yield test_client
