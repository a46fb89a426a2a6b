"""
Status persistence (raw SQL).

Every statement here is a single mutating or reading statement, so a bare
connection is enough; listing iterates a server-side cursor, which asyncpg
only allows inside a transaction.
"""

from __future__ import annotations

from typing import Any

from core import db

INSERT_STATUS_SQL = """
    INSERT INTO issue_statuses (name)
    VALUES ($1)
    RETURNING id
"""

SELECT_NAME_BY_ID_SQL = """
    SELECT name
    FROM issue_statuses
    WHERE id = $1
"""

SELECT_ID_BY_NAME_SQL = """
    SELECT id
    FROM issue_statuses
    WHERE name = $1
"""

DELETE_BY_ID_SQL = """
    DELETE FROM issue_statuses
    WHERE id = $1
    RETURNING name
"""

DELETE_BY_NAME_SQL = """
    DELETE FROM issue_statuses
    WHERE name = $1
    RETURNING id
"""

UPDATE_NAME_BY_ID_SQL = """
    UPDATE issue_statuses
    SET name = $1
    WHERE id = $2
    RETURNING id
"""

UPDATE_NAME_BY_NAME_SQL = """
    UPDATE issue_statuses
    SET name = $1
    WHERE name = $2
    RETURNING id
"""

LIST_STATUSES_SQL = """
    SELECT id, name
    FROM issue_statuses
    ORDER BY id
"""


async def _one(sql: str, *args: Any) -> dict[str, Any]:
    return await db.run(lambda conn: db.fetch_required(conn, sql, *args))


async def insert_status(name: str) -> int:
    row = await _one(INSERT_STATUS_SQL, name)
    return int(row["id"])


async def get_name_by_id(status_id: int) -> str:
    row = await _one(SELECT_NAME_BY_ID_SQL, status_id)
    return str(row["name"])


async def get_id_by_name(name: str) -> int:
    row = await _one(SELECT_ID_BY_NAME_SQL, name)
    return int(row["id"])


async def delete_by_id(status_id: int) -> str:
    """
    Delete a status and return the name it had.
    """
    row = await _one(DELETE_BY_ID_SQL, status_id)
    return str(row["name"])


async def delete_by_name(name: str) -> int:
    """
    Delete a status and return the id it had.
    """
    row = await _one(DELETE_BY_NAME_SQL, name)
    return int(row["id"])


async def rename_by_id(status_id: int, new_name: str) -> int:
    row = await _one(UPDATE_NAME_BY_ID_SQL, new_name, status_id)
    return int(row["id"])


async def rename_by_name(name: str, new_name: str) -> int:
    row = await _one(UPDATE_NAME_BY_NAME_SQL, new_name, name)
    return int(row["id"])


async def list_statuses() -> list[dict[str, Any]]:
    """
    All statuses ordered by id, collected while the cursor streams rows.
    """
    statuses: list[dict[str, Any]] = []
    async with db.transaction() as conn:
        async for record in conn.cursor(LIST_STATUSES_SQL):
            statuses.append({"id": int(record["id"]), "name": str(record["name"])})
    return statuses
