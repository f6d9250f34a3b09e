"""SQLite-backed durable tier; blocking calls run in a worker thread."""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from itinerary_jobs.shared.exceptions import DurableTierDataError, DurableTierUnavailable

T = TypeVar("T")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS jobs (
    id INTEGER PRIMARY KEY,
    handle TEXT,
    status TEXT NOT NULL,
    result TEXT,
    error TEXT,
    diagnostics TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""

_UNAVAILABLE_MARKERS = ("unable to open", "database is locked", "disk i/o", "readonly database")


def _to_json(payload: Any) -> str | None:
    if payload is None:
        return None
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)


def _from_json(raw: str | None) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DurableTierDataError("stored JSON column is corrupt", code="bad_payload") from exc


class SQLiteDurableTier:
    backend = "sqlite"

    def __init__(self, db_path: str | Path, *, create_schema: bool = True) -> None:
        self._db_path = Path(db_path)
        self._create_schema = create_schema
        self._schema_ready = False
        self._lock = threading.Lock()

    def _connect(self) -> sqlite3.Connection:
        if self._create_schema:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(self._db_path, timeout=5.0)

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        if self._schema_ready or not self._create_schema:
            return
        conn.executescript(_SCHEMA)
        self._schema_ready = True

    def _run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        try:
            with self._lock:
                conn = self._connect()
                try:
                    with conn:
                        self._ensure_schema(conn)
                        return fn(conn)
                finally:
                    conn.close()
        except sqlite3.OperationalError as exc:
            message = str(exc).lower()
            if "no such table" in message:
                raise DurableTierDataError(f"sqlite: {exc}", code="missing_table") from exc
            if any(marker in message for marker in _UNAVAILABLE_MARKERS):
                raise DurableTierUnavailable(f"sqlite unavailable: {exc}") from exc
            raise DurableTierDataError(f"sqlite: {exc}", code="operational_error") from exc
        except sqlite3.DatabaseError as exc:
            raise DurableTierDataError(f"sqlite: {exc}", code="database_error") from exc
        except OSError as exc:
            raise DurableTierUnavailable(f"sqlite unavailable: {exc}") from exc

    async def upsert(self, key: int, record: dict[str, Any]) -> None:
        def _write(conn: sqlite3.Connection) -> None:
            conn.execute(
                """
                INSERT INTO jobs (id, handle, status, result, error, diagnostics, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    handle=excluded.handle,
                    status=excluded.status,
                    result=excluded.result,
                    error=excluded.error,
                    diagnostics=excluded.diagnostics,
                    created_at=excluded.created_at,
                    updated_at=excluded.updated_at
                """,
                (
                    key,
                    record.get("handle"),
                    record["status"],
                    _to_json(record.get("result")),
                    record.get("error"),
                    _to_json(record.get("diagnostics")),
                    record["created_at"],
                    record["updated_at"],
                ),
            )

        await asyncio.to_thread(self._run, _write)

    async def lookup(self, key: int) -> Optional[dict[str, Any]]:
        def _read(conn: sqlite3.Connection) -> Optional[tuple]:
            return conn.execute(
                """
                SELECT id, handle, status, result, error, diagnostics, created_at, updated_at
                FROM jobs WHERE id = ?
                """,
                (key,),
            ).fetchone()

        row = await asyncio.to_thread(self._run, _read)
        if row is None:
            return None
        return {
            "id": row[0],
            "handle": row[1],
            "status": row[2],
            "result": _from_json(row[3]),
            "error": row[4],
            "diagnostics": _from_json(row[5]),
            "created_at": row[6],
            "updated_at": row[7],
        }

    async def close(self) -> None:
        return None


__all__ = ["SQLiteDurableTier"]
