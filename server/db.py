"""DuckDB connection, schema DDL, thread-safe query helpers."""
import os
import threading
from pathlib import Path
from typing import Any

import duckdb

_lock = threading.RLock()
_conn: duckdb.DuckDBPyConnection | None = None

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS files (
    machine_id  TEXT        NOT NULL,
    path        TEXT        NOT NULL,
    filename    TEXT        NOT NULL,
    size        BIGINT      NOT NULL,
    mtime       TIMESTAMPTZ NOT NULL,
    hash        TEXT        NOT NULL,
    created_at  TIMESTAMPTZ DEFAULT now(),
    PRIMARY KEY (machine_id, path, filename)
);

CREATE INDEX IF NOT EXISTS idx_files_hash ON files(hash);
"""


def get_db_path() -> str:
    if path := os.environ.get("FILEDEDUP_DB_PATH"):
        return path
    return str(Path.home() / ".filededup.duckdb")


def get_connection() -> duckdb.DuckDBPyConnection:
    if _conn is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _conn


def init_db(db_path: str | None = None) -> None:
    global _conn
    with _lock:
        if _conn is not None:
            return
        _conn = duckdb.connect(db_path or get_db_path())
        for stmt in _split_statements(SCHEMA_SQL):
            _conn.execute(stmt)


def close_db() -> None:
    global _conn
    with _lock:
        if _conn is not None:
            _conn.close()
        _conn = None


def _split_statements(sql: str) -> list[str]:
    return [s.strip() for s in sql.split(";") if s.strip()]


def execute(sql: str, params: list[Any] | None = None) -> None:
    """Execute a write statement under the global lock."""
    with _lock:
        conn = get_connection()
        if params:
            conn.execute(sql, params)
        else:
            conn.execute(sql)


def query(sql: str, params: list[Any] | None = None) -> list[tuple]:
    """Execute a SELECT and return all rows under the global lock."""
    with _lock:
        conn = get_connection()
        if params:
            result = conn.execute(sql, params)
        else:
            result = conn.execute(sql)
        return result.fetchall()


def query_one(sql: str, params: list[Any] | None = None) -> tuple | None:
    rows = query(sql, params)
    return rows[0] if rows else None
