from __future__ import annotations

from datetime import datetime, timezone
import os
from pathlib import Path
import sqlite3

DAYS_KEY = "kpi_tracker_data_v1"
CATEGORIES_KEY = "kpi_tracker_categories_v1"

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv_store (
  key TEXT PRIMARY KEY,
  value TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
"""


def resolve_db_path() -> Path:
    data_dir = Path(os.getenv("KPI_TRACKER_DATA_DIR", "./data"))
    return Path(os.getenv("KPI_TRACKER_DB_PATH", data_dir / "app.db"))


def connect(db_path: Path) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    con = sqlite3.connect(db_path.as_posix())
    con.row_factory = sqlite3.Row
    return con


def _get_user_version(con: sqlite3.Connection) -> int:
    row = con.execute("PRAGMA user_version;").fetchone()
    return int(row[0]) if row else 0


def _set_user_version(con: sqlite3.Connection, version: int) -> None:
    con.execute(f"PRAGMA user_version = {version};")


def init_db(con: sqlite3.Connection) -> None:
    con.executescript(SCHEMA_SQL)
    if _get_user_version(con) < SCHEMA_VERSION:
        _set_user_version(con, SCHEMA_VERSION)
    con.commit()


def read_value(con: sqlite3.Connection, key: str) -> str | None:
    row = con.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
    return row["value"] if row else None


def write_value(con: sqlite3.Connection, key: str, value: str) -> None:
    """Upsert one entry. The caller owns the transaction."""
    con.execute(
        """
        INSERT INTO kv_store (key, value, updated_at)
        VALUES (?, ?, ?)
        ON CONFLICT(key) DO UPDATE SET
            value = excluded.value,
            updated_at = excluded.updated_at
        """,
        (key, value, datetime.now(timezone.utc).isoformat()),
    )


def delete_value(con: sqlite3.Connection, key: str) -> None:
    con.execute("DELETE FROM kv_store WHERE key = ?", (key,))
