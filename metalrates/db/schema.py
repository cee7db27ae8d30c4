"""Database schema DDL definitions and initialization utilities.

Tables:
  - metadata: key/value store holding the named rate slots (apiUsageToday,
    metalRatesCache) plus the schema version
  - store_rates: single-row admin-posted shop rate (gold/silver INR per gram)
"""

from __future__ import annotations
import sqlite3
from typing import Sequence
from pathlib import Path

BASIC_UTC_NOW = "strftime('%Y-%m-%dT%H:%M:%fZ','now')"
SCHEMA_VERSION = 1

METADATA_DDL = f"""
CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

STORE_RATES_DDL = f"""
CREATE TABLE IF NOT EXISTS store_rates (
    id INTEGER PRIMARY KEY CHECK (id = 1), -- single row
    gold_rate REAL NOT NULL CHECK (gold_rate > 0),
    silver_rate REAL NOT NULL CHECK (silver_rate > 0),
    created_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW}),
    updated_at TEXT NOT NULL DEFAULT ({BASIC_UTC_NOW})
);
"""

DDL_ORDER: Sequence[str] = (
    METADATA_DDL,
    STORE_RATES_DDL,
)


def init_db(path: Path) -> None:
    """Create all tables idempotently.

    Parameters
    ----------
    path: Path to SQLite database file.
    """
    conn = sqlite3.connect(path)
    try:
        cur = conn.cursor()
        for ddl in DDL_ORDER:
            cur.execute(ddl)
        cur.execute(
            f"""
            INSERT INTO metadata (key, value) VALUES ('schema_version', ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                updated_at = ({BASIC_UTC_NOW})
            """,
            (str(SCHEMA_VERSION),),
        )
        conn.commit()
    finally:
        conn.close()
