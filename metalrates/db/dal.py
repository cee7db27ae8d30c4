"""Data access for the admin-posted shop rate.

The shop keeps exactly one row of gold/silver prices that staff edit by hand
(optionally seeded from the live quote). Upserts keep the single-row shape.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
import sqlite3
from typing import Any, Dict, Optional

from .schema import BASIC_UTC_NOW


class StoreRateRepository:
    def __init__(self, db_path: Path):
        self.db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def get(self) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                "SELECT gold_rate, silver_rate, updated_at FROM store_rates WHERE id = 1"
            )
            row = cur.fetchone()
            return dict(row) if row else None

    def set(self, gold_rate: float, silver_rate: float) -> Dict[str, Any]:
        if gold_rate <= 0 or silver_rate <= 0:
            raise ValueError("store rates must be positive")
        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT INTO store_rates (id, gold_rate, silver_rate)
                VALUES (1, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    gold_rate = excluded.gold_rate,
                    silver_rate = excluded.silver_rate,
                    updated_at = ({BASIC_UTC_NOW})
                """,
                (float(gold_rate), float(silver_rate)),
            )
        row = self.get()
        if row is None:  # pragma: no cover
            raise RuntimeError("store rate missing after upsert")
        return row


class InMemoryStoreRateRepository:
    """Same contract as StoreRateRepository for the 'memory' storage backend."""

    def __init__(self) -> None:
        self._row: Optional[Dict[str, Any]] = None

    def get(self) -> Optional[Dict[str, Any]]:
        return dict(self._row) if self._row else None

    def set(self, gold_rate: float, silver_rate: float) -> Dict[str, Any]:
        if gold_rate <= 0 or silver_rate <= 0:
            raise ValueError("store rates must be positive")
        self._row = {
            "gold_rate": float(gold_rate),
            "silver_rate": float(silver_rate),
            "updated_at": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
        }
        return dict(self._row)
