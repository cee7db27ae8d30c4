"""Key/value slot storage for the rate subsystem.

Responsibilities
----------------
- Persist the two named JSON slots (``apiUsageToday``, ``metalRatesCache``).
- Never raise on storage failure: every operation returns a ``StoreResult``
  so callers can tell "slot empty" apart from "storage threw".
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Generic, Optional, Protocol, TypeVar

from .schema import BASIC_UTC_NOW

logger = logging.getLogger("metalrates.store")

T = TypeVar("T")

USAGE_SLOT = "apiUsageToday"
CACHE_SLOT = "metalRatesCache"


@dataclass(frozen=True)
class StoreResult(Generic[T]):
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "StoreResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "StoreResult[T]":
        return cls(error=error)


class KeyValueStore(Protocol):
    def read(self, key: str) -> StoreResult[str]: ...

    def write(self, key: str, value: str) -> StoreResult[None]: ...

    def delete(self, key: str) -> StoreResult[bool]: ...


class InMemoryKeyValueStore:
    """Process-local store; contents vanish on restart."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> StoreResult[str]:
        return StoreResult.success(self._data.get(key))

    def write(self, key: str, value: str) -> StoreResult[None]:
        self._data[key] = value
        return StoreResult.success()

    def delete(self, key: str) -> StoreResult[bool]:
        return StoreResult.success(self._data.pop(key, None) is not None)


class SQLiteKeyValueStore:
    """Slots stored as rows of the ``metadata`` table."""

    def __init__(self, db_path: Path):
        self.db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def read(self, key: str) -> StoreResult[str]:
        try:
            with self._connect() as conn:
                cur = conn.cursor()
                cur.execute("SELECT value FROM metadata WHERE key=?", (key,))
                row = cur.fetchone()
        except sqlite3.Error as e:
            logger.warning("slot read failed", extra={"slot": key, "error": str(e)})
            return StoreResult.failure(e)
        return StoreResult.success(row[0] if row else None)

    def write(self, key: str, value: str) -> StoreResult[None]:
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO metadata(key,value) VALUES(?,?) ON CONFLICT(key) DO UPDATE "
                    f"SET value=excluded.value, updated_at=({BASIC_UTC_NOW})",
                    (key, value),
                )
        except sqlite3.Error as e:
            logger.warning("slot write failed", extra={"slot": key, "error": str(e)})
            return StoreResult.failure(e)
        return StoreResult.success()

    def delete(self, key: str) -> StoreResult[bool]:
        try:
            with self._connect() as conn:
                cur = conn.execute("DELETE FROM metadata WHERE key=?", (key,))
                removed = cur.rowcount > 0
        except sqlite3.Error as e:
            logger.warning("slot delete failed", extra={"slot": key, "error": str(e)})
            return StoreResult.failure(e)
        return StoreResult.success(removed)


__all__ = [
    "StoreResult",
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "SQLiteKeyValueStore",
    "USAGE_SLOT",
    "CACHE_SLOT",
]
