"""RateStore — aiosqlite persistence for daily currency rates."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import aiosqlite

from dailyjobs.config import settings
from dailyjobs.currency.client import CURRENCY_MAPPING

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

RATE_COLUMNS = [column.lower() for column in CURRENCY_MAPPING.values()]

_CREATE_TABLE = f"""
CREATE TABLE IF NOT EXISTS daily_currency (
    tanggal TEXT PRIMARY KEY,
    {", ".join(f"{column} REAL" for column in RATE_COLUMNS)},
    created_at TEXT NOT NULL
)
"""


class RateStore:
    """Persists one row of IDR exchange rates per date.

    Pass an explicit *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path or settings.database_path
        self._initialised = False

    # -- Internal helpers ------------------------------------------------------

    async def _connect(self) -> aiosqlite.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        db = await aiosqlite.connect(str(self._db_path))
        if not self._initialised:
            await db.execute(_CREATE_TABLE)
            await db.commit()
            self._initialised = True
        return db

    # -- Queries ---------------------------------------------------------------

    async def has_date(self, date: str) -> bool:
        """Whether rates for *date* (``YYYY-MM-DD``) are stored."""
        db = await self._connect()
        try:
            cursor = await db.execute(
                "SELECT 1 FROM daily_currency WHERE tanggal = ?", (date,)
            )
            return await cursor.fetchone() is not None
        finally:
            await db.close()

    async def get_by_date(self, date: str) -> dict[str, Any] | None:
        """Return the stored row for *date* as ``{"Tanggal": ..., "USD": ...}``, or None."""
        db = await self._connect()
        try:
            cursor = await db.execute(
                f"SELECT tanggal, {', '.join(RATE_COLUMNS)} FROM daily_currency"
                " WHERE tanggal = ?",
                (date,),
            )
            row = await cursor.fetchone()
        finally:
            await db.close()
        if row is None:
            return None
        record: dict[str, Any] = {"Tanggal": row[0]}
        for column, value in zip(RATE_COLUMNS, row[1:], strict=True):
            record[column.upper()] = value
        return record

    async def insert(self, date: str, rates: dict[str, float]) -> bool:
        """Insert rates for *date*. Returns False if the date already exists."""
        values = [rates.get(column.upper()) for column in RATE_COLUMNS]
        db = await self._connect()
        try:
            cursor = await db.execute(
                f"INSERT OR IGNORE INTO daily_currency"
                f" (tanggal, {', '.join(RATE_COLUMNS)}, created_at)"
                f" VALUES (?, {', '.join('?' for _ in RATE_COLUMNS)}, ?)",
                (date, *values, datetime.now(UTC).isoformat()),
            )
            await db.commit()
            inserted = cursor.rowcount > 0
            if inserted:
                logger.info("Saved currency rates for %s (%d currencies)", date, len(rates))
            return inserted
        finally:
            await db.close()
