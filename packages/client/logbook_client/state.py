"""
Client-side selection state: which establishment and which calendar year the
user is currently looking at.

Values live in a small SQLite key/value file so they survive restarts. The
state is a two-phase object: ``open()`` connects to storage and ``hydrate()``
loads whatever was persisted. Nothing may read the selection before hydration
finishes, otherwise a restart would briefly show the defaults.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Callable

import aiosqlite
import structlog

log = structlog.get_logger()

ESTABLISHMENT_KEY = "osha-selected-establishment"
YEAR_KEY = "osha-selected-year"

_SCHEMA = """
CREATE TABLE IF NOT EXISTS client_state (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


def current_year() -> int:
    return datetime.now().year


def year_range(current: int | None = None) -> list[int]:
    """Selectable years: five back through two ahead, newest first."""
    current = current or current_year()
    return list(range(current + 2, current - 6, -1))


class SelectionStateNotReady(RuntimeError):
    """Raised when the selection is read before ``hydrate()`` has run."""


class SelectionState:
    """Persisted (establishment id, year) selection."""

    def __init__(self, db_path: str, *, default_year: Callable[[], int] = current_year):
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None
        self._default_year = default_year
        self._establishment_id: str | None = None
        self._year: int | None = None
        self._hydrated = False

    async def open(self) -> None:
        os.makedirs(os.path.dirname(self._db_path) or ".", exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(_SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> "SelectionState":
        await self.open()
        await self.hydrate()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # --- Hydration ---

    @property
    def is_hydrated(self) -> bool:
        return self._hydrated

    async def hydrate(self) -> None:
        """Load persisted values into memory. Bad values fall back to defaults."""
        saved_establishment = await self._get(ESTABLISHMENT_KEY)
        saved_year = await self._get(YEAR_KEY)

        self._establishment_id = saved_establishment or None
        self._year = self._default_year()
        if saved_year is not None:
            try:
                self._year = int(saved_year)
            except ValueError:
                log.debug("selection.year_discarded", value=saved_year)

        self._hydrated = True
        log.debug(
            "selection.hydrated",
            establishment_id=self._establishment_id,
            year=self._year,
        )

    # --- Selection ---

    def _require_hydrated(self) -> None:
        if not self._hydrated:
            raise SelectionStateNotReady("Selection state has not been hydrated yet")

    @property
    def establishment_id(self) -> str | None:
        self._require_hydrated()
        return self._establishment_id

    @property
    def year(self) -> int:
        self._require_hydrated()
        return self._year

    async def set_establishment_id(self, establishment_id: str | None) -> None:
        """Select an establishment; None clears the persisted selection."""
        self._establishment_id = establishment_id
        if establishment_id:
            await self._put(ESTABLISHMENT_KEY, establishment_id)
        else:
            self._establishment_id = None
            await self._delete(ESTABLISHMENT_KEY)
        log.info("selection.establishment_set", establishment_id=self._establishment_id)

    async def set_year(self, year: int) -> None:
        self._year = year
        await self._put(YEAR_KEY, str(year))
        log.info("selection.year_set", year=year)

    # --- Storage ---

    async def _get(self, key: str) -> str | None:
        assert self._db
        cursor = await self._db.execute(
            "SELECT value FROM client_state WHERE key = ?", (key,)
        )
        row = await cursor.fetchone()
        return row["value"] if row else None

    async def _put(self, key: str, value: str) -> None:
        assert self._db
        now = datetime.now(timezone.utc).isoformat()
        await self._db.execute(
            """INSERT INTO client_state (key, value, updated_at)
               VALUES (?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET value=?, updated_at=?""",
            (key, value, now, value, now),
        )
        await self._db.commit()

    async def _delete(self, key: str) -> None:
        assert self._db
        await self._db.execute("DELETE FROM client_state WHERE key = ?", (key,))
        await self._db.commit()
