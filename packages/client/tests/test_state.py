"""Tests for persisted selection state."""

import aiosqlite
import pytest

from logbook_client.state import (
    ESTABLISHMENT_KEY,
    YEAR_KEY,
    SelectionState,
    SelectionStateNotReady,
    current_year,
    year_range,
)


async def test_defaults_when_nothing_persisted(state: SelectionState):
    assert state.is_hydrated
    assert state.establishment_id is None
    assert state.year == current_year()


async def test_selection_survives_reload(state_path):
    async with SelectionState(state_path) as s:
        await s.set_establishment_id("est-123")
        await s.set_year(2026)

    async with SelectionState(state_path, default_year=lambda: 1999) as reloaded:
        assert reloaded.establishment_id == "est-123"
        assert reloaded.year == 2026


async def test_read_before_hydration_raises(state_path):
    s = SelectionState(state_path)
    await s.open()
    try:
        assert not s.is_hydrated
        with pytest.raises(SelectionStateNotReady):
            s.year
        with pytest.raises(SelectionStateNotReady):
            s.establishment_id
        await s.hydrate()
        assert s.year == current_year()
    finally:
        await s.close()


async def test_corrupted_year_falls_back_to_default(state_path):
    async with SelectionState(state_path) as s:
        await s.set_year(2026)

    async with aiosqlite.connect(state_path) as db:
        await db.execute("UPDATE client_state SET value = ? WHERE key = ?", ("20x6", YEAR_KEY))
        await db.commit()

    async with SelectionState(state_path, default_year=lambda: 2031) as reloaded:
        assert reloaded.year == 2031


async def test_clear_establishment_removes_key(state_path):
    async with SelectionState(state_path) as s:
        await s.set_establishment_id("est-123")
        await s.set_establishment_id(None)
        assert s.establishment_id is None

    async with aiosqlite.connect(state_path) as db:
        cursor = await db.execute(
            "SELECT COUNT(*) FROM client_state WHERE key = ?", (ESTABLISHMENT_KEY,)
        )
        (count,) = await cursor.fetchone()
    assert count == 0


async def test_set_year_overwrites(state: SelectionState):
    await state.set_year(2024)
    await state.set_year(2025)
    assert state.year == 2025


def test_year_range():
    assert year_range(2026) == [2028, 2027, 2026, 2025, 2024, 2023, 2022, 2021]
