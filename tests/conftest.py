"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from savehaven.data.database import Database


@pytest.fixture
def db(tmp_path: Path):
    """Open a fresh catalogue database in a temp directory."""
    database = Database(tmp_path / "games.db")
    yield database
    database.close()


@pytest.fixture
def count_rows(db: Database) -> Callable[[str], int]:
    """Row count of a catalogue table."""

    def _count(table: str) -> int:
        return db.conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    return _count
