"""Save repository — inserts and lookups over the Game/Platform/Location/Save tables."""

from __future__ import annotations

import sqlite3
from datetime import date
from typing import Any

from loguru import logger

from savehaven.data.database import Database
from savehaven.errors import ConstraintError, StorageError
from savehaven.models.records import Game, Location, Platform, Save


def _game_from_row(row: sqlite3.Row) -> Game:
    raw_date = row["release_date"]
    release_date = None
    if raw_date:
        try:
            release_date = date.fromisoformat(str(raw_date))
        except ValueError:
            logger.warning(f"Ignoring malformed release date for game {row['id']}: {raw_date!r}")
    return Game(
        id=row["id"],
        title=row["title"] or "",
        publisher=row["publisher"] or "",
        release_date=release_date,
    )


def _save_from_row(row: sqlite3.Row) -> Save:
    return Save(
        id=row["id"],
        game_id=row["game_id"],
        location_id=row["location_id"],
        metadata=row["metadata"] or "",
        platform_id=row["platform_id"],
    )


class SaveRepository:
    """
    Record access for the save catalogue.

    Game titles are not unique; title lookups resolve duplicates by
    insertion order (lowest id first).
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        try:
            return self._db.conn.execute(sql, params)
        except sqlite3.IntegrityError as e:
            raise ConstraintError(str(e)) from e
        except sqlite3.Error as e:
            raise StorageError(f"Database error: {e}") from e

    def _insert(self, sql: str, params: tuple[Any, ...]) -> int:
        cursor = self._execute(sql, params)
        row_id = cursor.lastrowid
        if row_id is None:
            raise StorageError("Insert did not return a row id")
        return row_id

    # ── Inserts ──

    def add_game(self, title: str, publisher: str, release_date: date | None) -> int:
        """Insert a Game. No uniqueness check is made on the title."""
        game_id = self._insert(
            "INSERT INTO Game (title, publisher, release_date) VALUES (?, ?, ?)",
            (title, publisher, release_date.isoformat() if release_date else None),
        )
        logger.info(f"Added game #{game_id}: {title}")
        return game_id

    def add_platform(self, name: str) -> int:
        platform_id = self._insert("INSERT INTO Platform (platform_name) VALUES (?)", (name,))
        logger.info(f"Added platform #{platform_id}: {name}")
        return platform_id

    def find_or_add_platform(self, name: str) -> int:
        existing = self.find_platform_by_name(name)
        if existing:
            return existing.id
        return self.add_platform(name)

    def add_location(self, path: str, description: str = "") -> int:
        location_id = self._insert(
            "INSERT INTO Location (location_path, description) VALUES (?, ?)",
            (path, description),
        )
        logger.debug(f"Added location #{location_id}: {path}")
        return location_id

    def add_save(
        self,
        game_id: int,
        location_id: int,
        metadata: str,
        platform_id: int | None = None,
    ) -> int:
        """Insert a Save. Unknown game, location or platform ids raise ConstraintError."""
        save_id = self._insert(
            "INSERT INTO Save (game_id, location_id, metadata, platform_id) VALUES (?, ?, ?, ?)",
            (game_id, location_id, metadata, platform_id),
        )
        logger.info(f"Added save #{save_id} for game #{game_id}")
        return save_id

    # ── Lookups ──

    def get_game(self, game_id: int) -> Game | None:
        row = self._execute("SELECT * FROM Game WHERE id = ?", (game_id,)).fetchone()
        return _game_from_row(row) if row else None

    def find_game_by_title(self, title: str) -> Game | None:
        """Exact-match title lookup. Duplicates resolve to the earliest inserted game."""
        row = self._execute(
            "SELECT * FROM Game WHERE title = ? ORDER BY id LIMIT 1", (title,)
        ).fetchone()
        return _game_from_row(row) if row else None

    def find_games_by_title(self, title: str) -> list[Game]:
        rows = self._execute("SELECT * FROM Game WHERE title = ? ORDER BY id", (title,))
        return [_game_from_row(row) for row in rows.fetchall()]

    def all_games(self) -> list[Game]:
        rows = self._execute("SELECT * FROM Game ORDER BY title, id")
        return [_game_from_row(row) for row in rows.fetchall()]

    def get_platform(self, platform_id: int) -> Platform | None:
        row = self._execute("SELECT * FROM Platform WHERE id = ?", (platform_id,)).fetchone()
        return Platform(id=row["id"], platform_name=row["platform_name"] or "") if row else None

    def find_platform_by_name(self, name: str) -> Platform | None:
        row = self._execute(
            "SELECT * FROM Platform WHERE platform_name = ? ORDER BY id LIMIT 1", (name,)
        ).fetchone()
        return Platform(id=row["id"], platform_name=row["platform_name"] or "") if row else None

    def get_location(self, location_id: int) -> Location | None:
        row = self._execute("SELECT * FROM Location WHERE id = ?", (location_id,)).fetchone()
        if not row:
            return None
        return Location(
            id=row["id"],
            location_path=row["location_path"] or "",
            description=row["description"] or "",
        )

    def get_save(self, save_id: int) -> Save | None:
        row = self._execute("SELECT * FROM Save WHERE id = ?", (save_id,)).fetchone()
        return _save_from_row(row) if row else None

    def find_saves_for_game(self, game_id: int) -> list[Save]:
        """All saves of a game in insertion order."""
        rows = self._execute("SELECT * FROM Save WHERE game_id = ? ORDER BY id", (game_id,))
        return [_save_from_row(row) for row in rows.fetchall()]
