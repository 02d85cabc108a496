"""SQLite storage — schema creation and the owned connection handle."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from loguru import logger

from savehaven.errors import StorageError

_SCHEMA = """
CREATE TABLE IF NOT EXISTS Game (
    id INTEGER PRIMARY KEY,
    title TEXT,
    publisher TEXT,
    release_date DATE
);

CREATE TABLE IF NOT EXISTS Platform (
    id INTEGER PRIMARY KEY,
    platform_name TEXT
);

CREATE TABLE IF NOT EXISTS Location (
    id INTEGER PRIMARY KEY,
    location_path TEXT,
    description TEXT
);

CREATE TABLE IF NOT EXISTS Save (
    id INTEGER PRIMARY KEY,
    game_id INTEGER NOT NULL,
    location_id INTEGER NOT NULL,
    metadata TEXT,
    platform_id INTEGER,
    FOREIGN KEY (game_id) REFERENCES Game(id),
    FOREIGN KEY (location_id) REFERENCES Location(id),
    FOREIGN KEY (platform_id) REFERENCES Platform(id)
);

CREATE INDEX IF NOT EXISTS idx_game_title ON Game(title);
CREATE INDEX IF NOT EXISTS idx_save_game ON Save(game_id);
"""


class Database:
    """
    Single SQLite connection, opened once and owned by the application context.

    The connection runs in autocommit mode; multi-statement writes go through
    ``transaction()``.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._depth = 0
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(str(db_path), isolation_level=None)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA foreign_keys = ON")
            self.conn.executescript(_SCHEMA)
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Cannot open database {db_path}: {e}") from e
        logger.debug(f"Opened database {db_path}")

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the enclosed statements atomically. Nested scopes join the outer one."""
        if self._depth:
            self._depth += 1
            try:
                yield self.conn
            finally:
                self._depth -= 1
            return

        try:
            self.conn.execute("BEGIN")
        except sqlite3.Error as e:
            raise StorageError(f"Cannot start transaction: {e}") from e
        self._depth = 1
        try:
            yield self.conn
        except BaseException:
            try:
                self.conn.execute("ROLLBACK")
                logger.debug("Transaction rolled back")
            except sqlite3.Error as e:
                logger.error(f"Rollback failed: {e}")
            raise
        else:
            try:
                self.conn.execute("COMMIT")
            except sqlite3.Error as e:
                if self.conn.in_transaction:
                    self.conn.rollback()
                raise StorageError(f"Cannot commit transaction: {e}") from e
        finally:
            self._depth = 0

    def close(self) -> None:
        self.conn.close()
        logger.debug(f"Closed database {self.db_path}")

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
