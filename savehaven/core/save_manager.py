"""Save manager — the add-save and retrieve/restore use cases."""

from __future__ import annotations

import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import uuid4

from loguru import logger

from savehaven.errors import NotFoundError, ParseError, StorageError
from savehaven.models.records import Game, Save
from savehaven.models.save_entry import NewSave, SaveEntry, SaveMetadata
from savehaven.utils import sanitize_filename

if TYPE_CHECKING:
    from savehaven.config import Config
    from savehaven.core.transfer import FileTransfer
    from savehaven.data.database import Database
    from savehaven.data.repository import SaveRepository


class SaveManager:
    """Catalogues saves and moves them between live locations and the backup store."""

    def __init__(
        self,
        config: Config,
        db: Database,
        repository: SaveRepository,
        transfer: FileTransfer,
    ) -> None:
        self._config = config
        self._db = db
        self._repo = repository
        self._transfer = transfer

    @property
    def backup_root(self) -> Path:
        return self._config.backup_path or self._config.data_dir / "backups"

    def _backup_destination(self, game_id: int, platform: str, source: Path) -> Path:
        """Unique managed path: <root>/<game_id>/<platform>/<timestamp>_<token>/<name>.

        ``source`` must be resolved so its name is never ``..`` or empty.
        """
        timestamp = datetime.now(tz=timezone.utc).strftime("%Y-%m-%d_%H-%M-%S")
        platform_dir = sanitize_filename(platform) or "unknown"
        slot = f"{timestamp}_{uuid4().hex[:6]}"
        return self.backup_root / str(game_id) / platform_dir / slot / (source.name or "save")

    def add_save(self, new_save: NewSave) -> SaveEntry:
        """
        Back up a save and record it.

        The Game, Location and Save writes share one transaction; if the copy
        or any insert fails, all of them are rolled back and copied files are
        removed.
        """
        if not new_save.title.strip():
            raise ParseError("A game title is required")
        if not str(new_save.source_path).strip():
            raise ParseError("A save file path is required")
        source = Path(new_save.source_path).expanduser().resolve()

        copied_to: Path | None = None
        try:
            with self._db.transaction():
                game = self._repo.find_game_by_title(new_save.title)
                if game:
                    logger.info(f"Reusing game #{game.id} for title '{game.title}'")
                else:
                    game_id = self._repo.add_game(
                        new_save.title, new_save.publisher, new_save.release_date
                    )
                    game = Game(
                        id=game_id,
                        title=new_save.title,
                        publisher=new_save.publisher,
                        release_date=new_save.release_date,
                    )

                platform_id = (
                    self._repo.find_or_add_platform(new_save.platform) if new_save.platform else None
                )

                dest = self._backup_destination(game.id, new_save.platform, source)
                location_id = self._repo.add_location(str(dest), f"Backup of {source}")

                copied_to = dest.parent
                self._transfer.backup(source, dest)

                metadata = SaveMetadata(
                    source_path=str(source),
                    notes=new_save.notes,
                    is_dir=source.is_dir(),
                    size=self._transfer.size_of(dest),
                )
                save_id = self._repo.add_save(game.id, location_id, metadata.to_json(), platform_id)
        except BaseException:
            if copied_to is not None:
                shutil.rmtree(copied_to, ignore_errors=True)
            raise

        logger.info(f"Saved '{game.title}' save #{save_id} to {dest}")
        return self.get_entry(save_id)

    def list_games(self) -> list[Game]:
        return self._repo.all_games()

    def find_games(self, title: str) -> list[Game]:
        """All games with exactly this title. Raises NotFoundError when there are none."""
        games = self._repo.find_games_by_title(title)
        if not games:
            raise NotFoundError(f"No games found with title '{title}'")
        return games

    def get_entry(self, save_id: int) -> SaveEntry:
        save = self._repo.get_save(save_id)
        if save is None:
            raise NotFoundError(f"No save with id {save_id}")
        return self._join(save)

    def saves_for_game(self, game: Game) -> list[SaveEntry]:
        return [self._join(save, game) for save in self._repo.find_saves_for_game(game.id)]

    def _join(self, save: Save, game: Game | None = None) -> SaveEntry:
        game = game or self._repo.get_game(save.game_id)
        location = self._repo.get_location(save.location_id)
        if game is None or location is None:
            # Foreign keys make this unreachable unless the file was edited externally
            raise StorageError(f"Save #{save.id} references missing records")
        platform = self._repo.get_platform(save.platform_id) if save.platform_id else None
        return SaveEntry(
            save=save,
            game=game,
            location=location,
            platform=platform,
            metadata=SaveMetadata.from_text(save.metadata),
        )

    @staticmethod
    def _restore_target(entry: SaveEntry, destination: str | Path | None) -> Path:
        if destination:
            return Path(destination).expanduser()
        if entry.default_destination:
            return entry.default_destination
        raise ParseError("No restore destination given and none was recorded for this save")

    def restore_save(self, entry: SaveEntry, destination: str | Path | None = None) -> Path:
        """Copy a save back out of the backup store; defaults to its recorded source path."""
        target = self._restore_target(entry, destination)
        self._transfer.restore(entry.backup_path, target)
        logger.info(f"Restored save #{entry.save.id} of '{entry.game.title}' to {target}")
        return target

    def backup_items(self, entry: SaveEntry) -> list[str]:
        """Top-level names inside a folder backup, sorted."""
        return self._transfer.list_items(entry.backup_path)

    def restore_item(
        self, entry: SaveEntry, name: str, destination: str | Path | None = None
    ) -> Path:
        """Restore one top-level file or folder of a folder backup."""
        target_dir = self._restore_target(entry, destination)
        target = self._transfer.restore_item(entry.backup_path, name, target_dir)
        logger.info(f"Restored '{name}' of save #{entry.save.id} to {target}")
        return target
