"""Tests for the SaveManager add/restore use cases."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from savehaven.core.save_manager import SaveManager
from savehaven.core.transfer import FileTransfer
from savehaven.data.database import Database
from savehaven.data.repository import SaveRepository
from savehaven.errors import ConstraintError, NotFoundError, ParseError, TransferError
from savehaven.models.save_entry import NewSave


@pytest.fixture
def tmp_config(tmp_path: Path):
    """Create a mock Config pointing to a temp directory."""
    config = MagicMock()
    config.backup_path = tmp_path / "backups"
    config.data_dir = tmp_path
    return config


@pytest.fixture
def repo(db: Database) -> SaveRepository:
    return SaveRepository(db)


@pytest.fixture
def manager(tmp_config, db: Database, repo: SaveRepository) -> SaveManager:
    return SaveManager(tmp_config, db, repo, FileTransfer())


@pytest.fixture
def save_file(tmp_path: Path) -> Path:
    path = tmp_path / "live" / "celeste.sav"
    path.parent.mkdir()
    path.write_bytes(b"chapter 7 summit")
    return path


def _new_save(source: Path, **overrides) -> NewSave:
    fields = dict(
        title="Celeste",
        source_path=source,
        publisher="Matt Makes Games",
        release_date=date(2018, 1, 25),
        platform="PC",
        notes="before the summit",
    )
    fields.update(overrides)
    return NewSave(**fields)


def _backup_files(tmp_path: Path) -> list[Path]:
    root = tmp_path / "backups"
    return [p for p in root.rglob("*") if p.is_file()] if root.exists() else []


class TestAddSave:
    def test_records_and_copies(self, manager: SaveManager, save_file: Path, tmp_path: Path) -> None:
        entry = manager.add_save(_new_save(save_file))

        assert entry.game.title == "Celeste"
        assert entry.platform_name == "PC"
        assert entry.backup_path.read_bytes() == b"chapter 7 summit"
        assert entry.backup_path.is_relative_to(tmp_path / "backups")
        assert entry.metadata.source_path == str(save_file.resolve())
        assert entry.metadata.notes == "before the summit"
        assert entry.metadata.size == len(b"chapter 7 summit")

    def test_reuses_game_with_same_title(
        self, manager: SaveManager, save_file: Path, count_rows
    ) -> None:
        first = manager.add_save(_new_save(save_file))
        second = manager.add_save(_new_save(save_file, notes="after"))
        assert first.game.id == second.game.id
        assert count_rows("Game") == 1
        assert count_rows("Save") == 2
        assert first.backup_path != second.backup_path

    def test_without_platform(self, manager: SaveManager, save_file: Path, count_rows) -> None:
        entry = manager.add_save(_new_save(save_file, platform=""))
        assert entry.platform is None
        assert "unknown" in entry.backup_path.parts
        assert count_rows("Platform") == 0

    def test_missing_source_rolls_back(
        self, manager: SaveManager, tmp_path: Path, count_rows
    ) -> None:
        with pytest.raises(TransferError):
            manager.add_save(_new_save(tmp_path / "missing.sav"))
        assert count_rows("Game") == 0
        assert count_rows("Platform") == 0
        assert count_rows("Location") == 0
        assert count_rows("Save") == 0

    def test_failed_insert_removes_copied_backup(
        self,
        manager: SaveManager,
        repo: SaveRepository,
        save_file: Path,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        count_rows,
    ) -> None:
        monkeypatch.setattr(repo, "add_save", MagicMock(side_effect=ConstraintError("rejected")))
        with pytest.raises(ConstraintError):
            manager.add_save(_new_save(save_file))
        assert count_rows("Game") == 0
        assert count_rows("Location") == 0
        assert _backup_files(tmp_path) == []

    def test_blank_title_rejected(self, manager: SaveManager, save_file: Path) -> None:
        with pytest.raises(ParseError):
            manager.add_save(_new_save(save_file, title="   "))

    def test_blank_path_rejected(self, manager: SaveManager, count_rows) -> None:
        with pytest.raises(ParseError):
            manager.add_save(_new_save(Path(""), source_path=""))
        assert count_rows("Game") == 0

    def test_parent_reference_gets_own_slot(
        self, manager: SaveManager, save_file: Path, tmp_path: Path
    ) -> None:
        live = save_file.parent
        (live / "sub").mkdir()
        entry = manager.add_save(_new_save(live / "sub" / ".."))
        assert entry.backup_path.name == "live"
        assert entry.backup_path.parent.parent == tmp_path / "backups" / "1" / "PC"
        assert (entry.backup_path / "celeste.sav").read_bytes() == b"chapter 7 summit"
        assert entry.metadata.is_dir

    def test_backup_root_defaults_to_data_dir(
        self, tmp_config, db: Database, repo: SaveRepository, tmp_path: Path
    ) -> None:
        tmp_config.backup_path = None
        manager = SaveManager(tmp_config, db, repo, FileTransfer())
        assert manager.backup_root == tmp_path / "backups"


class TestLookup:
    def test_find_games_unknown_title(self, manager: SaveManager, count_rows) -> None:
        with pytest.raises(NotFoundError):
            manager.find_games("Nope")
        assert count_rows("Game") == 0

    def test_saves_for_game(self, manager: SaveManager, save_file: Path) -> None:
        entry = manager.add_save(_new_save(save_file))
        entries = manager.saves_for_game(entry.game)
        assert [e.save.id for e in entries] == [entry.save.id]

    def test_get_entry_unknown(self, manager: SaveManager) -> None:
        with pytest.raises(NotFoundError):
            manager.get_entry(42)

    def test_free_form_metadata_kept_as_notes(
        self, manager: SaveManager, repo: SaveRepository
    ) -> None:
        game_id = repo.add_game("Doom", "", None)
        save_id = repo.add_save(game_id, repo.add_location("/b/doom.sav", ""), "slot 3")
        entry = manager.get_entry(save_id)
        assert entry.metadata.notes == "slot 3"
        assert entry.default_destination is None

    def test_mistyped_metadata_kept_as_notes(
        self, manager: SaveManager, repo: SaveRepository
    ) -> None:
        raw = json.dumps({"source_path": "/live/doom.sav", "size": "x"})
        game_id = repo.add_game("Doom", "", None)
        save_id = repo.add_save(game_id, repo.add_location("/b/doom.sav", ""), raw)
        entry = manager.get_entry(save_id)
        assert entry.metadata.notes == raw
        assert entry.metadata.size == 0
        assert entry.default_destination is None


class TestRestoreSave:
    def test_restores_to_recorded_path(self, manager: SaveManager, save_file: Path) -> None:
        entry = manager.add_save(_new_save(save_file))
        save_file.write_bytes(b"overwritten")
        target = manager.restore_save(entry)
        assert target == save_file.resolve()
        assert save_file.read_bytes() == b"chapter 7 summit"

    def test_restores_to_explicit_path(
        self, manager: SaveManager, save_file: Path, tmp_path: Path
    ) -> None:
        entry = manager.add_save(_new_save(save_file))
        dest = tmp_path / "other" / "copy.sav"
        manager.restore_save(entry, dest)
        assert dest.read_bytes() == b"chapter 7 summit"

    def test_missing_backup(self, manager: SaveManager, save_file: Path) -> None:
        entry = manager.add_save(_new_save(save_file))
        entry.backup_path.unlink()
        save_file.write_bytes(b"current")
        with pytest.raises(NotFoundError):
            manager.restore_save(entry)
        assert save_file.read_bytes() == b"current"

    def test_no_destination_available(self, manager: SaveManager, repo: SaveRepository) -> None:
        game_id = repo.add_game("Doom", "", None)
        save_id = repo.add_save(game_id, repo.add_location("/b/doom.sav", ""), "")
        with pytest.raises(ParseError):
            manager.restore_save(manager.get_entry(save_id))


class TestRestoreItems:
    @pytest.fixture
    def folder(self, tmp_path: Path) -> Path:
        path = tmp_path / "live" / "Saves"
        path.mkdir(parents=True)
        (path / "a.sav").write_text("a")
        (path / "b.sav").write_text("b")
        return path

    def test_lists_backup_items(self, manager: SaveManager, folder: Path) -> None:
        entry = manager.add_save(_new_save(folder))
        assert manager.backup_items(entry) == ["a.sav", "b.sav"]

    def test_restores_one_item(self, manager: SaveManager, folder: Path) -> None:
        entry = manager.add_save(_new_save(folder))
        (folder / "a.sav").write_text("changed")
        (folder / "b.sav").write_text("changed")

        target = manager.restore_item(entry, "b.sav")
        assert target == folder.resolve() / "b.sav"
        assert (folder / "b.sav").read_text() == "b"
        assert (folder / "a.sav").read_text() == "changed"

    def test_missing_backup(self, manager: SaveManager, folder: Path) -> None:
        entry = manager.add_save(_new_save(folder))
        (entry.backup_path / "a.sav").unlink()
        (entry.backup_path / "b.sav").unlink()
        entry.backup_path.rmdir()
        with pytest.raises(NotFoundError):
            manager.backup_items(entry)
