"""File transfer — copies saves into the backup store and back out again."""

from __future__ import annotations

import shutil
from pathlib import Path

from loguru import logger

from savehaven.errors import NotFoundError, TransferError


class FileTransfer:
    """
    Copy engine for backup and restore.

    Files are copied to a ``.tmp`` sibling first and then moved over the
    destination, so a failed copy never leaves a half-written save behind.
    Directories are copied recursively, merging into an existing destination.
    """

    def backup(self, source_path: str | Path, destination_path: str | Path) -> None:
        """Copy a live save (file or folder) into the backup store."""
        source = Path(source_path)
        if not source.exists():
            raise TransferError(f"Save not found: {source}")
        self._copy(source, Path(destination_path))
        logger.info(f"Backed up {source} -> {destination_path}")

    def restore(self, location_path: str | Path, destination_path: str | Path) -> None:
        """Copy a managed backup back to the game's save location.

        A file restored onto an existing folder is copied into that folder.
        """
        backup = Path(location_path)
        if not backup.exists():
            raise NotFoundError(f"Backup no longer exists: {backup}")
        self._copy(backup, Path(destination_path))
        logger.info(f"Restored {backup} -> {destination_path}")

    def list_items(self, location_path: str | Path) -> list[str]:
        """Top-level names inside a folder backup; a file backup yields its own name."""
        backup = Path(location_path)
        if not backup.exists():
            raise NotFoundError(f"Backup no longer exists: {backup}")
        if not backup.is_dir():
            return [backup.name]
        return sorted(child.name for child in backup.iterdir())

    def restore_item(
        self, location_path: str | Path, name: str, destination_dir: str | Path
    ) -> Path:
        """Copy one entry of a folder backup into ``destination_dir``."""
        backup = Path(location_path)
        item = backup / name if backup.is_dir() else backup
        if not item.exists() or item.name != name:
            raise NotFoundError(f"Backup item no longer exists: {backup / name}")
        target = Path(destination_dir) / name
        self._copy(item, target)
        logger.info(f"Restored {item} -> {target}")
        return target

    def _copy(self, source: Path, dest: Path) -> None:
        try:
            if source.is_file() and dest.is_dir():
                dest = dest / source.name
            dest.parent.mkdir(parents=True, exist_ok=True)
            if source.is_dir():
                shutil.copytree(source, dest, dirs_exist_ok=True)
            else:
                self._copy_file(source, dest)
        except shutil.Error as e:
            logger.error(f"Copy failed for {source}: {e}")
            raise TransferError(f"Failed to copy {source} to {dest}: {e}") from e
        except OSError as e:
            logger.error(f"Copy failed for {source}: {e}")
            raise TransferError(f"Failed to copy {source} to {dest}: {e.strerror or e}") from e

    @staticmethod
    def _copy_file(source: Path, dest: Path) -> None:
        tmp = dest.with_name(dest.name + ".tmp")
        try:
            shutil.copy2(source, tmp)
            tmp.replace(dest)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    @staticmethod
    def size_of(path: Path) -> int:
        """Total size in bytes of a file or folder."""
        if path.is_dir():
            return sum(child.stat().st_size for child in path.rglob("*") if child.is_file())
        return path.stat().st_size
