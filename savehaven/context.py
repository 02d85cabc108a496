"""Application context — service container for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from savehaven.config import Config
    from savehaven.core.save_manager import SaveManager
    from savehaven.core.transfer import FileTransfer
    from savehaven.data.database import Database
    from savehaven.data.repository import SaveRepository


@dataclass
class AppContext:
    """
    Central service container.

    Owns the process-wide database handle; ``close()`` releases it at shutdown.
    """

    config: Config
    database: Database
    repository: SaveRepository
    transfer: FileTransfer
    save_manager: SaveManager

    def close(self) -> None:
        self.database.close()
