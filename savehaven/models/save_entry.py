"""Save metadata and the joined view used by the CLI."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path

from loguru import logger

from savehaven.models.records import Game, Location, Platform, Save


@dataclass
class SaveMetadata:
    """JSON document stored in Save.metadata."""

    source_path: str = ""  # Live save location at backup time
    notes: str = ""
    is_dir: bool = False
    size: int = 0
    backed_up_at: str = field(default_factory=lambda: datetime.now(tz=timezone.utc).isoformat())

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)

    @classmethod
    def from_text(cls, text: str) -> SaveMetadata:
        """Parse stored metadata. Free-form text is kept as notes."""
        if not text:
            return cls(backed_up_at="")
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            return cls(notes=text, backed_up_at="")
        if not isinstance(data, dict):
            return cls(notes=text, backed_up_at="")
        for key, value in data.items():
            expected = _FIELD_TYPES.get(key)
            # bool is an int subclass, so check it exactly
            if expected is None or type(value) is not expected:
                logger.warning(f"Unrecognised save metadata field '{key}', keeping as notes")
                return cls(notes=text, backed_up_at="")
        return cls(**data)


_FIELD_TYPES = {
    "source_path": str,
    "notes": str,
    "is_dir": bool,
    "size": int,
    "backed_up_at": str,
}


@dataclass
class NewSave:
    """Field values collected by the add flow."""

    title: str
    source_path: str | Path
    publisher: str = ""
    release_date: date | None = None
    platform: str = ""
    notes: str = ""


@dataclass
class SaveEntry:
    """A Save joined with its game, backup location, platform and metadata."""

    save: Save
    game: Game
    location: Location
    platform: Platform | None
    metadata: SaveMetadata

    @property
    def backup_path(self) -> Path:
        return Path(self.location.location_path)

    @property
    def platform_name(self) -> str:
        return self.platform.platform_name if self.platform else ""

    @property
    def default_destination(self) -> Path | None:
        return Path(self.metadata.source_path) if self.metadata.source_path else None
