"""Catalogue record models — one dataclass per database table."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass
class Game:
    """A game title. Titles are not unique."""

    id: int
    title: str
    publisher: str = ""
    release_date: date | None = None

    @property
    def release_label(self) -> str:
        return self.release_date.isoformat() if self.release_date else "-"


@dataclass
class Platform:
    id: int
    platform_name: str


@dataclass
class Location:
    """Managed backup copy of a save."""

    id: int
    location_path: str
    description: str = ""


@dataclass
class Save:
    id: int
    game_id: int
    location_id: int
    metadata: str = ""
    platform_id: int | None = None
