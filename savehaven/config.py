"""Application configuration — JSON-based, with atomic writes and batch update support."""

from __future__ import annotations

import json
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from loguru import logger

_instance: "Config | None" = None

# Default data directory
_DEFAULT_DATA_DIR = Path.home() / "Documents" / "SaveHaven"


def get_config(data_dir: Path | None = None) -> Config:
    """Module-level factory — single global Config instance."""
    global _instance
    if _instance is None:
        _instance = Config(data_dir)
    return _instance


def reset_config() -> None:
    """Reset the global config instance (for testing)."""
    global _instance
    _instance = None


class Config:
    """JSON-based application configuration."""

    _DEFAULTS: dict[str, Any] = {
        "language": "en_US",
        "backup_path": "",
        "database_name": "local_games.db",
        "date_formats": ["%Y-%m-%d"],
        "console_log_level": "WARNING",
    }

    def __init__(self, data_dir: Path | None = None) -> None:
        self._data: dict[str, Any] = {}
        self._dir = data_dir or _DEFAULT_DATA_DIR
        self._path = self._dir / "config.json"
        self._defer_save = False
        self._load()

    def _load(self) -> None:
        """Load config from disk, merging with defaults."""
        self._data = json.loads(json.dumps(self._DEFAULTS))  # deep copy defaults
        if self._path.exists():
            try:
                with open(self._path, encoding="utf-8") as f:
                    user_data = json.load(f)
                self._deep_merge(self._data, user_data)
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Failed to load config, using defaults: {e}")

    def _deep_merge(self, base: dict, override: dict) -> None:
        """Recursively merge override into base."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def _save(self) -> None:
        """Persist config to disk through a temp file."""
        if self._defer_save:
            return
        self._dir.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
            tmp_path.replace(self._path)
        except OSError as e:
            logger.error(f"Failed to save config: {e}")
            tmp_path.unlink(missing_ok=True)

    @contextmanager
    def batch_update(self) -> Iterator[None]:
        """Context manager for batching multiple config changes into a single write."""
        self._defer_save = True
        try:
            yield
        finally:
            self._defer_save = False
            self._save()

    # ── Generic access ──

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-separated key path."""
        node = self._data
        for part in key.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def set(self, key: str, value: Any) -> None:
        """Set a config value by dot-separated key path."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            if part not in node or not isinstance(node[part], dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
        self._save()

    # ── Typed properties ──

    @property
    def data_dir(self) -> Path:
        return self._dir

    @property
    def language(self) -> str:
        return self._data.get("language", "en_US")

    @language.setter
    def language(self, value: str) -> None:
        self.set("language", value)

    @property
    def backup_path(self) -> Path | None:
        raw = self._data.get("backup_path", "")
        return Path(raw) if raw else None

    @backup_path.setter
    def backup_path(self, value: Path | None) -> None:
        self.set("backup_path", str(value) if value else "")

    @property
    def database_path(self) -> Path:
        return self._dir / self._data.get("database_name", "local_games.db")

    @property
    def date_formats(self) -> list[str]:
        formats = self._data.get("date_formats") or ["%Y-%m-%d"]
        return [formats] if isinstance(formats, str) else list(formats)

    @property
    def console_log_level(self) -> str:
        return str(self._data.get("console_log_level", "WARNING")).upper()
