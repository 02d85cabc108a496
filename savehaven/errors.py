"""Exception hierarchy shared by the storage, transfer and CLI layers."""

from __future__ import annotations


class SaveHavenError(Exception):
    """Base exception for all Save Haven errors."""


class ParseError(SaveHavenError, ValueError):
    """User input could not be parsed into the expected type."""


class NotFoundError(SaveHavenError, LookupError):
    """A game, save or backup file does not exist."""


class TransferError(SaveHavenError, OSError):
    """A file copy between a save location and the backup store failed."""


class ConstraintError(SaveHavenError):
    """The database rejected a write (foreign key or other integrity rule)."""


class StorageError(SaveHavenError):
    """The database could not be opened or queried. Fatal."""
