"""Exception hierarchy shared by the pipeline and its collaborators."""

from __future__ import annotations


class TakedownError(Exception):
    """Base class for every error raised by takedown."""


class ConfigError(TakedownError):
    """Job file, application list or progress record is missing or malformed."""


class StorageError(TakedownError):
    """An output location could not be created, removed or reopened."""


class LogDirectoryError(StorageError):
    """The parent log directory is missing or unreadable."""


class ExtractionError(TakedownError):
    """Scanning an input directory or writing its extracted log failed."""


class LoadError(TakedownError):
    """An extracted log file could not be ingested into the store."""
