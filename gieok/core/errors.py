"""Exceptions raised by the game core."""

from __future__ import annotations


class GameError(Exception):
    """Base class for all errors raised by gieok."""


class ConfigError(GameError, ValueError):
    """Invalid game configuration: bad pair count or a corrupt level table."""


class PersistenceReadError(GameError):
    """A stored value could not be decoded."""


class PersistenceWriteError(GameError):
    """A value could not be written to the store."""
