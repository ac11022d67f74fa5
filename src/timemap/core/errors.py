from __future__ import annotations


class TimeMapError(Exception):
    """Base error for the timed key store."""


class InvalidConfigurationError(TimeMapError, ValueError):
    """Raised when the store is constructed with an unusable time life."""


class InvalidKeyTypeError(TimeMapError, TypeError):
    """Raised when a key is not a str, an int or a symbolic identity."""


class KeyNotFoundError(TimeMapError, KeyError):
    """Raised when reading a key that is not stored."""

    def __init__(self, key: object) -> None:
        super().__init__(f"Unknown key {key!r}")
        self.key = key

    def __str__(self) -> str:
        return self.args[0]
