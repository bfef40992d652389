from __future__ import annotations


class ForgeError(Exception):
    """Base class for every error raised by cosmicforge."""


class ConfigError(ForgeError):
    """Required configuration is missing or invalid."""


class ValidationError(ForgeError):
    """Caller input was rejected before touching game state."""


class PersistenceError(ForgeError):
    """A save could not be written, read or trusted."""


class SaveNotFoundError(PersistenceError):
    pass


class TamperError(PersistenceError):
    """Stored state no longer matches its integrity tag."""


class RemoteError(PersistenceError):
    """The remote store could not be reached or answered with an error."""

    def __init__(self, message: str, status: int = 0) -> None:
        super().__init__(message)
        self.status = status
