from __future__ import annotations

# station_provider/errors.py
import sqlite3


class StationProviderError(Exception):
    """Base class for errors raised by the station provider."""


class UnknownUriError(StationProviderError, ValueError):
    def __init__(self, uri: str):
        super().__init__(f"Unknown URI {uri}")
        self.uri = uri


class InvalidArgumentError(StationProviderError, ValueError):
    pass


class InsertFailedError(StationProviderError, sqlite3.DatabaseError):
    def __init__(self, uri: str):
        super().__init__(f"Failed to insert row into {uri}")
        self.uri = uri


class DowngradeError(StationProviderError, sqlite3.DatabaseError):
    def __init__(self, old_version: int, new_version: int):
        super().__init__(f"Can't downgrade database from version {old_version} to {new_version}")
        self.old_version = old_version
        self.new_version = new_version
