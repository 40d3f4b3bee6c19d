"""
Error kinds shared by the resolver, the annotation store and the adapters.
"""
from __future__ import annotations


class JiaMapError(Exception):
    """Base class for all errors raised by this project."""


class EmptyReferenceTable(JiaMapError):
    """The resolver was given no towns to snap to. Fatal configuration error."""


class InvalidCoordinate(JiaMapError, ValueError):
    """A point with a NaN or infinite latitude/longitude was offered to the store."""

    def __init__(self, lat: float, lon: float):
        super().__init__(f"coordinate must be finite, got lat={lat!r} lon={lon!r}")
        self.lat = lat
        self.lon = lon


class PersistenceDeserializeFailure(JiaMapError):
    """A persisted blob could not be decoded into annotations."""


class PersistenceWriteFailure(JiaMapError):
    """The annotation collection could not be written to the persistence port."""


class PersistenceWriteWarning(UserWarning):
    """Issued to callers of append() when the in-memory append could not be persisted."""
