from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict
import math


@dataclass(frozen=True, slots=True)
class Town:
    """
    A row of the static reference table.

    Attributes:
        id: unique integer identifier.
        name: display name.
        lat, lon: centroid in degrees.
        child_population: number of children living in the town (>= 0).
    """
    id: int
    name: str
    lat: float
    lon: float
    child_population: int

    def __post_init__(self) -> None:
        if self.child_population < 0:
            raise ValueError("child_population must be >= 0")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class Point:
    """A clicked map position in degrees. Not range-checked."""
    lat: float
    lon: float

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lon)


@dataclass(frozen=True, slots=True)
class Candidate:
    """Raw input for a new annotation: where the user clicked plus an optional note."""
    point: Point
    note: str = ""


@dataclass(frozen=True, slots=True)
class Annotation:
    """
    An anonymised point, already snapped to a town.

    Only the town binding is kept; the raw click coordinates are discarded.
    Persisted as {"id", "townId", "note"}.
    """
    id: int
    town_id: int
    note: str = ""

    def to_record(self) -> Dict[str, Any]:
        return {"id": self.id, "townId": self.town_id, "note": self.note}

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "Annotation":
        """
        Parse a persisted record. Extra keys (e.g. a stored "townName") are ignored.
        Values are taken as stored, never coerced: id/townId must be JSON
        integers and note a string (or absent/null).
        Raises KeyError/TypeError on malformed input.
        """
        if not isinstance(rec, dict):
            raise TypeError("annotation record must be an object")
        ann_id = rec["id"]
        town_id = rec["townId"]
        for field, v in (("id", ann_id), ("townId", town_id)):
            if isinstance(v, bool) or not isinstance(v, int):
                raise TypeError(f"{field} must be an integer, got {v!r}")
        note = rec.get("note")
        if note is None:
            note = ""
        if not isinstance(note, str):
            raise TypeError(f"note must be a string, got {note!r}")
        return cls(id=ann_id, town_id=town_id, note=note)


@dataclass(frozen=True, slots=True)
class PrevalenceRates:
    """
    Expected cases per 1000 children. `center` is the point estimate,
    `low`/`high` bound the estimate band.
    """
    center: float = 1.5
    low: float = 1.0
    high: float = 2.0

    def __post_init__(self) -> None:
        for name in ("center", "low", "high"):
            v = getattr(self, name)
            if not math.isfinite(v) or v < 0:
                raise ValueError(f"{name} rate must be finite and >= 0")
        if not (self.low <= self.center <= self.high):
            raise ValueError("rates must satisfy low <= center <= high")


@dataclass(frozen=True, slots=True)
class TownSummary:
    """
    Observed annotation count vs. expected cases for one town.
    Values are unrounded; formatting happens at the display/export boundary.
    """
    town_id: int
    name: str
    child_population: int
    observed_count: int
    expected_center: float
    expected_low: float
    expected_high: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
