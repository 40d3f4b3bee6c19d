from __future__ import annotations

from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from common.errors import EmptyReferenceTable
from common.types import Point, Town
from towns.reference import SOUTH_AFRICAN_TOWNS, town_index


def squared_distance(town: Town, point: Point) -> float:
    """
    Squared planar distance in raw degrees.

    NOTE: not a geodesic distance. Only the relative ordering between towns in
    the same region is meaningful.
    """
    d_lat = town.lat - point.lat
    d_lon = town.lon - point.lon
    return d_lat * d_lat + d_lon * d_lon


def nearest_town(point: Point, towns: Sequence[Town]) -> Town:
    """Linear scan version of NearestTownResolver.resolve(). First town wins ties."""
    if not towns:
        raise EmptyReferenceTable("reference table is empty")
    best = towns[0]
    best_d = squared_distance(best, point)
    for t in towns[1:]:
        d = squared_distance(t, point)
        if d < best_d:
            best, best_d = t, d
    return best


class NearestTownResolver:
    """
    Snaps points to the closest town centroid of a fixed reference table.

    Distances are computed for all towns at once with numpy; np.argmin returns
    the first minimum, so ties go to the town listed first in the table.
    """

    def __init__(self, towns: Optional[Sequence[Town]] = None):
        self._towns: Tuple[Town, ...] = tuple(SOUTH_AFRICAN_TOWNS if towns is None else towns)
        if not self._towns:
            raise EmptyReferenceTable("reference table is empty; nothing to resolve against")
        self._by_id: Dict[int, Town] = town_index(self._towns)
        self._lat = np.array([t.lat for t in self._towns], dtype=float)
        self._lon = np.array([t.lon for t in self._towns], dtype=float)

    # -------- public API --------

    @property
    def towns(self) -> Tuple[Town, ...]:
        return self._towns

    def get(self, town_id: int) -> Optional[Town]:
        return self._by_id.get(town_id)

    def __contains__(self, town_id: object) -> bool:
        return town_id in self._by_id

    def distances(self, point: Point) -> np.ndarray:
        """Squared distances from `point` to every town, in table order."""
        d_lat = self._lat - float(point.lat)
        d_lon = self._lon - float(point.lon)
        return d_lat * d_lat + d_lon * d_lon

    def resolve(self, point: Point) -> Town:
        """Return the town whose centroid is closest to `point`. No side effects."""
        idx = int(np.argmin(self.distances(point)))
        return self._towns[idx]
