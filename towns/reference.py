from __future__ import annotations

from typing import Dict, Iterable, Tuple

from common.types import Town


# Snapping targets, in resolution order (earlier towns win distance ties).
SOUTH_AFRICAN_TOWNS: Tuple[Town, ...] = (
    Town(id=1, name="Cape Town", lat=-33.9249, lon=18.4241, child_population=120000),
    Town(id=2, name="Johannesburg", lat=-26.2041, lon=28.0473, child_population=140000),
    Town(id=3, name="Durban", lat=-29.8587, lon=31.0218, child_population=90000),
)

# Default map view (lat, lon) and zoom covering the whole country
MAP_CENTER: Tuple[float, float] = (-30.5595, 22.9375)
MAP_ZOOM = 5


def town_index(towns: Iterable[Town]) -> Dict[int, Town]:
    """Map town id -> Town. Raises ValueError on duplicate ids."""
    out: Dict[int, Town] = {}
    for t in towns:
        if t.id in out:
            raise ValueError(f"duplicate town id {t.id}")
        out[t.id] = t
    return out
