from __future__ import annotations

import json
import warnings
from collections import Counter
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from common.errors import (
    InvalidCoordinate,
    PersistenceDeserializeFailure,
    PersistenceWriteFailure,
    PersistenceWriteWarning,
)
from common.logging_setup import get_logger
from common.types import Annotation, Candidate, Point
from common.utils import now_ms
from store.ports import PersistencePort, port_from_config
from towns.resolver import NearestTownResolver


log = get_logger("store")

DEFAULT_KEY = "jia_markers_v1"


class AnnotationStore:
    """
    Ordered, append-only collection of anonymised annotations.

    The store owns the in-memory list; every append rewrites the whole
    collection through the injected port under `key`. Other components only
    ever see snapshots (tuples) returned by all()/load().

    Ids are time-derived (epoch milliseconds from `clock`) but always strictly
    greater than the largest id already held, so they stay unique even when
    several points are added within the same millisecond.
    """

    def __init__(
        self,
        resolver: NearestTownResolver,
        port: PersistencePort,
        key: str = DEFAULT_KEY,
        clock: Callable[[], int] = now_ms,
    ):
        self.resolver = resolver
        self.port = port
        self.key = key
        self._clock = clock
        self._items: List[Annotation] = []
        self._last_id = 0
        self.last_persist_error: Optional[PersistenceWriteFailure] = None
        self.load()

    # -------- public API --------

    def append(self, candidate: Candidate) -> Annotation:
        """
        Snap the candidate's point to a town, record it and persist the collection.

        Raises InvalidCoordinate for NaN/infinite coordinates. A failed write
        does not undo the append; it is logged, kept on last_persist_error and
        reported to the caller as a PersistenceWriteWarning.
        """
        p = candidate.point
        if not p.is_finite:
            raise InvalidCoordinate(p.lat, p.lon)

        town = self.resolver.resolve(p)
        ann = Annotation(id=self._next_id(), town_id=town.id, note=candidate.note or "")
        self._items.append(ann)

        try:
            self.persist(self._items)
            self.last_persist_error = None
        except PersistenceWriteFailure as e:
            self.last_persist_error = e
            log.warning(
                "Annotation kept in memory but not persisted",
                extra={"extra": {"id": ann.id, "key": self.key, "error": str(e)}},
            )
            warnings.warn(PersistenceWriteWarning(str(e)), stacklevel=2)

        log.info("Annotation added", extra={"extra": {"id": ann.id, "town_id": town.id, "town": town.name}})
        return ann

    def add(self, lat: float, lon: float, note: str = "") -> Annotation:
        """Shorthand for append(Candidate(Point(lat, lon), note))."""
        return self.append(Candidate(point=Point(lat=float(lat), lon=float(lon)), note=note or ""))

    def all(self) -> Tuple[Annotation, ...]:
        return tuple(self._items)

    def load(self) -> Tuple[Annotation, ...]:
        """
        Replace the in-memory collection with what the port holds.
        Missing, unreadable or undecodable blobs give an empty collection.
        """
        try:
            blob = self.port.read(self.key)
        except (OSError, ValueError) as e:
            log.warning("Could not read persisted annotations", extra={"extra": {"key": self.key, "error": str(e)}})
            blob = None

        items: List[Annotation] = []
        if blob is not None:
            try:
                items = self._decode(blob)
            except PersistenceDeserializeFailure as e:
                log.warning(
                    "Persisted annotations are corrupt; starting empty",
                    extra={"extra": {"key": self.key, "error": str(e)}},
                )
                items = []

        self._items = items
        self._last_id = max((a.id for a in items), default=0)
        log.debug("Annotations loaded", extra={"extra": {"key": self.key, "count": len(items)}})
        return tuple(items)

    def persist(self, annotations: Iterable[Annotation]) -> None:
        """Overwrite the stored blob with `annotations`. Raises PersistenceWriteFailure."""
        records = [a.to_record() for a in annotations]
        try:
            blob = json.dumps(records, ensure_ascii=False)
            self.port.write(self.key, blob)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceWriteFailure(f"could not write {self.key!r}: {e}") from e

    def counts_by_town(self) -> Dict[int, int]:
        return dict(Counter(a.town_id for a in self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Annotation]:
        return iter(tuple(self._items))

    # -------- internals --------

    def _next_id(self) -> int:
        self._last_id = max(int(self._clock()), self._last_id + 1)
        return self._last_id

    def _decode(self, blob: str) -> List[Annotation]:
        try:
            raw = json.loads(blob)
        except (TypeError, ValueError, RecursionError) as e:
            raise PersistenceDeserializeFailure(f"invalid JSON: {e}") from e
        if not isinstance(raw, list):
            raise PersistenceDeserializeFailure("expected a JSON array of annotation records")

        out: List[Annotation] = []
        seen = set()
        for i, rec in enumerate(raw):
            try:
                ann = Annotation.from_record(rec)
            except (KeyError, TypeError, ValueError, OverflowError) as e:
                log.warning("Skipping malformed annotation record", extra={"extra": {"index": i, "error": str(e)}})
                continue
            if ann.town_id not in self.resolver:
                log.warning("Skipping annotation for unknown town", extra={"extra": {"id": ann.id, "town_id": ann.town_id}})
                continue
            if ann.id in seen:
                log.warning("Skipping duplicate annotation id", extra={"extra": {"id": ann.id}})
                continue
            seen.add(ann.id)
            out.append(ann)
        return out


def store_from_config(
    P: Dict,
    port: Optional[PersistencePort] = None,
    resolver: Optional[NearestTownResolver] = None,
) -> AnnotationStore:
    """Build the store described by the `storage` section of a loaded config."""
    storage = P.get("storage", {})
    return AnnotationStore(
        resolver or NearestTownResolver(),
        port if port is not None else port_from_config(P),
        key=storage.get("key", DEFAULT_KEY),
    )
