from __future__ import annotations

from datetime import datetime, timezone
import time


def iso_now_ms() -> str:
    """UTC ISO-8601 timestamp with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def now_ms() -> int:
    """Wall-clock milliseconds since the Unix epoch."""
    return int(time.time() * 1000)


def fixed(value: float, places: int) -> str:
    """
    Fixed-point text for a number. The single rounding policy used by the
    report and the on-screen summaries.
    """
    return f"{float(value):.{int(places)}f}"
