"""
Flat text report of the per-town summaries.

Format (comma-delimited, no quoting or escaping; a town name containing a
comma would shift the columns):

    town,markers_count,child_pop,expected_cases_center,expected_cases_range_low,expected_cases_range_high
    Cape Town,1,120000,180.00,120.00-240.00
    ...

The low/high band is written as a single "low-high" field, so data rows carry
five fields under the six-name header kept from the first published report.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Protocol, Sequence

from common.logging_setup import get_logger
from common.types import Annotation, PrevalenceRates, Town, TownSummary
from common.utils import fixed
from reporting.aggregate import summarize_all


log = get_logger("reporting")

REPORT_FILENAME = "jia_town_summary.csv"
REPORT_MEDIA_TYPE = "text/csv;charset=utf-8"
REPORT_HEADER = (
    "town,markers_count,child_pop,expected_cases_center,"
    "expected_cases_range_low,expected_cases_range_high"
)
DELIMITER = ","
REPORT_DECIMALS = 2
DISPLAY_DECIMALS = 1


def format_row(s: TownSummary, decimals: int = REPORT_DECIMALS) -> str:
    band = f"{fixed(s.expected_low, decimals)}-{fixed(s.expected_high, decimals)}"
    return DELIMITER.join(
        [
            s.name,
            str(s.observed_count),
            str(s.child_population),
            fixed(s.expected_center, decimals),
            band,
        ]
    )


def render_report(summaries: Iterable[TownSummary], decimals: int = REPORT_DECIMALS) -> str:
    rows: List[str] = [REPORT_HEADER]
    rows.extend(format_row(s, decimals) for s in summaries)
    return "\n".join(rows)


def export(
    towns: Sequence[Town],
    annotations: Iterable[Annotation],
    rates: PrevalenceRates,
    decimals: int = REPORT_DECIMALS,
) -> str:
    """Header plus one row per town, in table order. Zero-count towns are kept."""
    return render_report(summarize_all(towns, annotations, rates), decimals)


def display_line(s: TownSummary, rates: PrevalenceRates, decimals: int = DISPLAY_DECIMALS) -> str:
    """On-screen one-liner, e.g. 'Durban: 0 diagnosed, expected 135.0 (based on 1.5 per 1000 children)'."""
    return (
        f"{s.name}: {s.observed_count} diagnosed, expected {fixed(s.expected_center, decimals)} "
        f"(based on {rates.center:g} per 1000 children)"
    )


# -------------------------
# Sinks
# -------------------------
class ReportSink(Protocol):
    def write(self, filename: str, blob: str) -> object: ...


class FileSink:
    """Writes report blobs into a directory."""

    def __init__(self, directory: str = "."):
        self.directory = Path(directory)

    def write(self, filename: str, blob: str) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / filename
        path.write_text(blob, encoding="utf-8")
        return path


def write_report(blob: str, sink: ReportSink, filename: str = REPORT_FILENAME) -> object:
    """Hand a rendered report to `sink`; returns whatever the sink returns."""
    out = sink.write(filename, blob)
    log.info("Report written", extra={"extra": {"filename": filename, "bytes": len(blob.encode("utf-8"))}})
    return out
