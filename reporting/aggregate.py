from __future__ import annotations

from typing import Iterable, List, Sequence

from common.types import Annotation, PrevalenceRates, Town, TownSummary


def expected_cases(child_population: int, rate_per_1000: float) -> float:
    return child_population * (rate_per_1000 / 1000.0)


def summarize(town: Town, annotations: Iterable[Annotation], rates: PrevalenceRates) -> TownSummary:
    """
    Observed annotation count and expected case band for a single town.

    Expected values depend only on the town's child population and the rates;
    nothing is rounded here.
    """
    observed = sum(1 for a in annotations if a.town_id == town.id)
    return TownSummary(
        town_id=town.id,
        name=town.name,
        child_population=town.child_population,
        observed_count=observed,
        expected_center=expected_cases(town.child_population, rates.center),
        expected_low=expected_cases(town.child_population, rates.low),
        expected_high=expected_cases(town.child_population, rates.high),
    )


def summarize_all(
    towns: Sequence[Town],
    annotations: Iterable[Annotation],
    rates: PrevalenceRates,
) -> List[TownSummary]:
    """One summary per town in table order, including towns with no annotations."""
    anns = tuple(annotations)
    return [summarize(t, anns, rates) for t in towns]
