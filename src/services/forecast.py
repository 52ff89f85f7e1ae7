"""Commissioning forecast for a proposed provision.

Projects catchment demand against a set of candidate capacities.  The
addressable share of unplaced learners is divided by each capacity to get a
demand ratio, which together with the share of high-performing LAs in the
catchment selects expected opening and year-one fill rates from a fixed
table.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Share of unplaced learners the provision type can serve.
ADDRESSABLE_DEMAND_RATIO = 0.34

DEFAULT_CAPACITIES: tuple[int, ...] = (12, 18, 24, 30)

HIGH_CONFIDENCE_RATIO = 40
MEDIUM_CONFIDENCE_RATIO = 20

FillRange = tuple[int, int]


@dataclass(frozen=True)
class FillBand:
    """One row of the fill table.

    The ratio band is half-open ``[ratio_min, ratio_max)``; the quality band
    is closed ``[quality_min, quality_max]``.
    """

    ratio_min: float
    ratio_max: float
    quality_min: float
    quality_max: float
    opening: FillRange
    year_one: FillRange

    def matches(self, demand_ratio: float, la_quality_percent: float) -> bool:
        return (
            self.ratio_min <= demand_ratio < self.ratio_max
            and self.quality_min <= la_quality_percent <= self.quality_max
        )


# First match wins, so the order of rows matters.
FILL_TABLE: tuple[FillBand, ...] = (
    FillBand(40, math.inf, 70, 100, (50, 65), (85, 100)),
    FillBand(40, math.inf, 40, 70, (40, 55), (75, 90)),
    FillBand(20, 40, 70, 100, (40, 55), (75, 90)),
    FillBand(20, 40, 40, 70, (30, 45), (65, 80)),
    FillBand(10, 20, 70, 100, (25, 40), (55, 70)),
    FillBand(10, 20, 40, 70, (20, 30), (45, 60)),
    FillBand(0, 10, 0, 100, (15, 25), (35, 50)),
)

FALLBACK_OPENING_FILL: FillRange = (15, 25)
FALLBACK_YEAR_ONE_FILL: FillRange = (35, 50)


# ---------------------------------------------------------------------------
# Data containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LAInCatchment:
    la_name: str
    pool: int  # 1..4
    unplaced: int = 0


@dataclass(frozen=True)
class CapacityScenario:
    capacity: int
    demand_ratio: int
    confidence: str
    opening_fill_range: FillRange
    year_one_fill_range: FillRange
    opening_places_range: FillRange
    year_one_places_range: FillRange

    def to_dict(self) -> dict:
        return {
            "capacity": self.capacity,
            "demand_ratio": self.demand_ratio,
            "confidence": self.confidence,
            "opening_fill_range": list(self.opening_fill_range),
            "year_one_fill_range": list(self.year_one_fill_range),
            "opening_places_range": list(self.opening_places_range),
            "year_one_places_range": list(self.year_one_places_range),
        }


@dataclass(frozen=True)
class ForecastResult:
    total_unplaced: int
    addressable_demand: int
    total_las: int
    pool1_count: int
    pool2_count: int
    pool3_count: int
    pool4_count: int
    la_quality_percent: int
    scenarios: list[CapacityScenario] = field(default_factory=list)
    recommended_capacity: int = 0

    def to_dict(self) -> dict:
        return {
            "total_unplaced": self.total_unplaced,
            "addressable_demand": self.addressable_demand,
            "total_las": self.total_las,
            "pool1_count": self.pool1_count,
            "pool2_count": self.pool2_count,
            "pool3_count": self.pool3_count,
            "pool4_count": self.pool4_count,
            "la_quality_percent": self.la_quality_percent,
            "scenarios": [s.to_dict() for s in self.scenarios],
            "recommended_capacity": self.recommended_capacity,
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (``round()`` rounds to even)."""
    return int(math.floor(value + 0.5))


def lookup_fill(demand_ratio: float, la_quality_percent: float) -> tuple[FillRange, FillRange]:
    """Return ``(opening_fill, year_one_fill)`` percentage ranges."""
    for band in FILL_TABLE:
        if band.matches(demand_ratio, la_quality_percent):
            return band.opening, band.year_one
    return FALLBACK_OPENING_FILL, FALLBACK_YEAR_ONE_FILL


def confidence_for_ratio(demand_ratio: float) -> str:
    if demand_ratio >= HIGH_CONFIDENCE_RATIO:
        return "HIGH"
    if demand_ratio >= MEDIUM_CONFIDENCE_RATIO:
        return "MEDIUM"
    return "LOW"


def _places(capacity: int, fill: FillRange) -> FillRange:
    return round_half_up(capacity * fill[0] / 100), round_half_up(capacity * fill[1] / 100)


# ---------------------------------------------------------------------------
# Forecast
# ---------------------------------------------------------------------------


def calculate_forecast(
    total_unplaced: int,
    las_in_catchment: Iterable[LAInCatchment],
    capacities: Sequence[int] = DEFAULT_CAPACITIES,
) -> ForecastResult:
    """Calculate demand ratios, fill ranges and a recommended capacity.

    Args:
        total_unplaced: Unplaced learners across the catchment.
        las_in_catchment: Local authorities in the catchment with their pool.
        capacities: Candidate capacities, in the order they should be reported.

    Raises:
        ValueError: If *capacities* is empty or contains a non-positive value.
    """
    capacities = list(capacities)
    if not capacities:
        raise ValueError("At least one candidate capacity is required")
    if any(c <= 0 for c in capacities):
        raise ValueError(f"Capacities must be positive, got {capacities!r}")

    las = list(las_in_catchment)
    addressable = round_half_up(total_unplaced * ADDRESSABLE_DEMAND_RATIO)

    pool_counts = {pool: sum(1 for la in las if la.pool == pool) for pool in (1, 2, 3, 4)}
    total_las = len(las)
    la_quality = round_half_up((pool_counts[1] + pool_counts[2]) / total_las * 100) if total_las else 0

    scenarios: list[CapacityScenario] = []
    for capacity in capacities:
        ratio = round_half_up(addressable / capacity)
        opening, year_one = lookup_fill(ratio, la_quality)
        scenarios.append(
            CapacityScenario(
                capacity=capacity,
                demand_ratio=ratio,
                confidence=confidence_for_ratio(ratio),
                opening_fill_range=opening,
                year_one_fill_range=year_one,
                opening_places_range=_places(capacity, opening),
                year_one_places_range=_places(capacity, year_one),
            )
        )

    qualifying = [s.capacity for s in scenarios if s.demand_ratio >= HIGH_CONFIDENCE_RATIO]
    recommended = max(qualifying) if qualifying else capacities[0]

    return ForecastResult(
        total_unplaced=total_unplaced,
        addressable_demand=addressable,
        total_las=total_las,
        pool1_count=pool_counts[1],
        pool2_count=pool_counts[2],
        pool3_count=pool_counts[3],
        pool4_count=pool_counts[4],
        la_quality_percent=la_quality,
        scenarios=scenarios,
        recommended_capacity=recommended,
    )
