"""Occupancy and revenue figures derived from a property's live units.

Pure functions; the service feeds them a fresh ``UnitCounts`` and the
complete unit list of one property.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from estate_aggregate.core.enums import UnitStatus
from estate_aggregate.core.models import Money, PropertyStats, Unit, UnitCounts


def round_half_up(value: float | Decimal) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    if isinstance(value, Decimal):
        return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return math.floor(value + 0.5)


def round_to_tenth(value: float) -> float:
    return math.floor(value * 10 + 0.5) / 10


def percent(part: float | Decimal, whole: float | Decimal) -> float:
    """``part / whole * 100``, or 0 when *whole* is 0."""
    if not whole:
        return 0.0
    return float(Decimal(part) / Decimal(whole) * 100)


@dataclass(frozen=True)
class RevenueSummary:
    """Monthly rent roll: every unit (potential) vs occupied units (actual)."""

    potential: Decimal
    actual: Decimal
    currency: str

    @property
    def efficiency(self) -> float:
        return percent(self.actual, self.potential)


def summarize_revenue(units: Iterable[Unit], currency: str) -> RevenueSummary:
    """Sum rents of *units*, which must all be priced in *currency*."""
    potential = Decimal("0")
    actual = Decimal("0")
    for unit in units:
        if unit.monthly_rent.currency != currency:
            raise ValueError(
                f"Unit {unit.unit_number} is priced in {unit.monthly_rent.currency}, "
                f"property currency is {currency}"
            )
        potential += unit.monthly_rent.amount
        if unit.status == UnitStatus.OCCUPIED:
            actual += unit.monthly_rent.amount
    return RevenueSummary(potential=potential, actual=actual, currency=currency)


def compute_property_stats(
    property_id: str,
    counts: UnitCounts,
    revenue: RevenueSummary,
) -> PropertyStats:
    return PropertyStats(
        property_id=property_id,
        total_units=counts.total,
        occupied_units=counts.occupied,
        vacant_units=counts.vacant,
        occupancy_rate=round_half_up(percent(counts.occupied, counts.total)),
        potential_monthly_revenue=Money(amount=revenue.potential, currency=revenue.currency),
        actual_monthly_revenue=Money(amount=revenue.actual, currency=revenue.currency),
        revenue_efficiency=round_half_up(revenue.efficiency),
    )
