"""Property health score.

Four sub-scores, each clamped to [0, 100], combined with fixed weights:

=============  ======  ==============================================
sub-score      weight  source
=============  ======  ==============================================
occupancy      0.35    occupied / total units
revenue        0.30    occupied rent / total rent
maintenance    0.20    100 - 500 x (units under maintenance / total)
compliance     0.15    100 - 300 x (units past inspection due / total)
=============  ======  ==============================================
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from estate_aggregate.core.enums import UnitStatus
from estate_aggregate.core.models import (
    HealthFactors,
    PropertyHealthScore,
    Unit,
    UnitCounts,
)

from .stats import RevenueSummary, percent, round_half_up, round_to_tenth

OCCUPANCY_WEIGHT = 0.35
REVENUE_WEIGHT = 0.30
MAINTENANCE_WEIGHT = 0.20
COMPLIANCE_WEIGHT = 0.15

MAINTENANCE_PENALTY = 500
COMPLIANCE_PENALTY = 300


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def is_inspection_overdue(unit: Unit, now: datetime) -> bool:
    if unit.next_inspection_due is None:
        return False
    return _as_utc(unit.next_inspection_due) < now


def overall_score(
    occupancy_score: int,
    revenue_score: int,
    maintenance_score: int,
    compliance_score: int,
) -> int:
    return round_half_up(
        occupancy_score * OCCUPANCY_WEIGHT
        + revenue_score * REVENUE_WEIGHT
        + maintenance_score * MAINTENANCE_WEIGHT
        + compliance_score * COMPLIANCE_WEIGHT
    )


def compute_health_score(
    property_id: str,
    counts: UnitCounts,
    units: Sequence[Unit],
    revenue: RevenueSummary,
    now: datetime,
) -> PropertyHealthScore:
    total = counts.total

    occupancy_rate = percent(counts.occupied, total)
    occupancy_score = min(100, round_half_up(occupancy_rate))

    revenue_efficiency = revenue.efficiency
    revenue_score = min(100, round_half_up(revenue_efficiency))

    under_maintenance = sum(1 for u in units if u.status == UnitStatus.UNDER_MAINTENANCE)
    maintenance_ratio = under_maintenance / total if total else 0.0
    maintenance_score = max(0, round_half_up(100 - maintenance_ratio * MAINTENANCE_PENALTY))

    overdue = sum(1 for u in units if is_inspection_overdue(u, now))
    overdue_ratio = overdue / total if total else 0.0
    compliance_score = max(0, round_half_up(100 - overdue_ratio * COMPLIANCE_PENALTY))

    return PropertyHealthScore(
        property_id=property_id,
        overall_score=overall_score(
            occupancy_score, revenue_score, maintenance_score, compliance_score,
        ),
        occupancy_score=occupancy_score,
        revenue_score=revenue_score,
        maintenance_score=maintenance_score,
        compliance_score=compliance_score,
        factors=HealthFactors(
            occupancy_rate=round_to_tenth(occupancy_rate),
            revenue_efficiency=round_to_tenth(revenue_efficiency),
            vacant_units=counts.vacant,
            total_units=total,
            average_rent=round_half_up(revenue.potential / total) if total else 0,
        ),
        calculated_at=now,
    )
