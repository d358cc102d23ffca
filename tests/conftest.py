"""Shared fixtures for the estate-aggregate test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import pytest

from estate_aggregate.aggregate.service import PropertyAggregateService
from estate_aggregate.bus.memory_bus import MemoryEventBus
from estate_aggregate.core.clock import FixedClock
from estate_aggregate.core.config import Settings
from estate_aggregate.core.enums import PropertyType, UnitType
from estate_aggregate.core.models import Money, Property
from estate_aggregate.storage.memory import (
    InMemoryBlockRepository,
    InMemoryPropertyRepository,
    InMemoryUnitRepository,
)

TENANT = "tenant-1"
ACTOR = "user-1"
CORRELATION = "corr-1"


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

@pytest.fixture
def clock() -> FixedClock:
    """Return a FixedClock at 2026-03-15 09:00 UTC."""
    return FixedClock(start=datetime(2026, 3, 15, 9, 0, tzinfo=timezone.utc))


# ---------------------------------------------------------------------------
# Repositories and bus
# ---------------------------------------------------------------------------

@pytest.fixture
def property_repo() -> InMemoryPropertyRepository:
    return InMemoryPropertyRepository()


@pytest.fixture
def unit_repo() -> InMemoryUnitRepository:
    return InMemoryUnitRepository()


@pytest.fixture
def block_repo() -> InMemoryBlockRepository:
    return InMemoryBlockRepository()


@pytest.fixture
def memory_bus() -> MemoryEventBus:
    """Return a fresh MemoryEventBus instance."""
    return MemoryEventBus()


@pytest.fixture
def settings() -> Settings:
    return Settings()


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

@pytest.fixture
def service(
    property_repo, unit_repo, block_repo, memory_bus, clock, settings,
) -> PropertyAggregateService:
    return PropertyAggregateService(
        property_repo,
        unit_repo,
        block_repo,
        memory_bus,
        clock=clock,
        settings=settings,
    )


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@pytest.fixture
def property_input():
    """Factory for a valid create-property payload (plain mapping)."""

    def _make(**overrides: Any) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": "Riverside Apartments",
            "type": PropertyType.APARTMENT_COMPLEX,
            "owner_id": "owner-1",
            "address": {"line1": "12 Riverside Drive", "city": "Nairobi"},
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def unit_input():
    """Factory for a valid create-unit payload (plain mapping)."""

    def _make(unit_number: str = "A01", **overrides: Any) -> dict[str, Any]:
        data: dict[str, Any] = {
            "unit_number": unit_number,
            "type": UnitType.TWO_BEDROOM,
            "bedrooms": 2,
            "bathrooms": 1,
            "monthly_rent": Money(amount=Decimal("50000")),
            "deposit_amount": Money(amount=Decimal("100000")),
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
async def sample_property(service, property_input) -> Property:
    """A freshly created property with no units."""
    result = await service.create_property(TENANT, property_input(), ACTOR, CORRELATION)
    return result.unwrap()
