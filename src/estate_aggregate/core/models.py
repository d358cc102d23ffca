"""Core domain models for the Property → Block → Unit hierarchy.

These are the canonical "truth models" handed to and returned from the
repositories.  Every entity is tenant-scoped and soft-deletable; the
denormalized counters on :class:`Property` are owned by the aggregate
service and must never be edited by callers directly.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .enums import BlockStatus, PropertyStatus, PropertyType, UnitStatus, UnitType
from .ids import utc_now

T = TypeVar("T")

DEFAULT_CURRENCY = "KES"


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------

class Money(BaseModel):
    """Amount in a single currency (major units)."""

    model_config = ConfigDict(frozen=True)

    amount: Decimal = Decimal("0")
    currency: str = DEFAULT_CURRENCY


class Address(BaseModel):
    line1: str
    line2: str | None = None
    city: str
    state: str | None = None
    postal_code: str | None = None
    country: str = "KE"


class AddressPatch(BaseModel):
    """Partial address; only the fields that are set are merged."""

    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

class AuditedEntity(BaseModel):
    """Audit and soft-delete columns shared by every entity."""

    created_at: datetime = Field(default_factory=utc_now)
    created_by: str = ""
    updated_at: datetime = Field(default_factory=utc_now)
    updated_by: str = ""
    deleted_at: datetime | None = None
    deleted_by: str | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class Property(AuditedEntity):
    """Aggregate root.  Counters mirror the live unit population."""

    id: str
    tenant_id: str
    owner_id: str
    name: str
    code: str
    type: PropertyType
    status: PropertyStatus = PropertyStatus.ACTIVE
    address: Address
    description: str | None = None
    year_built: int | None = None
    total_area: float | None = None
    default_currency: str = DEFAULT_CURRENCY
    amenities: list[str] = Field(default_factory=list)
    manager_id: str | None = None

    # Denormalized counters
    total_units: int = 0
    occupied_units: int = 0
    vacant_units: int = 0

    # Optimistic concurrency token, bumped by the repository on every write
    version: int = 0


class Block(AuditedEntity):
    """Optional grouping of units inside a property (tower, wing, floor)."""

    id: str
    tenant_id: str
    property_id: str
    block_code: str
    name: str
    description: str | None = None
    floor: int | None = None
    wing: str | None = None
    status: BlockStatus = BlockStatus.ACTIVE
    amenities: list[str] = Field(default_factory=list)
    features: dict[str, Any] = Field(default_factory=dict)
    has_elevator: bool = False
    has_parking: bool = False
    has_security: bool = False
    manager_id: str | None = None
    sort_order: int = 0


class Unit(AuditedEntity):
    """Lettable unit owned by a property, optionally grouped under a block."""

    id: str
    tenant_id: str
    property_id: str
    block_id: str | None = None
    unit_number: str
    floor: int = 0
    type: UnitType
    status: UnitStatus = UnitStatus.VACANT
    bedrooms: int = 0
    bathrooms: float = 0
    area: float | None = None
    monthly_rent: Money
    deposit_amount: Money
    amenities: list[str] = Field(default_factory=list)
    description: str | None = None
    next_inspection_due: datetime | None = None


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

class PaginationParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    limit: int = Field(default=50, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)


class PaginatedResult(BaseModel, Generic[T]):
    items: list[T] = Field(default_factory=list)
    total: int = 0
    limit: int = 50
    offset: int = 0
    has_more: bool = False


def build_paginated_result(
    items: list[T], total: int, pagination: PaginationParams,
) -> PaginatedResult[T]:
    """Wrap one page of rows with its paging metadata."""
    return PaginatedResult(
        items=items,
        total=total,
        limit=pagination.limit,
        offset=pagination.offset,
        has_more=pagination.offset + len(items) < total,
    )


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------

class UnitCounts(BaseModel):
    """Live unit population of a property or block."""

    model_config = ConfigDict(frozen=True)

    total: int = 0
    occupied: int = 0
    vacant: int = 0


class PropertyStats(BaseModel):
    property_id: str
    total_units: int
    occupied_units: int
    vacant_units: int
    occupancy_rate: int  # percent, rounded
    potential_monthly_revenue: Money
    actual_monthly_revenue: Money
    revenue_efficiency: int  # percent, rounded


class HealthFactors(BaseModel):
    occupancy_rate: float  # percent, 1 decimal
    revenue_efficiency: float  # percent, 1 decimal
    vacant_units: int
    total_units: int
    average_rent: int


class PropertyHealthScore(BaseModel):
    """Weighted 0-100 composite of occupancy, revenue, maintenance, compliance."""

    property_id: str
    overall_score: int
    occupancy_score: int
    revenue_score: int
    maintenance_score: int
    compliance_score: int
    factors: HealthFactors
    calculated_at: datetime


# ---------------------------------------------------------------------------
# Service inputs
# ---------------------------------------------------------------------------

class CreatePropertyInput(BaseModel):
    name: str = Field(min_length=1)
    code: str | None = None
    type: PropertyType
    owner_id: str = Field(min_length=1)
    address: Address
    year_built: int | None = None
    total_area: float | None = None
    amenities: list[str] = Field(default_factory=list)
    description: str | None = None
    manager_id: str | None = None
    default_currency: str | None = None


class UpdatePropertyInput(BaseModel):
    name: str | None = None
    status: PropertyStatus | None = None
    address: AddressPatch | None = None
    year_built: int | None = None
    total_area: float | None = None
    amenities: list[str] | None = None
    description: str | None = None
    manager_id: str | None = None  # explicit None unassigns


class CreateUnitInput(BaseModel):
    unit_number: str = Field(min_length=1)
    floor: int = 0
    type: UnitType
    bedrooms: int = Field(default=0, ge=0)
    bathrooms: float = Field(default=0, ge=0)
    monthly_rent: Money
    deposit_amount: Money
    area: float | None = None
    amenities: list[str] = Field(default_factory=list)
    description: str | None = None
    block_id: str | None = None
    next_inspection_due: datetime | None = None


class UpdateUnitInput(BaseModel):
    status: UnitStatus | None = None
    floor: int | None = None
    type: UnitType | None = None
    bedrooms: int | None = Field(default=None, ge=0)
    bathrooms: float | None = Field(default=None, ge=0)
    monthly_rent: Money | None = None
    deposit_amount: Money | None = None
    area: float | None = None
    amenities: list[str] | None = None
    description: str | None = None
    next_inspection_due: datetime | None = None  # explicit None clears


class CreateBlockInput(BaseModel):
    name: str = Field(min_length=1)
    block_code: str | None = None
    description: str | None = None
    floor: int | None = None
    wing: str | None = None
    amenities: list[str] = Field(default_factory=list)
    features: dict[str, Any] = Field(default_factory=dict)
    has_elevator: bool = False
    has_parking: bool = False
    has_security: bool = False
    manager_id: str | None = None
    sort_order: int = 0


class UpdateBlockInput(BaseModel):
    name: str | None = None
    description: str | None = None  # explicit None clears
    status: BlockStatus | None = None
    amenities: list[str] | None = None
    features: dict[str, Any] | None = None
    has_elevator: bool | None = None
    has_parking: bool | None = None
    has_security: bool | None = None
    manager_id: str | None = None  # explicit None unassigns
    sort_order: int | None = None


class BulkCreateUnitInput(BaseModel):
    prefix: str = ""
    start_number: int = Field(default=1, ge=0)
    count: int
    floor: int = 0
    type: UnitType
    bedrooms: int = Field(default=0, ge=0)
    bathrooms: float = Field(default=0, ge=0)
    monthly_rent: Money
    deposit_amount: Money
    area: float | None = None
    amenities: list[str] = Field(default_factory=list)
    block_id: str | None = None


class BulkUpdateUnitStatusInput(BaseModel):
    unit_ids: list[str]
    status: UnitStatus
