"""Protocol interfaces for the aggregate service collaborators.

All persistence and messaging boundaries are defined here as Protocol
classes.  Implementations (in-memory, SQL, message broker) can be swapped
without changing the service.  Every repository method is tenant-scoped
and treats soft-deleted rows as absent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .enums import UnitStatus
from .models import (
    Block,
    PaginatedResult,
    PaginationParams,
    Property,
    Unit,
    UnitCounts,
)

if TYPE_CHECKING:
    from estate_aggregate.bus.envelope import EventEnvelope


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------

@runtime_checkable
class IPropertyRepository(Protocol):
    """Aggregate-root persistence.

    ``update`` must compare ``property.version`` with the stored version,
    raise :class:`~estate_aggregate.core.errors.ConcurrencyConflictError`
    on mismatch, and return the row with the bumped version.
    """

    async def find_by_id(self, property_id: str, tenant_id: str) -> Property | None: ...

    async def find_by_code(self, code: str, tenant_id: str) -> Property | None: ...

    async def find_many(
        self, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Property]: ...

    async def find_by_owner(
        self, owner_id: str, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Property]: ...

    async def find_by_manager(
        self, manager_id: str, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Property]: ...

    async def create(self, prop: Property) -> Property: ...

    async def update(self, prop: Property) -> Property: ...

    async def delete(self, property_id: str, tenant_id: str, deleted_by: str) -> None: ...

    async def get_next_sequence(self, tenant_id: str) -> int: ...


@runtime_checkable
class IUnitRepository(Protocol):
    """Unit persistence.  ``create_many`` / ``update_many`` are all-or-nothing."""

    async def find_by_id(self, unit_id: str, tenant_id: str) -> Unit | None: ...

    async def find_by_unit_number(
        self, unit_number: str, property_id: str, tenant_id: str,
    ) -> Unit | None: ...

    async def find_by_property(
        self, property_id: str, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Unit]: ...

    async def find_by_block(
        self, block_id: str, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Unit]: ...

    async def find_by_status(
        self, status: UnitStatus, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Unit]: ...

    async def find_vacant(
        self, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Unit]: ...

    async def create(self, unit: Unit) -> Unit: ...

    async def create_many(self, units: list[Unit]) -> list[Unit]: ...

    async def update(self, unit: Unit) -> Unit: ...

    async def update_many(self, units: list[Unit]) -> list[Unit]: ...

    async def delete(self, unit_id: str, tenant_id: str, deleted_by: str) -> None: ...

    async def count_by_property(self, property_id: str, tenant_id: str) -> UnitCounts: ...

    async def count_by_block(self, block_id: str, tenant_id: str) -> UnitCounts: ...


@runtime_checkable
class IBlockRepository(Protocol):
    async def find_by_id(self, block_id: str, tenant_id: str) -> Block | None: ...

    async def find_by_block_code(
        self, block_code: str, property_id: str, tenant_id: str,
    ) -> Block | None: ...

    async def find_by_property(
        self, property_id: str, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Block]: ...

    async def create(self, block: Block) -> Block: ...

    async def update(self, block: Block) -> Block: ...

    async def delete(self, block_id: str, tenant_id: str, deleted_by: str) -> None: ...

    async def get_next_sequence(self, property_id: str, tenant_id: str) -> int: ...


# ---------------------------------------------------------------------------
# Event Bus
# ---------------------------------------------------------------------------

@runtime_checkable
class IEventBus(Protocol):
    """Publishes domain-event envelopes.  Delivery is at-least-once."""

    async def publish(self, envelope: EventEnvelope) -> None: ...


# ---------------------------------------------------------------------------
# Leasing
# ---------------------------------------------------------------------------

@runtime_checkable
class ILeaseChecker(Protocol):
    """Answers whether a property still has leases that block deletion."""

    async def has_active_leases(self, property_id: str, tenant_id: str) -> bool: ...
