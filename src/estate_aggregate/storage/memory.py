"""In-memory repository implementations.

Dict-backed, tenant-scoped, soft-delete aware.  Used by the test suite and
by local tooling; they honour the same contracts a SQL-backed adapter must:

*  reads never return soft-deleted rows;
*  uniqueness (property code per tenant, unit number / block code per
   property) is enforced among live rows;
*  ``create_many`` / ``update_many`` validate the whole batch before
   writing any of it;
*  ``InMemoryPropertyRepository.update`` checks and bumps ``version``.

Every method yields to the event loop once so concurrent callers really
interleave, as they would against a network database.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from typing import TypeVar

from estate_aggregate.core.enums import UnitStatus
from estate_aggregate.core.errors import (
    ConcurrencyConflictError,
    DuplicateEntityError,
    EntityNotFoundError,
)
from estate_aggregate.core.ids import utc_now
from estate_aggregate.core.models import (
    AuditedEntity,
    Block,
    PaginatedResult,
    PaginationParams,
    Property,
    Unit,
    UnitCounts,
    build_paginated_result,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=AuditedEntity)

DEFAULT_PAGINATION = PaginationParams()


def _paginate(
    rows: list[M], pagination: PaginationParams | None,
) -> PaginatedResult[M]:
    page = pagination or DEFAULT_PAGINATION
    items = rows[page.offset : page.offset + page.limit]
    return build_paginated_result(
        [r.model_copy(deep=True) for r in items], len(rows), page,
    )


def _newest_first(rows: Iterable[M]) -> list[M]:
    return sorted(rows, key=lambda r: r.created_at, reverse=True)


def _soft_delete(row: M, deleted_by: str) -> None:
    now = utc_now()
    row.deleted_at = now
    row.deleted_by = deleted_by
    row.updated_at = now
    row.updated_by = deleted_by


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

class InMemoryPropertyRepository:
    """``IPropertyRepository`` backed by a dict."""

    def __init__(self) -> None:
        self._rows: dict[str, Property] = {}
        self._sequences: dict[str, int] = defaultdict(int)

    def _live(self, tenant_id: str) -> list[Property]:
        return [
            p for p in self._rows.values()
            if p.tenant_id == tenant_id and not p.is_deleted
        ]

    def _get_live(self, property_id: str, tenant_id: str) -> Property | None:
        row = self._rows.get(property_id)
        if row is None or row.tenant_id != tenant_id or row.is_deleted:
            return None
        return row

    async def find_by_id(self, property_id: str, tenant_id: str) -> Property | None:
        await asyncio.sleep(0)
        row = self._get_live(property_id, tenant_id)
        return row.model_copy(deep=True) if row else None

    async def find_by_code(self, code: str, tenant_id: str) -> Property | None:
        await asyncio.sleep(0)
        for row in self._live(tenant_id):
            if row.code == code:
                return row.model_copy(deep=True)
        return None

    async def find_many(
        self, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Property]:
        await asyncio.sleep(0)
        return _paginate(_newest_first(self._live(tenant_id)), pagination)

    async def find_by_owner(
        self, owner_id: str, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Property]:
        await asyncio.sleep(0)
        rows = [p for p in self._live(tenant_id) if p.owner_id == owner_id]
        return _paginate(_newest_first(rows), pagination)

    async def find_by_manager(
        self, manager_id: str, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Property]:
        await asyncio.sleep(0)
        rows = [p for p in self._live(tenant_id) if p.manager_id == manager_id]
        return _paginate(_newest_first(rows), pagination)

    async def create(self, prop: Property) -> Property:
        await asyncio.sleep(0)
        if prop.id in self._rows:
            raise DuplicateEntityError(f"Property id {prop.id} already exists")
        if any(p.code == prop.code for p in self._live(prop.tenant_id)):
            raise DuplicateEntityError(
                f"Property code {prop.code} already exists for tenant {prop.tenant_id}"
            )
        stored = prop.model_copy(deep=True, update={"version": 1})
        self._rows[stored.id] = stored
        logger.debug("Inserted property %s (%s)", stored.id, stored.code)
        return stored.model_copy(deep=True)

    async def update(self, prop: Property) -> Property:
        await asyncio.sleep(0)
        current = self._get_live(prop.id, prop.tenant_id)
        if current is None:
            raise EntityNotFoundError(f"Property not found: {prop.id}")
        if current.version != prop.version:
            raise ConcurrencyConflictError(prop.id, prop.version, current.version)
        stored = prop.model_copy(deep=True, update={"version": current.version + 1})
        self._rows[stored.id] = stored
        return stored.model_copy(deep=True)

    async def delete(self, property_id: str, tenant_id: str, deleted_by: str) -> None:
        await asyncio.sleep(0)
        row = self._get_live(property_id, tenant_id)
        if row is None:
            return
        _soft_delete(row, deleted_by)
        row.version += 1

    async def get_next_sequence(self, tenant_id: str) -> int:
        await asyncio.sleep(0)
        self._sequences[tenant_id] += 1
        return self._sequences[tenant_id]


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------

class InMemoryUnitRepository:
    """``IUnitRepository`` backed by an insertion-ordered dict."""

    def __init__(self) -> None:
        self._rows: dict[str, Unit] = {}

    def _live(self, tenant_id: str, predicate: Callable[[Unit], bool]) -> list[Unit]:
        return [
            u for u in self._rows.values()
            if u.tenant_id == tenant_id and not u.is_deleted and predicate(u)
        ]

    def _get_live(self, unit_id: str, tenant_id: str) -> Unit | None:
        row = self._rows.get(unit_id)
        if row is None or row.tenant_id != tenant_id or row.is_deleted:
            return None
        return row

    def _number_taken(self, unit: Unit) -> bool:
        return any(
            u.unit_number == unit.unit_number and u.id != unit.id
            for u in self._live(unit.tenant_id, lambda u: u.property_id == unit.property_id)
        )

    async def find_by_id(self, unit_id: str, tenant_id: str) -> Unit | None:
        await asyncio.sleep(0)
        row = self._get_live(unit_id, tenant_id)
        return row.model_copy(deep=True) if row else None

    async def find_by_unit_number(
        self, unit_number: str, property_id: str, tenant_id: str,
    ) -> Unit | None:
        await asyncio.sleep(0)
        rows = self._live(
            tenant_id,
            lambda u: u.property_id == property_id and u.unit_number == unit_number,
        )
        return rows[0].model_copy(deep=True) if rows else None

    async def find_by_property(
        self, property_id: str, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Unit]:
        await asyncio.sleep(0)
        return _paginate(
            self._live(tenant_id, lambda u: u.property_id == property_id), pagination,
        )

    async def find_by_block(
        self, block_id: str, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Unit]:
        await asyncio.sleep(0)
        return _paginate(
            self._live(tenant_id, lambda u: u.block_id == block_id), pagination,
        )

    async def find_by_status(
        self, status: UnitStatus, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Unit]:
        await asyncio.sleep(0)
        return _paginate(self._live(tenant_id, lambda u: u.status == status), pagination)

    async def find_vacant(
        self, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Unit]:
        return await self.find_by_status(UnitStatus.VACANT, tenant_id, pagination)

    async def create(self, unit: Unit) -> Unit:
        return (await self.create_many([unit]))[0]

    async def create_many(self, units: list[Unit]) -> list[Unit]:
        await asyncio.sleep(0)
        seen: set[tuple[str, str]] = set()
        for unit in units:
            key = (unit.property_id, unit.unit_number)
            if unit.id in self._rows or key in seen or self._number_taken(unit):
                raise DuplicateEntityError(
                    f"Unit {unit.unit_number} already exists in property {unit.property_id}"
                )
            seen.add(key)

        stored = [u.model_copy(deep=True) for u in units]
        for unit in stored:
            self._rows[unit.id] = unit
        logger.debug("Inserted %d unit(s)", len(stored))
        return [u.model_copy(deep=True) for u in stored]

    async def update(self, unit: Unit) -> Unit:
        return (await self.update_many([unit]))[0]

    async def update_many(self, units: list[Unit]) -> list[Unit]:
        await asyncio.sleep(0)
        for unit in units:
            if self._get_live(unit.id, unit.tenant_id) is None:
                raise EntityNotFoundError(f"Unit not found: {unit.id}")
            if self._number_taken(unit):
                raise DuplicateEntityError(
                    f"Unit {unit.unit_number} already exists in property {unit.property_id}"
                )

        stored = [u.model_copy(deep=True) for u in units]
        for unit in stored:
            self._rows[unit.id] = unit
        return [u.model_copy(deep=True) for u in stored]

    async def delete(self, unit_id: str, tenant_id: str, deleted_by: str) -> None:
        await asyncio.sleep(0)
        row = self._get_live(unit_id, tenant_id)
        if row is not None:
            _soft_delete(row, deleted_by)

    @staticmethod
    def _count(rows: list[Unit]) -> UnitCounts:
        return UnitCounts(
            total=len(rows),
            occupied=sum(1 for u in rows if u.status == UnitStatus.OCCUPIED),
            vacant=sum(1 for u in rows if u.status == UnitStatus.VACANT),
        )

    async def count_by_property(self, property_id: str, tenant_id: str) -> UnitCounts:
        await asyncio.sleep(0)
        return self._count(self._live(tenant_id, lambda u: u.property_id == property_id))

    async def count_by_block(self, block_id: str, tenant_id: str) -> UnitCounts:
        await asyncio.sleep(0)
        return self._count(self._live(tenant_id, lambda u: u.block_id == block_id))


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

class InMemoryBlockRepository:
    """``IBlockRepository`` backed by a dict, listed by ``sort_order``."""

    def __init__(self) -> None:
        self._rows: dict[str, Block] = {}
        self._sequences: dict[tuple[str, str], int] = defaultdict(int)

    def _get_live(self, block_id: str, tenant_id: str) -> Block | None:
        row = self._rows.get(block_id)
        if row is None or row.tenant_id != tenant_id or row.is_deleted:
            return None
        return row

    def _live_in_property(self, property_id: str, tenant_id: str) -> list[Block]:
        return [
            b for b in self._rows.values()
            if b.tenant_id == tenant_id and b.property_id == property_id and not b.is_deleted
        ]

    async def find_by_id(self, block_id: str, tenant_id: str) -> Block | None:
        await asyncio.sleep(0)
        row = self._get_live(block_id, tenant_id)
        return row.model_copy(deep=True) if row else None

    async def find_by_block_code(
        self, block_code: str, property_id: str, tenant_id: str,
    ) -> Block | None:
        await asyncio.sleep(0)
        for row in self._live_in_property(property_id, tenant_id):
            if row.block_code == block_code:
                return row.model_copy(deep=True)
        return None

    async def find_by_property(
        self, property_id: str, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Block]:
        await asyncio.sleep(0)
        rows = sorted(
            self._live_in_property(property_id, tenant_id), key=lambda b: b.sort_order,
        )
        return _paginate(rows, pagination)

    async def create(self, block: Block) -> Block:
        await asyncio.sleep(0)
        if block.id in self._rows:
            raise DuplicateEntityError(f"Block id {block.id} already exists")
        if any(
            b.block_code == block.block_code
            for b in self._live_in_property(block.property_id, block.tenant_id)
        ):
            raise DuplicateEntityError(
                f"Block code {block.block_code} already exists in property {block.property_id}"
            )
        stored = block.model_copy(deep=True)
        self._rows[stored.id] = stored
        return stored.model_copy(deep=True)

    async def update(self, block: Block) -> Block:
        await asyncio.sleep(0)
        if self._get_live(block.id, block.tenant_id) is None:
            raise EntityNotFoundError(f"Block not found: {block.id}")
        stored = block.model_copy(deep=True)
        self._rows[stored.id] = stored
        return stored.model_copy(deep=True)

    async def delete(self, block_id: str, tenant_id: str, deleted_by: str) -> None:
        await asyncio.sleep(0)
        row = self._get_live(block_id, tenant_id)
        if row is not None:
            _soft_delete(row, deleted_by)

    async def get_next_sequence(self, property_id: str, tenant_id: str) -> int:
        await asyncio.sleep(0)
        key = (tenant_id, property_id)
        self._sequences[key] += 1
        return self._sequences[key]
