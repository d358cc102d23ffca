"""Keeps the denormalized unit counters on a Property in step with its units.

Design invariants
-----------------
1.  A refresh is *count → write*: it always reads a fresh
    ``count_by_property`` after the caller's unit write has completed, so
    the last refresh to run for a property has seen every unit write that
    preceded it.
2.  Every read-check-write cycle on a property or its units (counter
    refreshes, property updates, unit writes and their occupancy guards)
    runs under the ``asyncio.Lock`` for ``(tenant_id, property_id)``.
    Two in-process callers can no longer interleave between a read and
    the write built from it.  Callers that already hold the lock use
    :meth:`PropertyCounterSync.recount`; multi-property callers take
    :meth:`PropertyCounterSync.lock_many`, which acquires in sorted order.
3.  Across processes the property's ``version`` token is the guard: a
    stale write raises ``ConcurrencyConflictError``, the refresh re-reads
    and recounts, up to ``refresh_attempts`` times, then re-raises.
"""

from __future__ import annotations

import asyncio
import weakref
from collections.abc import AsyncIterator, Iterable
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import datetime

from estate_aggregate.core.errors import ConcurrencyConflictError
from estate_aggregate.core.interfaces import IPropertyRepository, IUnitRepository
from estate_aggregate.core.models import Property, UnitCounts
from estate_aggregate.observability.logger import get_logger

logger = get_logger(__name__)


class PropertyCounterSync:
    """Recomputes ``total_units`` / ``occupied_units`` / ``vacant_units``."""

    def __init__(
        self,
        property_repo: IPropertyRepository,
        unit_repo: IUnitRepository,
        *,
        refresh_attempts: int = 3,
    ) -> None:
        if refresh_attempts < 1:
            raise ValueError("refresh_attempts must be >= 1")
        self._property_repo = property_repo
        self._unit_repo = unit_repo
        self._refresh_attempts = refresh_attempts
        self._locks: weakref.WeakValueDictionary[tuple[str, str], asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def lock(self, property_id: str, tenant_id: str) -> asyncio.Lock:
        """The lock guarding read-modify-write cycles on one property."""
        key = (tenant_id, property_id)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def lock_many(
        self, property_ids: Iterable[str], tenant_id: str,
    ) -> AsyncIterator[None]:
        """Hold the locks of several properties, taken in sorted order."""
        async with AsyncExitStack() as stack:
            for property_id in sorted(set(property_ids)):
                await stack.enter_async_context(self.lock(property_id, tenant_id))
            yield

    @staticmethod
    def _matches(prop: Property, counts: UnitCounts) -> bool:
        return (
            prop.total_units == counts.total
            and prop.occupied_units == counts.occupied
            and prop.vacant_units == counts.vacant
        )

    async def refresh(
        self,
        property_id: str,
        tenant_id: str,
        actor: str,
        now: datetime,
    ) -> Property | None:
        """Recount and persist the counters; ``None`` if the property is gone."""
        async with self.lock(property_id, tenant_id):
            return await self.recount(property_id, tenant_id, actor, now)

    async def recount(
        self,
        property_id: str,
        tenant_id: str,
        actor: str,
        now: datetime,
    ) -> Property | None:
        """:meth:`refresh` for callers already holding :meth:`lock`."""
        attempt = 1
        while True:
            prop = await self._property_repo.find_by_id(property_id, tenant_id)
            if prop is None:
                logger.warning(
                    "counter_refresh_skipped",
                    property_id=property_id,
                    reason="property_not_found",
                )
                return None

            counts = await self._unit_repo.count_by_property(property_id, tenant_id)
            if self._matches(prop, counts):
                return prop

            updated = prop.model_copy(update={
                "total_units": counts.total,
                "occupied_units": counts.occupied,
                "vacant_units": counts.vacant,
                "updated_at": now,
                "updated_by": actor,
            })
            try:
                saved = await self._property_repo.update(updated)
            except ConcurrencyConflictError:
                if attempt >= self._refresh_attempts:
                    raise
                logger.warning(
                    "counter_refresh_conflict",
                    property_id=property_id,
                    attempt=attempt,
                )
                attempt += 1
                continue

            logger.debug(
                "counters_refreshed",
                property_id=property_id,
                total=counts.total,
                occupied=counts.occupied,
                vacant=counts.vacant,
            )
            return saved
