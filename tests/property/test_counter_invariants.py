"""Property test: denormalized counters always match the live units.

Uses hypothesis to drive random sequences of unit creates, field edits,
status changes, deletes and bulk operations against one property, then
checks that ``total_units`` / ``occupied_units`` / ``vacant_units`` equal a
fresh recount, that ``occupied + vacant <= total`` and that no occupied
unit was ever deleted.
"""

import asyncio
from decimal import Decimal

import pytest
from hypothesis import given, settings, strategies as st

from estate_aggregate.aggregate.service import PropertyAggregateService
from estate_aggregate.bus.memory_bus import MemoryEventBus
from estate_aggregate.core.clock import FixedClock
from estate_aggregate.core.enums import PropertyType, UnitStatus, UnitType
from estate_aggregate.core.models import Money
from estate_aggregate.storage.memory import (
    InMemoryBlockRepository,
    InMemoryPropertyRepository,
    InMemoryUnitRepository,
)

TENANT = "tenant-1"
ACTOR = "user-1"

statuses = st.sampled_from(list(UnitStatus))

operations = st.lists(
    st.one_of(
        st.tuples(st.just("create"), st.integers(min_value=0, max_value=30)),
        st.tuples(st.just("status"), st.integers(min_value=0, max_value=30), statuses),
        st.tuples(st.just("delete"), st.integers(min_value=0, max_value=30)),
        st.tuples(st.just("edit"), st.integers(min_value=0, max_value=30)),
        st.tuples(st.just("bulk"), st.integers(min_value=1, max_value=5)),
        st.tuples(
            st.just("bulk_status"),
            st.lists(st.integers(min_value=0, max_value=30), min_size=1, max_size=5),
            statuses,
        ),
    ),
    max_size=25,
)


async def _fresh_service():
    units = InMemoryUnitRepository()
    service = PropertyAggregateService(
        InMemoryPropertyRepository(),
        units,
        InMemoryBlockRepository(),
        MemoryEventBus(),
        clock=FixedClock(),
    )
    prop = (await service.create_property(
        TENANT,
        {
            "name": "Hypothesis Heights",
            "type": PropertyType.MULTI_FAMILY,
            "owner_id": "owner-1",
            "address": {"line1": "1 Test Way", "city": "Nairobi"},
        },
        ACTOR,
        "corr",
    )).unwrap()
    return service, units, prop


def _unit_payload(number: str) -> dict:
    return {
        "unit_number": number,
        "type": UnitType.STUDIO,
        "monthly_rent": Money(amount=Decimal("1000")),
        "deposit_amount": Money(amount=Decimal("1000")),
    }


async def _apply(service, prop, ops, concurrent: bool) -> None:
    known: list[str] = []
    bulk_prefix = 0

    def pick(index: int) -> str:
        return known[index % len(known)] if known else "unit_missing"

    async def run(op):
        nonlocal bulk_prefix
        kind = op[0]
        if kind == "create":
            result = await service.create_unit(
                prop.id, TENANT, _unit_payload(f"N{op[1]}"), ACTOR, "corr",
            )
            if result.ok:
                known.append(result.value.id)
        elif kind == "status":
            await service.update_unit_status(pick(op[1]), TENANT, op[2], ACTOR, "corr")
        elif kind == "edit":
            await service.update_unit(
                pick(op[1]), TENANT, {"monthly_rent": {"amount": "1200"}}, ACTOR, "corr",
            )
        elif kind == "delete":
            await service.delete_unit(pick(op[1]), TENANT, ACTOR, "corr")
        elif kind == "bulk":
            bulk_prefix += 1
            result = await service.bulk_create_units(
                prop.id,
                TENANT,
                {
                    "prefix": f"B{bulk_prefix}-",
                    "count": op[1],
                    "type": UnitType.STUDIO,
                    "monthly_rent": {"amount": "1000"},
                    "deposit_amount": {"amount": "1000"},
                },
                ACTOR,
                "corr",
            )
            if result.ok:
                known.extend(u.id for u in result.value)
        else:
            await service.bulk_update_unit_status(
                TENANT,
                {"unit_ids": [pick(i) for i in op[1]], "status": op[2]},
                ACTOR,
                "corr",
            )

    if concurrent:
        await asyncio.gather(*(run(op) for op in ops))
    else:
        for op in ops:
            await run(op)


async def _assert_counters_match(service, units, prop) -> None:
    stored = (await service.get_property(prop.id, TENANT)).unwrap()
    counts = await units.count_by_property(prop.id, TENANT)

    assert stored.total_units == counts.total
    assert stored.occupied_units == counts.occupied
    assert stored.vacant_units == counts.vacant
    assert stored.occupied_units + stored.vacant_units <= stored.total_units
    # Occupied units are never soft-deleted
    assert not any(
        row.is_deleted and row.status == UnitStatus.OCCUPIED
        for row in units._rows.values()
    )


@given(ops=operations)
@settings(max_examples=60, deadline=None)
@pytest.mark.asyncio
async def test_counters_match_recount_after_sequential_ops(ops):
    """Counters equal a fresh recount after every sequential history."""
    service, units, prop = await _fresh_service()
    await _apply(service, prop, ops, concurrent=False)
    await _assert_counters_match(service, units, prop)


@given(ops=operations)
@settings(max_examples=40, deadline=None)
@pytest.mark.asyncio
async def test_counters_match_recount_after_concurrent_ops(ops):
    """Interleaved operations on one property never leave counters stale."""
    service, units, prop = await _fresh_service()
    await _apply(service, prop, ops, concurrent=True)
    await _assert_counters_match(service, units, prop)


@given(
    occupied_index=st.integers(min_value=0, max_value=4),
    target=statuses,
)
@settings(max_examples=30, deadline=None)
@pytest.mark.asyncio
async def test_bulk_status_is_all_or_nothing(occupied_index, target):
    """Either every unit reaches the target status or none changes."""
    service, _units, prop = await _fresh_service()
    created = (await service.bulk_create_units(
        prop.id,
        TENANT,
        {
            "prefix": "E",
            "count": 5,
            "type": UnitType.STUDIO,
            "monthly_rent": {"amount": "1000"},
            "deposit_amount": {"amount": "1000"},
        },
        ACTOR,
        "corr",
    )).unwrap()
    await service.update_unit_status(
        created[occupied_index].id, TENANT, UnitStatus.OCCUPIED, ACTOR, "corr",
    )
    before = [(await service.get_unit(u.id, TENANT)).value.status for u in created]

    result = await service.bulk_update_unit_status(
        TENANT, {"unit_ids": [u.id for u in created], "status": target}, ACTOR, "corr",
    )

    after = [(await service.get_unit(u.id, TENANT)).value.status for u in created]
    if result.ok:
        assert after == [target] * 5
    else:
        assert target == UnitStatus.VACANT
        assert after == before
