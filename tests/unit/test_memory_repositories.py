"""Test the in-memory repositories against the repository contracts."""

from decimal import Decimal

import pytest

from estate_aggregate.core.enums import PropertyType, UnitStatus, UnitType
from estate_aggregate.core.errors import (
    ConcurrencyConflictError,
    DuplicateEntityError,
    EntityNotFoundError,
)
from estate_aggregate.core.interfaces import (
    IBlockRepository,
    IPropertyRepository,
    IUnitRepository,
)
from estate_aggregate.core.models import Address, Block, Money, PaginationParams, Property, Unit

TENANT = "tenant-1"


def _property(pid="prop_1", code="PROP-2026-0001", tenant=TENANT) -> Property:
    return Property(
        id=pid,
        tenant_id=tenant,
        owner_id="owner-1",
        name="Riverside",
        code=code,
        type=PropertyType.ESTATE,
        address=Address(line1="1 Main St", city="Nairobi"),
    )


def _unit(uid, number, property_id="prop_1", status=UnitStatus.VACANT, block_id=None) -> Unit:
    return Unit(
        id=uid,
        tenant_id=TENANT,
        property_id=property_id,
        block_id=block_id,
        unit_number=number,
        type=UnitType.STUDIO,
        status=status,
        monthly_rent=Money(amount=Decimal("1000")),
        deposit_amount=Money(amount=Decimal("1000")),
    )


class TestProtocolConformance:
    def test_repositories_satisfy_protocols(self, property_repo, unit_repo, block_repo):
        assert isinstance(property_repo, IPropertyRepository)
        assert isinstance(unit_repo, IUnitRepository)
        assert isinstance(block_repo, IBlockRepository)


class TestPropertyRepository:
    async def test_create_sets_version(self, property_repo):
        saved = await property_repo.create(_property())
        assert saved.version == 1

    async def test_returned_rows_are_copies(self, property_repo):
        await property_repo.create(_property())
        row = await property_repo.find_by_id("prop_1", TENANT)
        row.name = "mutated"

        assert (await property_repo.find_by_id("prop_1", TENANT)).name == "Riverside"

    async def test_duplicate_code_within_tenant(self, property_repo):
        await property_repo.create(_property())
        with pytest.raises(DuplicateEntityError):
            await property_repo.create(_property(pid="prop_2"))

    async def test_update_checks_version(self, property_repo):
        saved = await property_repo.create(_property())
        await property_repo.update(saved.model_copy(update={"name": "First"}))

        with pytest.raises(ConcurrencyConflictError) as exc_info:
            await property_repo.update(saved.model_copy(update={"name": "Stale"}))

        assert exc_info.value.expected == 1
        assert exc_info.value.actual == 2

    async def test_update_missing(self, property_repo):
        with pytest.raises(EntityNotFoundError):
            await property_repo.update(_property())

    async def test_soft_delete_hides_row_and_frees_code(self, property_repo):
        await property_repo.create(_property())
        await property_repo.delete("prop_1", TENANT, "user-1")

        assert await property_repo.find_by_id("prop_1", TENANT) is None
        assert await property_repo.find_by_code("PROP-2026-0001", TENANT) is None
        assert (await property_repo.find_many(TENANT)).total == 0
        await property_repo.create(_property(pid="prop_2"))

    async def test_tenant_isolation(self, property_repo):
        await property_repo.create(_property())
        assert await property_repo.find_by_id("prop_1", "tenant-2") is None

    async def test_sequences_per_tenant(self, property_repo):
        assert await property_repo.get_next_sequence(TENANT) == 1
        assert await property_repo.get_next_sequence(TENANT) == 2
        assert await property_repo.get_next_sequence("tenant-2") == 1


class TestUnitRepository:
    async def test_counts(self, unit_repo):
        await unit_repo.create_many([
            _unit("u1", "A01", status=UnitStatus.OCCUPIED),
            _unit("u2", "A02"),
            _unit("u3", "A03", status=UnitStatus.RESERVED),
            _unit("u4", "B01", property_id="prop_2"),
        ])

        counts = await unit_repo.count_by_property("prop_1", TENANT)

        assert (counts.total, counts.occupied, counts.vacant) == (3, 1, 1)

    async def test_create_many_is_all_or_nothing(self, unit_repo):
        await unit_repo.create(_unit("u1", "A02"))

        with pytest.raises(DuplicateEntityError):
            await unit_repo.create_many([_unit("u2", "A01"), _unit("u3", "A02")])

        assert await unit_repo.find_by_id("u2", TENANT) is None

    async def test_create_many_rejects_duplicates_inside_batch(self, unit_repo):
        with pytest.raises(DuplicateEntityError):
            await unit_repo.create_many([_unit("u1", "A01"), _unit("u2", "A01")])
        assert (await unit_repo.count_by_property("prop_1", TENANT)).total == 0

    async def test_update_many_is_all_or_nothing(self, unit_repo):
        await unit_repo.create(_unit("u1", "A01"))

        with pytest.raises(EntityNotFoundError):
            await unit_repo.update_many([
                _unit("u1", "A01", status=UnitStatus.OCCUPIED),
                _unit("u_missing", "A09"),
            ])

        assert (await unit_repo.find_by_id("u1", TENANT)).status == UnitStatus.VACANT

    async def test_find_by_block_and_count(self, unit_repo):
        await unit_repo.create_many([
            _unit("u1", "A01", block_id="blk_1", status=UnitStatus.OCCUPIED),
            _unit("u2", "A02", block_id="blk_1"),
            _unit("u3", "A03"),
        ])

        page = await unit_repo.find_by_block("blk_1", TENANT)
        counts = await unit_repo.count_by_block("blk_1", TENANT)

        assert [u.id for u in page.items] == ["u1", "u2"]
        assert counts.occupied == 1

    async def test_pagination(self, unit_repo):
        await unit_repo.create_many([_unit(f"u{i}", f"A{i:02d}") for i in range(5)])

        page = await unit_repo.find_by_property("prop_1", TENANT, PaginationParams(limit=2, offset=2))

        assert [u.unit_number for u in page.items] == ["A02", "A03"]
        assert page.total == 5
        assert page.has_more is True

    async def test_deleted_units_not_counted(self, unit_repo):
        await unit_repo.create_many([_unit("u1", "A01"), _unit("u2", "A02")])
        await unit_repo.delete("u1", TENANT, "user-1")

        assert (await unit_repo.count_by_property("prop_1", TENANT)).total == 1
        assert await unit_repo.find_by_unit_number("A01", "prop_1", TENANT) is None


class TestBlockRepository:
    def _block(self, bid, code, sort_order=0):
        return Block(
            id=bid,
            tenant_id=TENANT,
            property_id="prop_1",
            block_code=code,
            name=code,
            sort_order=sort_order,
        )

    async def test_code_unique_per_property(self, block_repo):
        await block_repo.create(self._block("b1", "B01"))
        with pytest.raises(DuplicateEntityError):
            await block_repo.create(self._block("b2", "B01"))

    async def test_sequences_per_property(self, block_repo):
        assert await block_repo.get_next_sequence("prop_1", TENANT) == 1
        assert await block_repo.get_next_sequence("prop_1", TENANT) == 2
        assert await block_repo.get_next_sequence("prop_2", TENANT) == 1

    async def test_ordered_by_sort_order(self, block_repo):
        await block_repo.create(self._block("b1", "B01", sort_order=5))
        await block_repo.create(self._block("b2", "B02", sort_order=1))

        page = await block_repo.find_by_property("prop_1", TENANT)

        assert [b.id for b in page.items] == ["b2", "b1"]
