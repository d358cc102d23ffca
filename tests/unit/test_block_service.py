"""Test block operations: code generation, updates, delete guard."""

from estate_aggregate.core.enums import BlockStatus, ErrorCode, UnitStatus
from estate_aggregate.core.models import UpdateBlockInput

TENANT = "tenant-1"
ACTOR = "user-1"
CORRELATION = "corr-1"


class TestCreateBlock:
    async def test_code_derived_from_property_code(self, service, sample_property):
        first = await service.create_block(
            sample_property.id, TENANT, {"name": "Tower A"}, ACTOR, CORRELATION,
        )
        second = await service.create_block(
            sample_property.id, TENANT, {"name": "Tower B"}, ACTOR, CORRELATION,
        )

        assert first.value.block_code == "PROP-2026-0001-B01"
        assert second.value.block_code == "PROP-2026-0001-B02"
        assert first.value.id.startswith("blk_")
        assert first.value.status == BlockStatus.ACTIVE

    async def test_explicit_code_must_be_unique_in_property(self, service, sample_property):
        await service.create_block(
            sample_property.id, TENANT, {"name": "A", "block_code": "NORTH"}, ACTOR, CORRELATION,
        )
        result = await service.create_block(
            sample_property.id, TENANT, {"name": "B", "block_code": "NORTH"}, ACTOR, CORRELATION,
        )

        assert result.error.code == ErrorCode.PROPERTY_CODE_EXISTS
        assert result.error.details["block_code"] == "NORTH"

    async def test_unknown_property(self, service):
        result = await service.create_block(
            "prop_missing", TENANT, {"name": "Tower A"}, ACTOR, CORRELATION,
        )
        assert result.error.code == ErrorCode.PROPERTY_NOT_FOUND

    async def test_name_required(self, service, sample_property):
        result = await service.create_block(sample_property.id, TENANT, {}, ACTOR, CORRELATION)
        assert result.error.code == ErrorCode.INVALID_PROPERTY_DATA

    async def test_publishes_block_created(self, service, memory_bus, sample_property):
        block = (await service.create_block(
            sample_property.id, TENANT, {"name": "Tower A"}, ACTOR, CORRELATION,
        )).unwrap()

        [envelope] = memory_bus.get_history("BlockCreated")
        assert envelope.aggregate_id == block.id
        assert envelope.aggregate_type.value == "Block"
        assert envelope.payload["block_code"] == block.block_code


class TestReadBlocks:
    async def test_listed_by_sort_order(self, service, sample_property):
        await service.create_block(
            sample_property.id, TENANT, {"name": "Late", "sort_order": 2}, ACTOR, CORRELATION,
        )
        await service.create_block(
            sample_property.id, TENANT, {"name": "Early", "sort_order": 1}, ACTOR, CORRELATION,
        )

        page = await service.list_blocks_by_property(sample_property.id, TENANT)

        assert [b.name for b in page.items] == ["Early", "Late"]

    async def test_get_block_not_found(self, service):
        result = await service.get_block("blk_missing", TENANT)
        assert result.error.code == ErrorCode.PROPERTY_NOT_FOUND
        assert result.error.message == "Block not found"

    async def test_list_units_by_block(self, service, sample_property, unit_input):
        block = (await service.create_block(
            sample_property.id, TENANT, {"name": "Tower A"}, ACTOR, CORRELATION,
        )).unwrap()
        await service.create_unit(
            sample_property.id, TENANT, unit_input("A01", block_id=block.id), ACTOR, CORRELATION,
        )
        await service.create_unit(sample_property.id, TENANT, unit_input("X01"), ACTOR, CORRELATION)

        page = await service.list_units_by_block(block.id, TENANT)

        assert [u.unit_number for u in page.items] == ["A01"]


class TestUpdateBlock:
    async def test_explicit_none_clears_nullable_fields(self, service, sample_property):
        block = (await service.create_block(
            sample_property.id,
            TENANT,
            {"name": "Tower A", "description": "North wing", "manager_id": "m-1"},
            ACTOR,
            CORRELATION,
        )).unwrap()

        result = await service.update_block(
            block.id,
            TENANT,
            UpdateBlockInput(description=None, manager_id=None, name=None),
            ACTOR,
            CORRELATION,
        )

        assert result.value.description is None
        assert result.value.manager_id is None
        assert result.value.name == "Tower A"

    async def test_status_and_flags(self, service, sample_property):
        block = (await service.create_block(
            sample_property.id, TENANT, {"name": "Tower A"}, ACTOR, CORRELATION,
        )).unwrap()

        result = await service.update_block(
            block.id,
            TENANT,
            {"status": "under_maintenance", "has_elevator": True},
            ACTOR,
            CORRELATION,
        )

        assert result.value.status == BlockStatus.UNDER_MAINTENANCE
        assert result.value.has_elevator is True
        assert result.value.block_code == block.block_code

    async def test_not_found(self, service):
        result = await service.update_block("blk_missing", TENANT, {}, ACTOR, CORRELATION)
        assert result.error.code == ErrorCode.PROPERTY_NOT_FOUND


class TestDeleteBlock:
    async def test_refused_with_occupied_units(self, service, sample_property, unit_input):
        block = (await service.create_block(
            sample_property.id, TENANT, {"name": "Tower A"}, ACTOR, CORRELATION,
        )).unwrap()
        unit = (await service.create_unit(
            sample_property.id, TENANT, unit_input(block_id=block.id), ACTOR, CORRELATION,
        )).unwrap()
        await service.update_unit_status(unit.id, TENANT, UnitStatus.OCCUPIED, ACTOR, CORRELATION)

        result = await service.delete_block(block.id, TENANT, ACTOR, CORRELATION)

        assert result.error.code == ErrorCode.CANNOT_DELETE_WITH_ACTIVE_LEASES
        assert (await service.get_block(block.id, TENANT)).ok

    async def test_deleted_when_no_occupied_units(self, service, sample_property, unit_input):
        block = (await service.create_block(
            sample_property.id, TENANT, {"name": "Tower A"}, ACTOR, CORRELATION,
        )).unwrap()
        await service.create_unit(
            sample_property.id, TENANT, unit_input(block_id=block.id), ACTOR, CORRELATION,
        )

        result = await service.delete_block(block.id, TENANT, ACTOR, CORRELATION)

        assert result.ok
        assert not (await service.get_block(block.id, TENANT)).ok

    async def test_not_found(self, service):
        result = await service.delete_block("blk_missing", TENANT, ACTOR, CORRELATION)
        assert result.error.code == ErrorCode.PROPERTY_NOT_FOUND
