"""Property / Block / Unit aggregate service.

Owns the consistency of the tenant-scoped hierarchy:

*  unique property codes (per tenant), unit numbers and block codes (per
   property);
*  the denormalized unit counters on :class:`Property`, refreshed after
   every change to the unit population (see :mod:`.counters`);
*  occupancy guards on destructive operations;
*  validate-then-commit batch operations.

Every public mutating operation takes ``tenant_id``, the input payload
(a model instance or a plain mapping), the acting user and the caller's
correlation id, and returns ``Ok`` / ``Err``.  Repository failures
propagate.  Events are published after the writes and are best-effort.
Unit writes and their guards run under the owning property's lock, so a
guard is always checked against the row the write replaces.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from estate_aggregate.bus.envelope import create_event_envelope
from estate_aggregate.core.clock import IClock, WallClock
from estate_aggregate.core.codes import (
    format_unit_number,
    generate_block_code,
    generate_property_code,
)
from estate_aggregate.core.config import Settings
from estate_aggregate.core.enums import ErrorCode, UnitStatus
from estate_aggregate.core.errors import DuplicateEntityError, EntityNotFoundError
from estate_aggregate.core.ids import new_block_id, new_property_id, new_unit_id
from estate_aggregate.core.interfaces import (
    IBlockRepository,
    IEventBus,
    ILeaseChecker,
    IPropertyRepository,
    IUnitRepository,
)
from estate_aggregate.core.models import (
    Block,
    BulkCreateUnitInput,
    BulkUpdateUnitStatusInput,
    CreateBlockInput,
    CreatePropertyInput,
    CreateUnitInput,
    Money,
    PaginatedResult,
    PaginationParams,
    Property,
    PropertyHealthScore,
    PropertyStats,
    Unit,
    UpdateBlockInput,
    UpdatePropertyInput,
    UpdateUnitInput,
)
from estate_aggregate.core.result import Err, Ok, Result, ServiceError, err
from estate_aggregate.domain.events import (
    BlockCreated,
    BulkUnitsCreated,
    DomainEvent,
    PropertyCreated,
    UnitCreated,
)
from estate_aggregate.observability.logger import bind_request, get_logger

from .counters import PropertyCounterSync
from .health import compute_health_score
from .stats import compute_property_stats, summarize_revenue

logger = get_logger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)


# Fields an update may explicitly clear by sending ``None``
_PROPERTY_NULLABLE = frozenset({"manager_id"})
_UNIT_NULLABLE = frozenset({"next_inspection_due"})
_BLOCK_NULLABLE = frozenset({"description", "manager_id"})
_ADDRESS_NULLABLE = frozenset({"line2", "state", "postal_code"})


def _parse(
    model_cls: type[InputT], payload: BaseModel | Mapping[str, Any], code: ErrorCode,
) -> Result[InputT, ServiceError]:
    """Coerce *payload* into *model_cls*, reporting failures as ``Err``."""
    if isinstance(payload, model_cls):
        return Ok(payload)
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(exclude_unset=True)
    try:
        return Ok(model_cls.model_validate(payload))
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in e["loc"]) for e in exc.errors()})
        return err(code, f"Invalid or missing fields: {', '.join(fields)}", fields=fields)


def _changes(patch: BaseModel, nullable: frozenset[str]) -> dict[str, Any]:
    """Fields explicitly present in *patch*; ``None`` only counts when nullable."""
    changes: dict[str, Any] = {}
    for name in patch.model_fields_set:
        value = getattr(patch, name)
        if value is None and name not in nullable:
            continue
        changes[name] = value
    return changes


class PropertyAggregateService:
    """Lifecycle, bulk, stats and health operations for the property aggregate."""

    def __init__(
        self,
        property_repo: IPropertyRepository,
        unit_repo: IUnitRepository,
        block_repo: IBlockRepository,
        event_bus: IEventBus,
        *,
        clock: IClock | None = None,
        lease_checker: ILeaseChecker | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._properties = property_repo
        self._units = unit_repo
        self._blocks = block_repo
        self._bus = event_bus
        self._clock = clock or WallClock()
        self._lease_checker = lease_checker
        self._settings = settings or Settings()
        self._settings.validate_limits()
        self._counters = PropertyCounterSync(
            property_repo,
            unit_repo,
            refresh_attempts=self._settings.counters.refresh_attempts,
        )

    # ==================================================================
    # Helpers
    # ==================================================================

    def _page(self, pagination: PaginationParams | None) -> PaginationParams:
        return pagination or PaginationParams(limit=self._settings.pagination.default_limit)

    async def _all_units(self, property_id: str, tenant_id: str) -> list[Unit]:
        """Every live unit of a property, walking all pages."""
        size = self._settings.pagination.scan_page_size
        units: list[Unit] = []
        offset = 0
        while True:
            page = await self._units.find_by_property(
                property_id, tenant_id, PaginationParams(limit=size, offset=offset),
            )
            units.extend(page.items)
            if not page.has_more or not page.items:
                return units
            offset += len(page.items)

    @staticmethod
    def _currency_error(prop: Property, *amounts: Money | None) -> Err[ServiceError] | None:
        for money in amounts:
            if money is not None and money.currency != prop.default_currency:
                return err(
                    ErrorCode.INVALID_UNIT_DATA,
                    f"Amounts must be in {prop.default_currency}, got {money.currency}",
                    currency=money.currency,
                )
        return None

    async def _block_error(
        self, block_id: str | None, property_id: str, tenant_id: str,
    ) -> Err[ServiceError] | None:
        if block_id is None:
            return None
        block = await self._blocks.find_by_id(block_id, tenant_id)
        if block is None or block.property_id != property_id:
            return err(
                ErrorCode.INVALID_UNIT_DATA,
                f"Block {block_id} does not belong to property {property_id}",
                block_id=block_id,
            )
        return None

    async def _publish(self, event: DomainEvent, aggregate_id: str) -> None:
        """Publish after commit; a failed publish never undoes the writes."""
        envelope = create_event_envelope(event, aggregate_id)
        try:
            await self._bus.publish(envelope)
        except Exception:
            logger.exception(
                "event_publish_failed",
                event_type=envelope.event_type,
                event_id=envelope.event_id,
                aggregate_id=aggregate_id,
            )

    def _event_metadata(self, actor: str) -> dict[str, Any]:
        return {"actor": actor, "source": self._settings.service_name}

    async def _generate_property_code(self, tenant_id: str) -> str:
        codes = self._settings.codes
        sequence = await self._properties.get_next_sequence(tenant_id)
        return generate_property_code(
            self._clock.now().year,
            sequence,
            prefix=codes.property_prefix,
            width=codes.property_sequence_width,
        )

    # ==================================================================
    # Property operations
    # ==================================================================

    async def create_property(
        self,
        tenant_id: str,
        payload: CreatePropertyInput | Mapping[str, Any],
        actor: str,
        correlation_id: str,
    ) -> Result[Property, ServiceError]:
        with bind_request(correlation_id, tenant_id):
            parsed = _parse(CreatePropertyInput, payload, ErrorCode.INVALID_PROPERTY_DATA)
            if not parsed.ok:
                return parsed
            data = parsed.value

            code = data.code or await self._generate_property_code(tenant_id)
            if await self._properties.find_by_code(code, tenant_id) is not None:
                return err(
                    ErrorCode.PROPERTY_CODE_EXISTS,
                    f"Property with code {code} already exists",
                    code=code,
                )

            now = self._clock.now()
            prop = Property(
                id=new_property_id(),
                tenant_id=tenant_id,
                owner_id=data.owner_id,
                name=data.name,
                code=code,
                type=data.type,
                address=data.address,
                description=data.description,
                year_built=data.year_built,
                total_area=data.total_area,
                default_currency=data.default_currency or self._settings.default_currency,
                amenities=list(data.amenities),
                manager_id=data.manager_id,
                created_at=now,
                created_by=actor,
                updated_at=now,
                updated_by=actor,
            )
            try:
                saved = await self._properties.create(prop)
            except DuplicateEntityError:
                return err(
                    ErrorCode.PROPERTY_CODE_EXISTS,
                    f"Property with code {code} already exists",
                    code=code,
                )

            logger.info("property_created", property_id=saved.id, code=saved.code)
            await self._publish(
                PropertyCreated(
                    tenant_id=tenant_id,
                    correlation_id=correlation_id,
                    metadata=self._event_metadata(actor),
                    property_id=saved.id,
                    name=saved.name,
                    code=saved.code,
                    type=saved.type.value,
                    owner_id=saved.owner_id,
                ),
                saved.id,
            )
            return Ok(saved)

    async def get_property(self, property_id: str, tenant_id: str) -> Result[Property, ServiceError]:
        prop = await self._properties.find_by_id(property_id, tenant_id)
        if prop is None:
            return err(ErrorCode.PROPERTY_NOT_FOUND, "Property not found", property_id=property_id)
        return Ok(prop)

    async def get_property_by_code(self, code: str, tenant_id: str) -> Result[Property, ServiceError]:
        prop = await self._properties.find_by_code(code, tenant_id)
        if prop is None:
            return err(ErrorCode.PROPERTY_NOT_FOUND, "Property not found", code=code)
        return Ok(prop)

    async def list_properties(
        self, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Property]:
        return await self._properties.find_many(tenant_id, self._page(pagination))

    async def list_properties_by_owner(
        self, owner_id: str, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Property]:
        return await self._properties.find_by_owner(owner_id, tenant_id, self._page(pagination))

    async def list_properties_by_manager(
        self, manager_id: str, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Property]:
        return await self._properties.find_by_manager(
            manager_id, tenant_id, self._page(pagination),
        )

    async def update_property(
        self,
        property_id: str,
        tenant_id: str,
        payload: UpdatePropertyInput | Mapping[str, Any],
        actor: str,
        correlation_id: str,
    ) -> Result[Property, ServiceError]:
        with bind_request(correlation_id, tenant_id):
            parsed = _parse(UpdatePropertyInput, payload, ErrorCode.INVALID_PROPERTY_DATA)
            if not parsed.ok:
                return parsed
            patch = parsed.value

            async with self._counters.lock(property_id, tenant_id):
                prop = await self._properties.find_by_id(property_id, tenant_id)
                if prop is None:
                    return err(
                        ErrorCode.PROPERTY_NOT_FOUND, "Property not found", property_id=property_id,
                    )

                changes = _changes(patch, _PROPERTY_NULLABLE)
                if "address" in changes:
                    address_patch = _changes(changes["address"], _ADDRESS_NULLABLE)
                    changes["address"] = prop.address.model_copy(update=address_patch)
                changes["updated_at"] = self._clock.now()
                changes["updated_by"] = actor

                saved = await self._properties.update(prop.model_copy(update=changes))

            logger.info("property_updated", property_id=property_id, fields=sorted(patch.model_fields_set))
            return Ok(saved)

    async def assign_manager(
        self,
        property_id: str,
        tenant_id: str,
        manager_id: str | None,
        actor: str,
        correlation_id: str,
    ) -> Result[Property, ServiceError]:
        return await self.update_property(
            property_id,
            tenant_id,
            UpdatePropertyInput(manager_id=manager_id),
            actor,
            correlation_id,
        )

    async def delete_property(
        self,
        property_id: str,
        tenant_id: str,
        actor: str,
        correlation_id: str,
    ) -> Result[None, ServiceError]:
        with bind_request(correlation_id, tenant_id):
            async with self._counters.lock(property_id, tenant_id):
                prop = await self._properties.find_by_id(property_id, tenant_id)
                if prop is None:
                    return err(
                        ErrorCode.PROPERTY_NOT_FOUND, "Property not found", property_id=property_id,
                    )

                counts = await self._units.count_by_property(property_id, tenant_id)
                if counts.occupied > 0:
                    return err(
                        ErrorCode.CANNOT_DELETE_WITH_ACTIVE_LEASES,
                        "Cannot delete a property with occupied units",
                        occupied_units=counts.occupied,
                    )
                if self._lease_checker is not None and await self._lease_checker.has_active_leases(
                    property_id, tenant_id,
                ):
                    return err(
                        ErrorCode.CANNOT_DELETE_WITH_ACTIVE_LEASES,
                        "Cannot delete a property with active leases",
                    )

                await self._properties.delete(property_id, tenant_id, actor)

            logger.info("property_deleted", property_id=property_id)
            return Ok(None)

    async def get_property_stats(
        self, property_id: str, tenant_id: str,
    ) -> Result[PropertyStats, ServiceError]:
        prop = await self._properties.find_by_id(property_id, tenant_id)
        if prop is None:
            return err(ErrorCode.PROPERTY_NOT_FOUND, "Property not found", property_id=property_id)

        counts = await self._units.count_by_property(property_id, tenant_id)
        units = await self._all_units(property_id, tenant_id)
        revenue = summarize_revenue(units, prop.default_currency)
        return Ok(compute_property_stats(property_id, counts, revenue))

    # ==================================================================
    # Unit operations
    # ==================================================================

    async def create_unit(
        self,
        property_id: str,
        tenant_id: str,
        payload: CreateUnitInput | Mapping[str, Any],
        actor: str,
        correlation_id: str,
    ) -> Result[Unit, ServiceError]:
        with bind_request(correlation_id, tenant_id):
            parsed = _parse(CreateUnitInput, payload, ErrorCode.INVALID_UNIT_DATA)
            if not parsed.ok:
                return parsed
            data = parsed.value

            prop = await self._properties.find_by_id(property_id, tenant_id)
            if prop is None:
                return err(
                    ErrorCode.PROPERTY_NOT_FOUND, "Property not found", property_id=property_id,
                )

            problem = self._currency_error(
                prop, data.monthly_rent, data.deposit_amount,
            ) or await self._block_error(data.block_id, property_id, tenant_id)
            if problem is not None:
                return problem

            duplicate = err(
                ErrorCode.UNIT_NUMBER_EXISTS,
                f"Unit {data.unit_number} already exists in this property",
                unit_number=data.unit_number,
            )
            async with self._counters.lock(property_id, tenant_id):
                if await self._properties.find_by_id(property_id, tenant_id) is None:
                    return err(
                        ErrorCode.PROPERTY_NOT_FOUND, "Property not found", property_id=property_id,
                    )
                if await self._units.find_by_unit_number(data.unit_number, property_id, tenant_id):
                    return duplicate

                now = self._clock.now()
                unit = Unit(
                    id=new_unit_id(),
                    tenant_id=tenant_id,
                    property_id=property_id,
                    created_at=now,
                    created_by=actor,
                    updated_at=now,
                    updated_by=actor,
                    **data.model_dump(),
                )
                try:
                    saved = await self._units.create(unit)
                except DuplicateEntityError:
                    return duplicate

                await self._counters.recount(property_id, tenant_id, actor, now)

            logger.info("unit_created", unit_id=saved.id, property_id=property_id)
            await self._publish(
                UnitCreated(
                    tenant_id=tenant_id,
                    correlation_id=correlation_id,
                    metadata=self._event_metadata(actor),
                    unit_id=saved.id,
                    property_id=property_id,
                    unit_number=saved.unit_number,
                    type=saved.type.value,
                ),
                saved.id,
            )
            return Ok(saved)

    async def get_unit(self, unit_id: str, tenant_id: str) -> Result[Unit, ServiceError]:
        unit = await self._units.find_by_id(unit_id, tenant_id)
        if unit is None:
            return err(ErrorCode.UNIT_NOT_FOUND, "Unit not found", unit_id=unit_id)
        return Ok(unit)

    async def list_units_by_property(
        self, property_id: str, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Unit]:
        return await self._units.find_by_property(property_id, tenant_id, self._page(pagination))

    async def list_units_by_block(
        self, block_id: str, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Unit]:
        return await self._units.find_by_block(block_id, tenant_id, self._page(pagination))

    async def list_vacant_units(
        self, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Unit]:
        return await self._units.find_vacant(tenant_id, self._page(pagination))

    async def update_unit(
        self,
        unit_id: str,
        tenant_id: str,
        payload: UpdateUnitInput | Mapping[str, Any],
        actor: str,
        correlation_id: str,
    ) -> Result[Unit, ServiceError]:
        with bind_request(correlation_id, tenant_id):
            parsed = _parse(UpdateUnitInput, payload, ErrorCode.INVALID_UNIT_DATA)
            if not parsed.ok:
                return parsed

            found = await self._units.find_by_id(unit_id, tenant_id)
            if found is None:
                return err(ErrorCode.UNIT_NOT_FOUND, "Unit not found", unit_id=unit_id)

            changes = _changes(parsed.value, _UNIT_NULLABLE)
            if "monthly_rent" in changes or "deposit_amount" in changes:
                prop = await self._properties.find_by_id(found.property_id, tenant_id)
                if prop is not None:
                    problem = self._currency_error(
                        prop, changes.get("monthly_rent"), changes.get("deposit_amount"),
                    )
                    if problem is not None:
                        return problem

            async with self._counters.lock(found.property_id, tenant_id):
                # Re-read under the lock so the write starts from the latest row
                unit = await self._units.find_by_id(unit_id, tenant_id)
                if unit is None:
                    return err(ErrorCode.UNIT_NOT_FOUND, "Unit not found", unit_id=unit_id)

                now = self._clock.now()
                changes["updated_at"] = now
                changes["updated_by"] = actor
                try:
                    saved = await self._units.update(unit.model_copy(update=changes))
                except EntityNotFoundError:
                    # Deleted by another process between the read and the write
                    return err(ErrorCode.UNIT_NOT_FOUND, "Unit not found", unit_id=unit_id)
                if "status" in changes:
                    await self._counters.recount(unit.property_id, tenant_id, actor, now)

            if "status" in changes:
                logger.info(
                    "unit_status_changed",
                    unit_id=unit_id,
                    from_status=unit.status.value,
                    to_status=saved.status.value,
                )
            return Ok(saved)

    async def update_unit_status(
        self,
        unit_id: str,
        tenant_id: str,
        status: UnitStatus,
        actor: str,
        correlation_id: str,
    ) -> Result[Unit, ServiceError]:
        return await self.update_unit(
            unit_id, tenant_id, UpdateUnitInput(status=status), actor, correlation_id,
        )

    async def delete_unit(
        self,
        unit_id: str,
        tenant_id: str,
        actor: str,
        correlation_id: str,
    ) -> Result[None, ServiceError]:
        with bind_request(correlation_id, tenant_id):
            found = await self._units.find_by_id(unit_id, tenant_id)
            if found is None:
                return err(ErrorCode.UNIT_NOT_FOUND, "Unit not found", unit_id=unit_id)

            async with self._counters.lock(found.property_id, tenant_id):
                unit = await self._units.find_by_id(unit_id, tenant_id)
                if unit is None:
                    return err(ErrorCode.UNIT_NOT_FOUND, "Unit not found", unit_id=unit_id)
                if unit.status == UnitStatus.OCCUPIED:
                    return err(
                        ErrorCode.UNIT_OCCUPIED,
                        "Cannot delete an occupied unit",
                        unit_id=unit_id,
                    )

                await self._units.delete(unit_id, tenant_id, actor)
                await self._counters.recount(unit.property_id, tenant_id, actor, self._clock.now())

            logger.info("unit_deleted", unit_id=unit_id, property_id=unit.property_id)
            return Ok(None)

    # ==================================================================
    # Block operations
    # ==================================================================

    async def create_block(
        self,
        property_id: str,
        tenant_id: str,
        payload: CreateBlockInput | Mapping[str, Any],
        actor: str,
        correlation_id: str,
    ) -> Result[Block, ServiceError]:
        with bind_request(correlation_id, tenant_id):
            parsed = _parse(CreateBlockInput, payload, ErrorCode.INVALID_PROPERTY_DATA)
            if not parsed.ok:
                return parsed
            data = parsed.value

            prop = await self._properties.find_by_id(property_id, tenant_id)
            if prop is None:
                return err(
                    ErrorCode.PROPERTY_NOT_FOUND, "Property not found", property_id=property_id,
                )

            sequence = await self._blocks.get_next_sequence(property_id, tenant_id)
            block_code = data.block_code or generate_block_code(
                prop.code, sequence, width=self._settings.codes.block_sequence_width,
            )
            duplicate = err(
                ErrorCode.PROPERTY_CODE_EXISTS,
                f"Block code {block_code} already exists",
                block_code=block_code,
            )
            if await self._blocks.find_by_block_code(block_code, property_id, tenant_id):
                return duplicate

            now = self._clock.now()
            block = Block(
                id=new_block_id(),
                tenant_id=tenant_id,
                property_id=property_id,
                created_at=now,
                created_by=actor,
                updated_at=now,
                updated_by=actor,
                **data.model_dump(exclude={"block_code"}),
                block_code=block_code,
            )
            try:
                saved = await self._blocks.create(block)
            except DuplicateEntityError:
                return duplicate

            logger.info("block_created", block_id=saved.id, block_code=block_code)
            await self._publish(
                BlockCreated(
                    tenant_id=tenant_id,
                    correlation_id=correlation_id,
                    metadata=self._event_metadata(actor),
                    block_id=saved.id,
                    property_id=property_id,
                    block_code=saved.block_code,
                    name=saved.name,
                ),
                saved.id,
            )
            return Ok(saved)

    async def get_block(self, block_id: str, tenant_id: str) -> Result[Block, ServiceError]:
        block = await self._blocks.find_by_id(block_id, tenant_id)
        if block is None:
            return err(ErrorCode.PROPERTY_NOT_FOUND, "Block not found", block_id=block_id)
        return Ok(block)

    async def list_blocks_by_property(
        self, property_id: str, tenant_id: str, pagination: PaginationParams | None = None,
    ) -> PaginatedResult[Block]:
        return await self._blocks.find_by_property(property_id, tenant_id, self._page(pagination))

    async def update_block(
        self,
        block_id: str,
        tenant_id: str,
        payload: UpdateBlockInput | Mapping[str, Any],
        actor: str,
        correlation_id: str,
    ) -> Result[Block, ServiceError]:
        with bind_request(correlation_id, tenant_id):
            parsed = _parse(UpdateBlockInput, payload, ErrorCode.INVALID_PROPERTY_DATA)
            if not parsed.ok:
                return parsed

            block = await self._blocks.find_by_id(block_id, tenant_id)
            if block is None:
                return err(ErrorCode.PROPERTY_NOT_FOUND, "Block not found", block_id=block_id)

            changes = _changes(parsed.value, _BLOCK_NULLABLE)
            changes["updated_at"] = self._clock.now()
            changes["updated_by"] = actor
            try:
                saved = await self._blocks.update(block.model_copy(update=changes))
            except EntityNotFoundError:
                return err(ErrorCode.PROPERTY_NOT_FOUND, "Block not found", block_id=block_id)
            return Ok(saved)

    async def delete_block(
        self,
        block_id: str,
        tenant_id: str,
        actor: str,
        correlation_id: str,
    ) -> Result[None, ServiceError]:
        with bind_request(correlation_id, tenant_id):
            block = await self._blocks.find_by_id(block_id, tenant_id)
            if block is None:
                return err(ErrorCode.PROPERTY_NOT_FOUND, "Block not found", block_id=block_id)

            async with self._counters.lock(block.property_id, tenant_id):
                counts = await self._units.count_by_block(block_id, tenant_id)
                if counts.occupied > 0:
                    return err(
                        ErrorCode.CANNOT_DELETE_WITH_ACTIVE_LEASES,
                        "Cannot delete block with occupied units",
                        occupied_units=counts.occupied,
                    )

                await self._blocks.delete(block_id, tenant_id, actor)
            logger.info("block_deleted", block_id=block_id)
            return Ok(None)

    # ==================================================================
    # Health scoring
    # ==================================================================

    async def calculate_property_health_score(
        self, property_id: str, tenant_id: str,
    ) -> Result[PropertyHealthScore, ServiceError]:
        prop = await self._properties.find_by_id(property_id, tenant_id)
        if prop is None:
            return err(ErrorCode.PROPERTY_NOT_FOUND, "Property not found", property_id=property_id)

        counts = await self._units.count_by_property(property_id, tenant_id)
        units = await self._all_units(property_id, tenant_id)
        revenue = summarize_revenue(units, prop.default_currency)
        return Ok(compute_health_score(property_id, counts, units, revenue, self._clock.now()))

    # ==================================================================
    # Bulk operations
    # ==================================================================

    def _batch_size_error(self, size: int, noun: str) -> Err[ServiceError] | None:
        limit = self._settings.bulk.max_batch_size
        if size < 1:
            return err(ErrorCode.INVALID_UNIT_DATA, f"No {noun} provided")
        if size > limit:
            return err(
                ErrorCode.INVALID_UNIT_DATA,
                f"Cannot process more than {limit} {noun} at once",
                limit=limit,
                requested=size,
            )
        return None

    async def bulk_create_units(
        self,
        property_id: str,
        tenant_id: str,
        payload: BulkCreateUnitInput | Mapping[str, Any],
        actor: str,
        correlation_id: str,
    ) -> Result[list[Unit], ServiceError]:
        """Create ``count`` units numbered ``prefix + zero-padded(start + i)``.

        All unit numbers are checked before anything is written; the first
        collision fails the whole call and nothing is persisted.
        """
        with bind_request(correlation_id, tenant_id):
            parsed = _parse(BulkCreateUnitInput, payload, ErrorCode.INVALID_UNIT_DATA)
            if not parsed.ok:
                return parsed
            data = parsed.value

            prop = await self._properties.find_by_id(property_id, tenant_id)
            if prop is None:
                return err(
                    ErrorCode.PROPERTY_NOT_FOUND, "Property not found", property_id=property_id,
                )

            problem = (
                self._batch_size_error(data.count, "units")
                or self._currency_error(prop, data.monthly_rent, data.deposit_amount)
                or await self._block_error(data.block_id, property_id, tenant_id)
            )
            if problem is not None:
                return problem

            width = self._settings.codes.unit_number_width
            numbers = [
                format_unit_number(data.prefix, data.start_number + i, width=width)
                for i in range(data.count)
            ]
            async with self._counters.lock(property_id, tenant_id):
                for number in numbers:
                    if await self._units.find_by_unit_number(number, property_id, tenant_id):
                        return err(
                            ErrorCode.UNIT_NUMBER_EXISTS,
                            f"Unit {number} already exists in this property",
                            unit_number=number,
                        )

                now = self._clock.now()
                shared = data.model_dump(exclude={"prefix", "start_number", "count"})
                units = [
                    Unit(
                        id=new_unit_id(),
                        tenant_id=tenant_id,
                        property_id=property_id,
                        unit_number=number,
                        created_at=now,
                        created_by=actor,
                        updated_at=now,
                        updated_by=actor,
                        **shared,
                    )
                    for number in numbers
                ]
                try:
                    saved = await self._units.create_many(units)
                except DuplicateEntityError as exc:
                    return err(ErrorCode.UNIT_NUMBER_EXISTS, str(exc))

                await self._counters.recount(property_id, tenant_id, actor, now)

            logger.info("bulk_units_created", property_id=property_id, count=len(saved))
            await self._publish(
                BulkUnitsCreated(
                    tenant_id=tenant_id,
                    correlation_id=correlation_id,
                    metadata=self._event_metadata(actor),
                    property_id=property_id,
                    unit_count=len(saved),
                    unit_ids=tuple(u.id for u in saved),
                ),
                property_id,
            )
            return Ok(saved)

    async def bulk_update_unit_status(
        self,
        tenant_id: str,
        payload: BulkUpdateUnitStatusInput | Mapping[str, Any],
        actor: str,
        correlation_id: str,
    ) -> Result[list[Unit], ServiceError]:
        """Move every listed unit to one status, or none of them.

        Occupied units cannot be bulk-vacated; that needs a lease
        termination first.  Counters are refreshed once per property.
        """
        with bind_request(correlation_id, tenant_id):
            parsed = _parse(BulkUpdateUnitStatusInput, payload, ErrorCode.INVALID_UNIT_DATA)
            if not parsed.ok:
                return parsed
            data = parsed.value

            problem = self._batch_size_error(len(data.unit_ids), "unit IDs")
            if problem is not None:
                return problem

            unit_ids = list(dict.fromkeys(data.unit_ids))
            affected: dict[str, None] = {}
            for unit_id in unit_ids:
                unit = await self._units.find_by_id(unit_id, tenant_id)
                if unit is None:
                    return err(ErrorCode.UNIT_NOT_FOUND, f"Unit {unit_id} not found", unit_id=unit_id)
                affected[unit.property_id] = None

            async with self._counters.lock_many(affected, tenant_id):
                # Guards are checked against rows read while every lock is held
                now = self._clock.now()
                updated: list[Unit] = []
                for unit_id in unit_ids:
                    unit = await self._units.find_by_id(unit_id, tenant_id)
                    if unit is None:
                        return err(
                            ErrorCode.UNIT_NOT_FOUND, f"Unit {unit_id} not found", unit_id=unit_id,
                        )

                    if data.status == UnitStatus.VACANT and unit.status == UnitStatus.OCCUPIED:
                        return err(
                            ErrorCode.UNIT_OCCUPIED,
                            f"Cannot set occupied unit {unit.unit_number} to vacant. "
                            "Terminate the lease first.",
                            unit_id=unit_id,
                            unit_number=unit.unit_number,
                        )

                    updated.append(unit.model_copy(update={
                        "status": data.status,
                        "updated_at": now,
                        "updated_by": actor,
                    }))

                try:
                    saved = await self._units.update_many(updated)
                except EntityNotFoundError as exc:
                    return err(ErrorCode.UNIT_NOT_FOUND, str(exc))
                for property_id in affected:
                    await self._counters.recount(property_id, tenant_id, actor, now)

            logger.info(
                "bulk_unit_status_updated",
                status=data.status.value,
                count=len(saved),
                properties=len(affected),
            )
            return Ok(saved)

