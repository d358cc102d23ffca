"""Canonical domain events for the property aggregate.

Design invariants
-----------------
1.  Every event is **immutable** (``frozen=True``).
2.  ``event_id`` is a UUID4 generated at creation time; it serves as the
    idempotency / dedup key downstream.
3.  ``correlation_id`` is supplied by the caller and links every event
    produced while serving the same request.
4.  ``causation_id`` points to the ``event_id`` that directly caused this
    event, or is ``None`` when the cause is an external command.
5.  ``tenant_id`` is always set; events never cross tenants.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any

from estate_aggregate.core.enums import AggregateType
from estate_aggregate.core.ids import new_id as _uuid
from estate_aggregate.core.ids import utc_now as _now

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DomainEvent:
    """Immutable base for every domain event.

    Shared fields
    ~~~~~~~~~~~~~
    event_id        Unique identity (UUID4).  Idempotency key.
    timestamp       UTC creation time.
    tenant_id       Owning tenant.
    correlation_id  Groups events from the same request.
    causation_id    The ``event_id`` that directly caused this event.
    metadata        Free-form context (actor, source service).
    """

    event_id: str = field(default_factory=_uuid)
    timestamp: datetime = field(default_factory=_now)
    tenant_id: str = ""
    correlation_id: str = ""
    causation_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def payload(self) -> dict[str, Any]:
        """Event-specific fields as a JSON-friendly dict."""
        base = {f.name for f in fields(DomainEvent)}
        return {
            f.name: _jsonable(getattr(self, f.name))
            for f in fields(self)
            if f.name not in base
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (tuple, list)):
        return [_jsonable(v) for v in value]
    return value


# =========================================================================
# Property
# =========================================================================

@dataclass(frozen=True)
class PropertyCreated(DomainEvent):
    """A new property (aggregate root) was registered."""

    property_id: str = ""
    name: str = ""
    code: str = ""
    type: str = ""
    owner_id: str = ""


@dataclass(frozen=True)
class BulkUnitsCreated(DomainEvent):
    """A batch of units was created under one property."""

    property_id: str = ""
    unit_count: int = 0
    unit_ids: tuple[str, ...] = ()


# =========================================================================
# Unit
# =========================================================================

@dataclass(frozen=True)
class UnitCreated(DomainEvent):
    """A single unit was created."""

    unit_id: str = ""
    property_id: str = ""
    unit_number: str = ""
    type: str = ""


# =========================================================================
# Block
# =========================================================================

@dataclass(frozen=True)
class BlockCreated(DomainEvent):
    """A block was created inside a property."""

    block_id: str = ""
    property_id: str = ""
    block_code: str = ""
    name: str = ""


# =========================================================================
# Registry
# =========================================================================

#: The aggregate each event type is published against.
EVENT_AGGREGATES: dict[type[DomainEvent], AggregateType] = {
    PropertyCreated: AggregateType.PROPERTY,
    BulkUnitsCreated: AggregateType.PROPERTY,
    UnitCreated: AggregateType.UNIT,
    BlockCreated: AggregateType.BLOCK,
}

#: All domain event types in a deterministic order.
ALL_DOMAIN_EVENTS: tuple[type[DomainEvent], ...] = tuple(EVENT_AGGREGATES.keys())
