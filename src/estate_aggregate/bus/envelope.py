"""Standard envelope wrapping every published domain event."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from estate_aggregate.core.enums import AggregateType
from estate_aggregate.domain.events import EVENT_AGGREGATES, DomainEvent


class EventEnvelope(BaseModel):
    """Transport wrapper: identity, tracing, aggregate reference, payload."""

    model_config = ConfigDict(frozen=True)

    event_id: str
    event_type: str
    timestamp: datetime
    tenant_id: str
    correlation_id: str
    causation_id: str | None = None
    aggregate_id: str
    aggregate_type: AggregateType
    metadata: dict[str, Any] = Field(default_factory=dict)
    payload: dict[str, Any] = Field(default_factory=dict)


def create_event_envelope(
    event: DomainEvent,
    aggregate_id: str,
    aggregate_type: AggregateType | None = None,
) -> EventEnvelope:
    """Wrap *event* for publication.

    ``aggregate_type`` defaults to the registered aggregate of the event
    class.
    """
    if aggregate_type is None:
        try:
            aggregate_type = EVENT_AGGREGATES[type(event)]
        except KeyError:
            raise ValueError(
                f"No aggregate registered for {event.event_type}; pass aggregate_type"
            ) from None

    return EventEnvelope(
        event_id=event.event_id,
        event_type=event.event_type,
        timestamp=event.timestamp,
        tenant_id=event.tenant_id,
        correlation_id=event.correlation_id,
        causation_id=event.causation_id,
        aggregate_id=aggregate_id,
        aggregate_type=aggregate_type,
        metadata=dict(event.metadata),
        payload=event.payload(),
    )
