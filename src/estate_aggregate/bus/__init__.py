"""Event bus: envelope schema and the in-memory ``IEventBus`` implementation."""

from estate_aggregate.bus.envelope import EventEnvelope, create_event_envelope
from estate_aggregate.bus.memory_bus import MemoryEventBus

__all__ = ["EventEnvelope", "MemoryEventBus", "create_event_envelope"]
