"""In-memory event bus for tests and single-process deployments.

No external dependencies. Handlers are called synchronously in publish order.

- Subscriptions are keyed by ``event_type`` (``"*"`` receives everything)
- A failing handler never prevents delivery to the others
- Handler failures are counted and kept as dead letters
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from .envelope import EventEnvelope

logger = logging.getLogger(__name__)

EnvelopeHandler = Callable[[EventEnvelope], Awaitable[None]]

WILDCARD = "*"


@dataclass
class MemoryDeadLetter:
    """Record of a handler failure in the memory bus."""

    event_type: str
    group: str
    event_id: str
    error: str
    timestamp: float = field(default_factory=time.monotonic)


class MemoryEventBus:
    """In-memory ``IEventBus``. Safe within a single asyncio event loop."""

    def __init__(
        self,
        on_handler_error: Callable[[str, str, str, Exception], None] | None = None,
    ) -> None:
        # event_type → list of (group, handler)
        self._handlers: dict[str, list[tuple[str, EnvelopeHandler]]] = defaultdict(list)
        self._history: list[EventEnvelope] = []
        self._on_handler_error = on_handler_error

        self._error_counts: dict[str, int] = defaultdict(int)
        self._dead_letters: list[MemoryDeadLetter] = []
        self._messages_processed: int = 0

    async def publish(self, envelope: EventEnvelope) -> None:
        """Record *envelope* and deliver it to every matching handler."""
        self._history.append(envelope)

        handlers = [
            *self._handlers.get(envelope.event_type, []),
            *self._handlers.get(WILDCARD, []),
        ]
        for group, handler in handlers:
            try:
                await handler(envelope)
                self._messages_processed += 1
            except Exception as exc:
                self._error_counts[f"{envelope.event_type}/{group}"] += 1
                self._dead_letters.append(
                    MemoryDeadLetter(
                        event_type=envelope.event_type,
                        group=group,
                        event_id=envelope.event_id,
                        error=str(exc),
                    )
                )
                logger.exception(
                    "Handler error on event_type=%s group=%s event_id=%s",
                    envelope.event_type,
                    group,
                    envelope.event_id,
                )

                if self._on_handler_error is not None:
                    try:
                        self._on_handler_error(
                            envelope.event_type, group, envelope.event_id, exc,
                        )
                    except Exception:
                        logger.warning(
                            "on_handler_error callback failed",
                            exc_info=True,
                        )

    def subscribe(
        self,
        event_type: str,
        handler: EnvelopeHandler,
        group: str = "default",
    ) -> None:
        """Register *handler* for ``event_type`` (or ``"*"``)."""
        self._handlers[event_type].append((group, handler))

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def get_error_counts(self) -> dict[str, int]:
        """Return per-event-type/group error counts."""
        return dict(self._error_counts)

    @property
    def dead_letters(self) -> list[MemoryDeadLetter]:
        return list(self._dead_letters)

    @property
    def messages_processed(self) -> int:
        return self._messages_processed

    # ------------------------------------------------------------------
    # Testing helpers
    # ------------------------------------------------------------------

    def get_history(self, event_type: str | None = None) -> list[EventEnvelope]:
        """Get published envelopes, optionally filtered by event type."""
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.event_type == event_type]

    def clear_history(self) -> None:
        self._history.clear()
