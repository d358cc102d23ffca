"""Service wiring.

Loads settings, configures logging from them, and assembles a
:class:`PropertyAggregateService` over the in-memory repositories and bus.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from estate_aggregate.aggregate.service import PropertyAggregateService
from estate_aggregate.bus.memory_bus import MemoryEventBus
from estate_aggregate.core.clock import IClock
from estate_aggregate.core.config import Settings, load_settings
from estate_aggregate.core.interfaces import ILeaseChecker
from estate_aggregate.observability.logger import get_logger, setup_logging
from estate_aggregate.storage.memory import (
    InMemoryBlockRepository,
    InMemoryPropertyRepository,
    InMemoryUnitRepository,
)

logger = get_logger(__name__)


def _setup_logging(settings: Settings) -> None:
    """Configure structured logging."""
    setup_logging(
        level=settings.observability.log_level,
        format=settings.observability.log_format,
    )


def build_service(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
    *,
    clock: IClock | None = None,
    lease_checker: ILeaseChecker | None = None,
) -> PropertyAggregateService:
    """Main entry point. Load config, set up logging, wire modules."""

    # 1. Load and validate settings
    settings = load_settings(config_path=config_path, overrides=overrides)

    # 2. Set up logging
    _setup_logging(settings)

    # 3. Wire repositories, bus and service
    service = PropertyAggregateService(
        InMemoryPropertyRepository(),
        InMemoryUnitRepository(),
        InMemoryBlockRepository(),
        MemoryEventBus(),
        clock=clock,
        lease_checker=lease_checker,
        settings=settings,
    )
    logger.info(
        "service_started",
        service=settings.service_name,
        default_currency=settings.default_currency,
        log_format=settings.observability.log_format,
    )
    return service
