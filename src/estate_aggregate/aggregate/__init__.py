"""Property aggregate: service orchestration, counter sync, stats and health."""

from estate_aggregate.aggregate.service import PropertyAggregateService

__all__ = ["PropertyAggregateService"]
