"""Exception hierarchy for infrastructure failures.

Business outcomes (not found, conflicts, validation, occupancy guards) are
returned as ``Err`` results, see :mod:`estate_aggregate.core.result`.
The exceptions below are reserved for conditions the caller cannot
recover from inside a single call.
"""


class EstateError(Exception):
    """Base exception for all estate aggregate errors."""


# --- Configuration ---
class ConfigError(EstateError):
    """Invalid or missing configuration."""


# --- Storage ---
class RepositoryError(EstateError):
    """A repository collaborator failed to read or write."""


class EntityNotFoundError(RepositoryError):
    """A repository was asked to mutate a row that does not exist."""


class DuplicateEntityError(RepositoryError):
    """A repository write would violate a uniqueness constraint."""


class ConcurrencyConflictError(RepositoryError):
    """The optimistic version token on an aggregate root is stale."""

    def __init__(self, entity_id: str, expected: int, actual: int):
        self.entity_id = entity_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Version conflict on {entity_id}: expected {expected}, found {actual}"
        )
