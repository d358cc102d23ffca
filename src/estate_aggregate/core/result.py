"""Tagged success/error result returned by every service operation.

Design invariants
-----------------
1.  Service operations never raise for business outcomes.  A missing
    entity, a duplicate code or an occupied unit is an ``Err`` carrying a
    :class:`ServiceError`; callers branch on ``result.ok`` or use
    structural pattern matching::

        match await service.create_unit(...):
            case Ok(value=unit):
                ...
            case Err(error=error):
                ...

2.  Infrastructure failures (repository I/O, version conflicts that
    survive the refresh loop) are *not* wrapped; they propagate.
3.  Both variants are immutable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeVar, Union

from .enums import ErrorCode

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class ServiceError:
    """A recoverable business failure."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> Literal[True]:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E

    @property
    def ok(self) -> Literal[False]:
        return False

    def unwrap(self) -> Any:
        raise ValueError(f"Called unwrap() on an Err result: {self.error}")


Result = Union[Ok[T], Err[E]]


def err(code: ErrorCode, message: str, /, **details: Any) -> Err[ServiceError]:
    """Shorthand for ``Err(ServiceError(code, message, details))``."""
    return Err(ServiceError(code=code, message=message, details=details))
