"""Human-readable code generators.

Sequences come from the repositories (per tenant for properties, per
property for blocks); this module only formats them.
"""

from __future__ import annotations

PROPERTY_CODE_PREFIX = "PROP"
PROPERTY_SEQUENCE_WIDTH = 4
BLOCK_SEQUENCE_WIDTH = 2
UNIT_NUMBER_WIDTH = 2


def _pad(number: int, width: int) -> str:
    if number < 0:
        raise ValueError(f"Sequence numbers must be non-negative, got {number}")
    return str(number).zfill(width)


def generate_property_code(
    year: int,
    sequence: int,
    *,
    prefix: str = PROPERTY_CODE_PREFIX,
    width: int = PROPERTY_SEQUENCE_WIDTH,
) -> str:
    """``PROP-2026-0001`` style code."""
    return f"{prefix}-{year}-{_pad(sequence, width)}"


def generate_block_code(
    property_code: str,
    sequence: int,
    *,
    width: int = BLOCK_SEQUENCE_WIDTH,
) -> str:
    """``PROP-2026-0001-B01`` style code, scoped to the parent property."""
    return f"{property_code}-B{_pad(sequence, width)}"


def format_unit_number(
    prefix: str, number: int, *, width: int = UNIT_NUMBER_WIDTH,
) -> str:
    """``prefix`` + zero-padded number.  Wider numbers are never truncated."""
    return f"{prefix}{_pad(number, width)}"
