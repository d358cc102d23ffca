"""Canonical ID and timestamp factories.

All modules import from here instead of defining local _uuid()/_now() copies.

ID Categories
-------------
1. Entity IDs: ``<prefix>_<uuid4 hex>`` strings (``prop_``, ``unit_``, ``blk_``)
2. Event IDs: UUID v4 strings, the idempotency key of an envelope
3. Correlation IDs: supplied by the caller, linking one request's events

Timestamp Rule
--------------
All timestamps are ``datetime`` with ``tzinfo=timezone.utc`` and are never naive.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

PROPERTY_ID_PREFIX = "prop"
UNIT_ID_PREFIX = "unit"
BLOCK_ID_PREFIX = "blk"


def new_id() -> str:
    """Generate a new UUID v4 string.  Use for event and correlation IDs."""
    return str(uuid.uuid4())


def new_entity_id(prefix: str) -> str:
    """Generate a prefixed entity ID, e.g. ``prop_3f2a...``."""
    return f"{prefix}_{uuid.uuid4().hex}"


def new_property_id() -> str:
    return new_entity_id(PROPERTY_ID_PREFIX)


def new_unit_id() -> str:
    return new_entity_id(UNIT_ID_PREFIX)


def new_block_id() -> str:
    return new_entity_id(BLOCK_ID_PREFIX)


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)
