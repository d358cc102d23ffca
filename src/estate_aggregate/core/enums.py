"""Enumerations used across the estate aggregate service."""

from enum import Enum


class PropertyType(str, Enum):
    APARTMENT_COMPLEX = "apartment_complex"
    SINGLE_FAMILY = "single_family"
    MULTI_FAMILY = "multi_family"
    TOWNHOUSE = "townhouse"
    COMMERCIAL = "commercial"
    MIXED_USE = "mixed_use"
    ESTATE = "estate"
    OTHER = "other"


class PropertyStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    INACTIVE = "inactive"
    UNDER_MAINTENANCE = "under_maintenance"
    SOLD = "sold"
    ARCHIVED = "archived"


class UnitType(str, Enum):
    STUDIO = "studio"
    ONE_BEDROOM = "one_bedroom"
    TWO_BEDROOM = "two_bedroom"
    THREE_BEDROOM = "three_bedroom"
    FOUR_PLUS_BEDROOM = "four_plus_bedroom"
    PENTHOUSE = "penthouse"
    DUPLEX = "duplex"
    LOFT = "loft"
    COMMERCIAL_RETAIL = "commercial_retail"
    COMMERCIAL_OFFICE = "commercial_office"
    WAREHOUSE = "warehouse"
    PARKING = "parking"
    STORAGE = "storage"
    OTHER = "other"


class UnitStatus(str, Enum):
    VACANT = "vacant"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    UNDER_MAINTENANCE = "under_maintenance"
    NOT_AVAILABLE = "not_available"


class BlockStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    UNDER_CONSTRUCTION = "under_construction"
    UNDER_MAINTENANCE = "under_maintenance"


class ErrorCode(str, Enum):
    """Failure codes carried by ``Err`` results of the aggregate service."""

    PROPERTY_NOT_FOUND = "PROPERTY_NOT_FOUND"
    PROPERTY_CODE_EXISTS = "PROPERTY_CODE_EXISTS"
    UNIT_NOT_FOUND = "UNIT_NOT_FOUND"
    UNIT_NUMBER_EXISTS = "UNIT_NUMBER_EXISTS"
    UNIT_OCCUPIED = "UNIT_OCCUPIED"
    INVALID_PROPERTY_DATA = "INVALID_PROPERTY_DATA"
    INVALID_UNIT_DATA = "INVALID_UNIT_DATA"
    CANNOT_DELETE_WITH_ACTIVE_LEASES = "CANNOT_DELETE_WITH_ACTIVE_LEASES"


class AggregateType(str, Enum):
    """Aggregate kinds stamped on event envelopes."""

    PROPERTY = "Property"
    UNIT = "Unit"
    BLOCK = "Block"
