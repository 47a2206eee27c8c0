"""
Object kinds and default ID ranges.

Every object kind has an independent ID space per project. Table fields
and enum values are tracked as their own kinds, ``table_{id}`` and
``enum_{id}``, so each table and each enum gets its own space.
"""

from enum import Enum

from objid.core.ranges import Range


class ObjectKind(str, Enum):
    """Kinds of developer-defined objects that receive numeric IDs."""

    TABLE = "table"
    TABLE_EXTENSION = "tableextension"
    PAGE = "page"
    PAGE_EXTENSION = "pageextension"
    REPORT = "report"
    REPORT_EXTENSION = "reportextension"
    CODEUNIT = "codeunit"
    QUERY = "query"
    XMLPORT = "xmlport"
    ENUM = "enum"
    ENUM_EXTENSION = "enumextension"
    CONTROL_ADDIN = "controladdin"
    INTERFACE = "interface"
    PERMISSION_SET = "permissionset"
    PERMISSION_SET_EXTENSION = "permissionsetextension"


# Kinds refreshed by polling and shown in consumption reports
TRACKED_KINDS: tuple[str, ...] = (
    ObjectKind.TABLE.value,
    ObjectKind.PAGE.value,
    ObjectKind.REPORT.value,
    ObjectKind.CODEUNIT.value,
    ObjectKind.QUERY.value,
    ObjectKind.XMLPORT.value,
    ObjectKind.ENUM.value,
)

DEFAULT_EXTENSION_RANGES = (Range(from_=50000, to=99999),)
DEFAULT_BASE_OBJECT_RANGES = (Range(from_=1, to=49999),)
DEFAULT_BASE_ENUM_VALUE_RANGES = (Range(from_=0, to=49999),)


def default_ranges(is_extension: bool = False, is_enum_value: bool = False) -> list[Range]:
    """Default ranges for a context: extension, base enum value, or base object."""
    if is_extension:
        return list(DEFAULT_EXTENSION_RANGES)
    if is_enum_value:
        return list(DEFAULT_BASE_ENUM_VALUE_RANGES)
    return list(DEFAULT_BASE_OBJECT_RANGES)


def field_kind(table_id: int) -> str:
    return f"table_{table_id}"


def enum_value_kind(enum_id: int) -> str:
    return f"enum_{enum_id}"


__all__ = [
    "ObjectKind",
    "TRACKED_KINDS",
    "DEFAULT_EXTENSION_RANGES",
    "DEFAULT_BASE_OBJECT_RANGES",
    "DEFAULT_BASE_ENUM_VALUE_RANGES",
    "default_ranges",
    "field_kind",
    "enum_value_kind",
]
