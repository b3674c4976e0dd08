"""Presentation-side typing of entity attribute values.

The attribute store keeps raw JSON-like values. Editors and viewers use the
helpers here to pick an input type for a value, coerce user input and
render values back to text.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List


class AttributeType(str, Enum):
    TEXT = "Text"
    NUMBER = "Number"
    BOOLEAN = "Boolean"
    DATE = "Date"
    LIST = "List"
    URL = "URL"


def infer_attribute_type(value: Any) -> AttributeType:
    """Guess the display type of a stored value."""
    # bool is checked first, it is a subclass of int
    if isinstance(value, bool):
        return AttributeType.BOOLEAN
    if isinstance(value, (int, float)):
        return AttributeType.NUMBER
    if isinstance(value, list):
        return AttributeType.LIST
    return AttributeType.TEXT


def default_value(attribute_type: AttributeType | str) -> Any:
    attribute_type = AttributeType(attribute_type)
    if attribute_type is AttributeType.NUMBER:
        return 0
    if attribute_type is AttributeType.BOOLEAN:
        return False
    if attribute_type is AttributeType.DATE:
        return datetime.now(timezone.utc).isoformat()
    if attribute_type is AttributeType.LIST:
        return []
    return ""


def coerce_attribute_value(attribute_type: AttributeType | str, raw: Any) -> Any:
    """Convert user input *raw* into a value of *attribute_type*.

    Unparseable numbers become ``0`` and unparseable dates an empty string,
    matching what an empty input field produces.
    """
    attribute_type = AttributeType(attribute_type)
    if attribute_type is AttributeType.NUMBER:
        return _to_number(raw)
    if attribute_type is AttributeType.BOOLEAN:
        if isinstance(raw, str):
            return raw.strip().lower() in {"true", "1", "yes", "on"}
        return bool(raw)
    if attribute_type is AttributeType.DATE:
        return _to_iso_date(raw)
    if attribute_type is AttributeType.LIST:
        return _to_list(raw)
    return "" if raw is None else str(raw)


def format_attribute_value(value: Any, attribute_type: AttributeType | str | None = None) -> str:
    attribute_type = AttributeType(attribute_type) if attribute_type else infer_attribute_type(value)
    if attribute_type is AttributeType.BOOLEAN:
        return "true" if value else "false"
    if attribute_type is AttributeType.DATE:
        parsed = _parse_datetime(value)
        return parsed.date().isoformat() if parsed else str(value)
    if attribute_type is AttributeType.LIST:
        return ", ".join(str(item) for item in value) if isinstance(value, list) else str(value)
    return str(value)


def _to_number(raw: Any) -> int | float:
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, (int, float)):
        return raw
    try:
        number = float(str(raw).strip())
    except ValueError:
        return 0
    return int(number) if number.is_integer() else number


def _to_list(raw: Any) -> List[Any]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if isinstance(raw, str):
        return [item.strip() for item in raw.split(",") if item.strip()]
    return [raw]


def _to_iso_date(raw: Any) -> str:
    parsed = _parse_datetime(raw)
    if parsed is None:
        return ""
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.isoformat()


def _parse_datetime(raw: Any) -> datetime | None:
    if isinstance(raw, datetime):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    text = raw.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None
