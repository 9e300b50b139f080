from __future__ import annotations

from typing import Any, List, Optional


def first_element(value: Any) -> Any:
    """Unwrap single-record payloads that FMP returns as one-element arrays.

    Lists collapse to their first element (``None`` when empty); anything else
    passes through unchanged.
    """
    if isinstance(value, list):
        return value[0] if value else None
    return value


def extract_historical(value: Any) -> Any:
    """Return the nested ``historical`` array from an EOD price payload.

    Older FMP responses wrap prices as ``{"symbol": ..., "historical": [...]}``
    while the stable API returns a bare array. Both normalize to the array.
    """
    if isinstance(value, dict) and "historical" in value:
        return value["historical"]
    return value


def filter_by_type(items: Any, filing_type: Optional[str]) -> Any:
    """Keep records whose ``type`` equals *filing_type*, preserving order."""
    if not filing_type or not isinstance(items, list):
        return items
    kept: List[Any] = [
        item for item in items if isinstance(item, dict) and item.get("type") == filing_type
    ]
    return kept


__all__ = ["first_element", "extract_historical", "filter_by_type"]
