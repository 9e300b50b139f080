"""Dual-backend financial data access layer."""

from .cache import FileResponseCache, ResponseCache, describe_request
from .schemas import ApiResponse, Backend, CanonicalRequest, SubRequest, SymbolPlacement

__all__ = [
    "MarketDataGateway",
    "call_api",
    "select_backend",
    "get_filing_item_types",
    "FileResponseCache",
    "ResponseCache",
    "describe_request",
    "ApiResponse",
    "Backend",
    "CanonicalRequest",
    "SubRequest",
    "SymbolPlacement",
]


def __getattr__(name: str):
    if name in {"MarketDataGateway", "call_api", "select_backend"}:
        from . import manager as _manager  # local import

        return getattr(_manager, name)
    if name == "get_filing_item_types":
        from .filings import get_filing_item_types as _get_filing_item_types

        return _get_filing_item_types
    raise AttributeError(f"module {__name__} has no attribute {name!r}")
