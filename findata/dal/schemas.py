from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Union

Scalar = Union[str, int, float]
ParamValue = Union[Scalar, Sequence[Scalar], None]
Params = Mapping[str, ParamValue]


class Backend(str, Enum):
    """Upstream provider serving a call."""

    PRIMARY = "financial_datasets"
    SECONDARY = "fmp"


class SymbolPlacement(str, Enum):
    """Where the ticker goes on an FMP sub-request."""

    QUERY = "query"
    OMITTED = "omitted"


@dataclass(frozen=True, slots=True)
class CanonicalRequest:
    """Backend-agnostic request: endpoint path plus vendor-neutral params."""

    endpoint: str
    params: Params = field(default_factory=dict)
    cacheable: bool = False

    def get(self, key: str) -> ParamValue:
        return self.params.get(key)

    @property
    def ticker(self) -> Optional[str]:
        value = self.params.get("ticker")
        if value is None or isinstance(value, (list, tuple)):
            return None
        text = str(value).strip()
        return text or None


@dataclass(slots=True)
class ApiResponse:
    """Canonical result: data keyed by stable result names plus its source URL."""

    data: Dict[str, Any]
    url: str


@dataclass(frozen=True, slots=True)
class SubRequest:
    """One FMP call made on behalf of a canonical request."""

    path: str
    result_key: str
    extra_params: Mapping[str, str] = field(default_factory=dict)
    symbol_placement: SymbolPlacement = SymbolPlacement.QUERY


__all__ = [
    "Scalar",
    "ParamValue",
    "Params",
    "Backend",
    "SymbolPlacement",
    "CanonicalRequest",
    "ApiResponse",
    "SubRequest",
]
