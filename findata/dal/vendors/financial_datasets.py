from __future__ import annotations

from typing import Any, List, Optional, Tuple

import httpx

from findata.dal.cache import describe_request
from findata.dal.schemas import ApiResponse, CanonicalRequest, Params
from findata.dal.vendors.base import VendorClient
from findata.utils.http import get_json, sanitize_url

DEFAULT_BASE_URL = "https://api.financialdatasets.ai"


def query_entries(params: Params) -> List[Tuple[str, Any]]:
    """Flatten params into query entries; list values repeat their key."""
    entries: List[Tuple[str, Any]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            entries.extend((key, item) for item in value)
        else:
            entries.append((key, value))
    return entries


class FinancialDatasetsVendor(VendorClient):
    """Primary backend. Its response shape is the canonical shape, so no reshaping."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(
            "financial_datasets",
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            client=client,
        )

    async def fetch(self, request: CanonicalRequest) -> ApiResponse:
        url, payload = await get_json(
            f"{self.base_url}{request.endpoint}",
            label=describe_request(request.endpoint, request.params),
            params=query_entries(request.params),
            headers={"x-api-key": self.api_key},
            timeout=self.timeout,
            client=self.client,
        )
        return ApiResponse(data=payload, url=sanitize_url(url))


__all__ = ["FinancialDatasetsVendor", "query_entries", "DEFAULT_BASE_URL"]
