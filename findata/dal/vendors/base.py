from __future__ import annotations

import abc
from typing import Optional

import httpx

from findata.dal.schemas import ApiResponse, CanonicalRequest


class VendorClient(abc.ABC):
    """Base class for upstream financial data vendors."""

    name: str

    def __init__(
        self,
        name: str,
        *,
        api_key: str,
        base_url: str,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        if not api_key:
            raise ValueError(f"{name} API key missing")
        self.name = name
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = client

    @abc.abstractmethod
    async def fetch(self, request: CanonicalRequest) -> ApiResponse:
        """Serve *request* and return data in the canonical shape."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_url={self.base_url!r})"
