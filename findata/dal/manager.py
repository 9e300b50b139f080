from __future__ import annotations

from typing import Callable, Optional

import httpx
from loguru import logger

from findata.core.exceptions import NoCredentialError
from findata.dal.cache import FileResponseCache, ResponseCache, describe_request
from findata.dal.schemas import ApiResponse, Backend, CanonicalRequest, Params
from findata.dal.vendors.base import VendorClient
from findata.dal.vendors.financial_datasets import FinancialDatasetsVendor
from findata.dal.vendors.fmp import FmpVendor
from findata.logging_utils import logging_context
from findata.settings import MarketDataSettings, get_cache_settings, get_market_data_settings

SettingsProvider = Callable[[], MarketDataSettings]


def select_backend(settings: MarketDataSettings, label: Optional[str] = None) -> Backend:
    """Pick the upstream for a call from credential presence alone."""
    if settings.financial_datasets_key:
        return Backend.PRIMARY
    if settings.fmp_key:
        return Backend.SECONDARY
    raise NoCredentialError(label)


class MarketDataGateway:
    """Single entry point for canonical financial data requests.

    Credentials are re-read through *settings_provider* on every call so a
    rotated key takes effect immediately. Cacheable requests are answered from
    *cache* when possible and written back once the full result is assembled.
    """

    def __init__(
        self,
        *,
        settings_provider: Optional[SettingsProvider] = None,
        cache: Optional[ResponseCache] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings_provider = settings_provider or get_market_data_settings
        self.cache = cache if cache is not None else FileResponseCache(get_cache_settings().directory)
        self.client = client

    def _vendor_for(self, backend: Backend, settings: MarketDataSettings) -> VendorClient:
        if backend is Backend.PRIMARY:
            return FinancialDatasetsVendor(
                settings.financial_datasets_key or "",
                base_url=settings.financial_datasets_base_url,
                timeout=settings.http_timeout_secs,
                client=self.client,
            )
        return FmpVendor(
            settings.fmp_key or "",
            base_url=settings.fmp_base_url,
            timeout=settings.http_timeout_secs,
            client=self.client,
        )

    async def call(
        self,
        endpoint: str,
        params: Optional[Params] = None,
        *,
        cacheable: bool = False,
    ) -> ApiResponse:
        request = CanonicalRequest(endpoint=endpoint, params=dict(params or {}), cacheable=cacheable)
        label = describe_request(request.endpoint, request.params)

        with logging_context(request_id=label):
            settings = self.settings_provider()
            backend = select_backend(settings, label)

            if request.cacheable:
                cached = self.cache.read(request.endpoint, request.params)
                if cached is not None:
                    logger.info("[gateway] cache hit {}", label)
                    return cached

            vendor = self._vendor_for(backend, settings)
            logger.debug("[gateway] {} via {}", label, vendor.name)
            result = await vendor.fetch(request)

            if request.cacheable:
                self.cache.write(request.endpoint, request.params, result.data, result.url)
            return result


_default_gateway: Optional[MarketDataGateway] = None


def get_gateway() -> MarketDataGateway:
    global _default_gateway
    if _default_gateway is None:
        _default_gateway = MarketDataGateway()
    return _default_gateway


async def call_api(
    endpoint: str,
    params: Optional[Params] = None,
    *,
    cacheable: bool = False,
) -> ApiResponse:
    """Module-level convenience wrapper around the default gateway."""
    return await get_gateway().call(endpoint, params, cacheable=cacheable)


__all__ = ["MarketDataGateway", "select_backend", "get_gateway", "call_api"]
