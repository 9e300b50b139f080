"""FMP (Financial Modeling Prep) translation of the canonical endpoint vocabulary.

FMP's stable API differs from the canonical shape in three ways that every
route has to account for:

* the ticker travels as a ``symbol`` query parameter (``symbols`` for news);
* the credential is an ``apikey`` query parameter rather than a header;
* single-record resources come back as one-element arrays.

Routes are matched first-match-wins, so the order of ``_build_rules`` matters.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import httpx
from loguru import logger

from findata.core.exceptions import (
    MissingTickerError,
    UnsupportedByBackendError,
    UnsupportedEndpointError,
)
from findata.dal.cache import describe_request
from findata.dal.results import merge_results, single_result
from findata.dal.routing import Rule, contains, exactly, first_match
from findata.dal.schemas import ApiResponse, CanonicalRequest, SubRequest, SymbolPlacement
from findata.dal.vendors.base import VendorClient
from findata.utils.http import get_json, sanitize_url
from findata.utils.normalize import extract_historical, filter_by_type, first_element

DEFAULT_BASE_URL = "https://financialmodelingprep.com/stable"

# The filings search endpoint rejects requests without a from/to window.
FILINGS_LOOKBACK_DAYS = 365

INCOME_STATEMENTS = SubRequest("/income-statement", "income_statements")
BALANCE_SHEETS = SubRequest("/balance-sheet-statement", "balance_sheets")
CASH_FLOW_STATEMENTS = SubRequest("/cash-flow-statement", "cash_flow_statements")
FINANCIAL_STATEMENTS: Tuple[SubRequest, ...] = (
    INCOME_STATEMENTS,
    BALANCE_SHEETS,
    CASH_FLOW_STATEMENTS,
)


@dataclass(frozen=True, slots=True)
class _Call:
    request: CanonicalRequest
    ticker: str
    label: str


Handler = Callable[[_Call], Awaitable[ApiResponse]]
Reshape = Callable[[Any], Any]


def _today() -> date:
    return date.today()


def _date_range(request: CanonicalRequest) -> Dict[str, str]:
    extra: Dict[str, str] = {}
    if request.get("start_date"):
        extra["from"] = str(request.get("start_date"))
    if request.get("end_date"):
        extra["to"] = str(request.get("end_date"))
    return extra


class FmpVendor(VendorClient):
    """Secondary backend: per-endpoint translation onto FMP's stable API."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(
            "fmp",
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            client=client,
        )
        self.rules: List[Rule[Handler]] = self._build_rules()

    def _build_rules(self) -> List[Rule[Handler]]:
        return [
            # --- Financial statements ---
            Rule(contains("income-statements"), self._simple(INCOME_STATEMENTS)),
            Rule(contains("balance-sheets"), self._simple(BALANCE_SHEETS)),
            Rule(contains("cash-flow-statements"), self._simple(CASH_FLOW_STATEMENTS)),
            Rule(
                contains("/segmented-revenues/"),
                self._simple(SubRequest("/revenue-product-segmentation", "segmented_revenues")),
            ),
            Rule(exactly("/financials/"), self._financials),
            # --- Financial metrics (snapshot before the general match) ---
            Rule(
                contains("/financial-metrics/snapshot/"),
                self._simple(SubRequest("/ratios-ttm", "snapshot"), first_element),
            ),
            Rule(
                contains("/financial-metrics/"),
                self._simple(SubRequest("/ratios", "financial_metrics")),
            ),
            # --- Prices (crypto before the general price routes) ---
            Rule(contains("/crypto/"), self._unsupported("Crypto data")),
            Rule(
                contains("/prices/snapshot"),
                self._simple(SubRequest("/quote", "snapshot"), first_element),
            ),
            Rule(exactly("/prices/"), self._prices),
            # --- Company info ---
            Rule(
                exactly("/company/facts"),
                self._simple(SubRequest("/profile", "company_facts"), first_element),
            ),
            Rule(
                contains("/analyst-estimates/"),
                self._simple(SubRequest("/analyst-estimates", "analyst_estimates")),
            ),
            Rule(
                contains("/insider-trades/"),
                self._simple(SubRequest("/insider-trading/search", "insider_trades")),
            ),
            Rule(exactly("/news/"), self._news),
            # --- SEC filings (metadata only) ---
            Rule(exactly("/filings/"), self._filings),
            Rule(contains("/filings/items/"), self._unsupported("Full filing text")),
        ]

    async def fetch(self, request: CanonicalRequest) -> ApiResponse:
        label = describe_request(request.endpoint, request.params)
        ticker = request.ticker
        if not ticker:
            raise MissingTickerError(label)

        rule = first_match(self.rules, request.endpoint)
        if rule is None:
            logger.warning("fmp has no route for endpoint={}", request.endpoint)
            raise UnsupportedEndpointError(request.endpoint, label)

        logger.debug("fmp route {} -> {}", label, rule.description)
        return await rule.handler(_Call(request=request, ticker=ticker, label=label))

    # ── Sub-request execution ───────────────────────────────────

    def _query(self, call: _Call, sub: SubRequest) -> List[Tuple[str, str]]:
        params: List[Tuple[str, str]] = []
        if sub.symbol_placement is SymbolPlacement.QUERY:
            params.append(("symbol", call.ticker))
        params.append(("apikey", self.api_key))
        limit = call.request.get("limit")
        if limit is not None and limit != "":
            params.append(("limit", str(limit)))
        if call.request.get("period") == "quarterly":
            params.append(("period", "quarter"))
        params.extend(sub.extra_params.items())
        return params

    async def _fetch(self, call: _Call, sub: SubRequest) -> ApiResponse:
        url, payload = await get_json(
            f"{self.base_url}{sub.path}",
            label=call.label,
            params=self._query(call, sub),
            timeout=self.timeout,
            client=self.client,
        )
        return single_result(sub.result_key, payload, sanitize_url(url))

    # ── Route handlers ──────────────────────────────────────────

    def _simple(self, sub: SubRequest, reshape: Optional[Reshape] = None) -> Handler:
        async def handler(call: _Call) -> ApiResponse:
            result = await self._fetch(call, sub)
            if reshape is not None:
                result.data[sub.result_key] = reshape(result.data[sub.result_key])
            return result

        return handler

    def _unsupported(self, reason: str) -> Handler:
        async def handler(call: _Call) -> ApiResponse:
            logger.warning("fmp cannot serve {}: {}", call.label, reason)
            raise UnsupportedByBackendError(call.label, reason)

        return handler

    async def _financials(self, call: _Call) -> ApiResponse:
        parts = await asyncio.gather(*(self._fetch(call, sub) for sub in FINANCIAL_STATEMENTS))
        return merge_results(parts, "financials", self.base_url)

    async def _prices(self, call: _Call) -> ApiResponse:
        sub = SubRequest("/historical-price-eod/full", "prices", _date_range(call.request))
        result = await self._fetch(call, sub)
        result.data["prices"] = extract_historical(result.data["prices"])
        return result

    async def _news(self, call: _Call) -> ApiResponse:
        extra = {"symbols": call.ticker, **_date_range(call.request)}
        sub = SubRequest("/news/stock", "news", extra, SymbolPlacement.OMITTED)
        return await self._fetch(call, sub)

    async def _filings(self, call: _Call) -> ApiResponse:
        # filing_type is filtered locally; the search endpoint cannot filter by type.
        today = _today()
        window = {
            "from": (today - timedelta(days=FILINGS_LOOKBACK_DAYS)).isoformat(),
            "to": today.isoformat(),
        }
        result = await self._fetch(call, SubRequest("/sec-filings-search/symbol", "filings", window))
        filing_type = call.request.get("filing_type")
        if filing_type:
            result.data["filings"] = filter_by_type(result.data["filings"], str(filing_type))
        return result


__all__ = [
    "FmpVendor",
    "DEFAULT_BASE_URL",
    "FILINGS_LOOKBACK_DAYS",
    "FINANCIAL_STATEMENTS",
]
