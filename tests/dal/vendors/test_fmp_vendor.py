from __future__ import annotations

import asyncio
from datetime import date
from urllib.parse import parse_qs, urlsplit

import pytest

from findata.core.exceptions import (
    MissingTickerError,
    UnsupportedByBackendError,
    UnsupportedEndpointError,
    UpstreamHttpError,
)
from findata.dal.schemas import CanonicalRequest
from findata.dal.vendors import fmp as module
from findata.dal.vendors.fmp import FmpVendor

pytestmark = pytest.mark.anyio


def _query(url: str) -> dict:
    return parse_qs(urlsplit(url).query)


@pytest.fixture
def vendor(monkeypatch: pytest.MonkeyPatch, upstream) -> FmpVendor:
    monkeypatch.setattr(module, "get_json", upstream)
    monkeypatch.setattr(module, "_today", lambda: date(2025, 3, 15))
    return FmpVendor("test-fmp-key")


async def _fetch(vendor: FmpVendor, endpoint: str, **params):
    return await vendor.fetch(CanonicalRequest(endpoint=endpoint, params=params))


# ── Endpoint mapping ────────────────────────────────────────────


@pytest.mark.parametrize(
    ("endpoint", "path", "key"),
    [
        ("/financials/income-statements/", "/income-statement", "income_statements"),
        ("/financials/balance-sheets/", "/balance-sheet-statement", "balance_sheets"),
        ("/financials/cash-flow-statements/", "/cash-flow-statement", "cash_flow_statements"),
        (
            "/financials/segmented-revenues/",
            "/revenue-product-segmentation",
            "segmented_revenues",
        ),
        ("/financial-metrics/", "/ratios", "financial_metrics"),
        ("/analyst-estimates/", "/analyst-estimates", "analyst_estimates"),
        ("/insider-trades/", "/insider-trading/search", "insider_trades"),
    ],
)
async def test_pass_through_routes(vendor, upstream, endpoint, path, key):
    raw = [{"date": "2024-12-31", "value": 1}]
    upstream.queue(raw)

    result = await _fetch(vendor, endpoint, ticker="AAPL", period="annual", limit=1)

    assert result.data == {key: raw}
    assert urlsplit(result.url).path == f"/stable{path}"
    assert _query(result.url)["symbol"] == ["AAPL"]
    assert len(upstream.calls) == 1


async def test_metrics_snapshot_unwraps_first_element(vendor, upstream):
    raw = [{"peRatioTTM": 28.3}, {"peRatioTTM": 1.0}]
    upstream.queue(raw)

    result = await _fetch(vendor, "/financial-metrics/snapshot/", ticker="AAPL")

    assert result.data == {"snapshot": raw[0]}
    assert "/stable/ratios-ttm" in result.url


async def test_price_snapshot_unwraps_first_element(vendor, upstream):
    raw = [{"symbol": "AAPL", "price": 185.5, "volume": 50_000_000}]
    upstream.queue(raw)

    result = await _fetch(vendor, "/prices/snapshot/", ticker="AAPL")

    assert result.data == {"snapshot": raw[0]}
    assert "/stable/quote" in result.url


async def test_snapshot_of_empty_array_is_none(vendor, upstream):
    upstream.queue([])
    result = await _fetch(vendor, "/prices/snapshot/", ticker="ZZZZ")
    assert result.data == {"snapshot": None}


async def test_prices_extracts_historical_and_forwards_dates(vendor, upstream):
    raw = {"symbol": "AAPL", "historical": [{"date": "2024-12-31", "close": 185.5}]}
    upstream.queue(raw)

    result = await _fetch(
        vendor, "/prices/", ticker="AAPL", start_date="2024-01-01", end_date="2024-12-31"
    )

    assert result.data == {"prices": raw["historical"]}
    query = _query(upstream.urls[0])
    assert "/stable/historical-price-eod/full" in upstream.urls[0]
    assert query["from"] == ["2024-01-01"]
    assert query["to"] == ["2024-12-31"]


async def test_prices_passes_bare_array_through(vendor, upstream):
    raw = [{"date": "2024-12-31", "close": 185.5}]
    upstream.queue(raw)
    result = await _fetch(vendor, "/prices/", ticker="AAPL")
    assert result.data == {"prices": raw}
    assert "from" not in _query(upstream.urls[0])


async def test_company_facts_unwraps_profile(vendor, upstream):
    raw = [{"symbol": "AAPL", "companyName": "Apple Inc.", "sector": "Technology"}]
    upstream.queue(raw)

    result = await _fetch(vendor, "/company/facts", ticker="AAPL")

    assert result.data == {"company_facts": raw[0]}
    assert "/stable/profile" in result.url


async def test_news_sends_symbols_not_symbol(vendor, upstream):
    raw = [{"title": "Apple Q4 Earnings", "publishedDate": "2024-12-20"}]
    upstream.queue(raw)

    result = await _fetch(
        vendor,
        "/news/",
        ticker="AAPL",
        limit=10,
        start_date="2024-01-01",
        end_date="2024-12-31",
    )

    assert result.data == {"news": raw}
    query = _query(upstream.urls[0])
    assert "/stable/news/stock" in upstream.urls[0]
    assert query["symbols"] == ["AAPL"]
    assert "symbol" not in query
    assert query["from"] == ["2024-01-01"]
    assert query["to"] == ["2024-12-31"]


# ── Aggregated financials ───────────────────────────────────────


async def test_financials_fans_out_concurrently(monkeypatch: pytest.MonkeyPatch):
    payloads = {
        "/income-statement": [{"revenue": 100_000}],
        "/balance-sheet-statement": [{"totalAssets": 500_000}],
        "/cash-flow-statement": [{"operatingCashFlow": 80_000}],
    }
    in_flight = 0
    peak = 0
    calls = []

    async def fake_get_json(url, *, label, params=None, **_):
        nonlocal in_flight, peak
        calls.append(url)
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        path = url.rsplit("/stable", 1)[1]
        return url, payloads[path]

    monkeypatch.setattr(module, "get_json", fake_get_json)
    vendor = FmpVendor("test-fmp-key")

    result = await _fetch(vendor, "/financials/", ticker="AAPL", period="annual", limit=1)

    assert len(calls) == 3
    assert peak == 3
    assert result.data == {
        "financials": {
            "income_statements": payloads["/income-statement"],
            "balance_sheets": payloads["/balance-sheet-statement"],
            "cash_flow_statements": payloads["/cash-flow-statement"],
        }
    }
    assert result.url == "https://financialmodelingprep.com/stable/(aggregated)"


async def test_financials_fails_whole_call_on_one_failure(vendor, upstream):
    upstream.queue(
        [{"revenue": 1}],
        UpstreamHttpError("/financials/ (AAPL)", 500),
        [{"operatingCashFlow": 1}],
    )

    with pytest.raises(UpstreamHttpError) as excinfo:
        await _fetch(vendor, "/financials/", ticker="AAPL")

    assert excinfo.value.status == 500


# ── SEC filings ─────────────────────────────────────────────────


async def test_filings_synthesizes_one_year_window(vendor, upstream):
    raw = [
        {"symbol": "AAPL", "type": "10-K", "fillingDate": "2024-11-01"},
        {"symbol": "AAPL", "type": "8-K", "fillingDate": "2024-10-15"},
    ]
    upstream.queue(raw)

    result = await _fetch(vendor, "/filings/", ticker="AAPL", limit=5)

    assert result.data == {"filings": raw}
    query = _query(upstream.urls[0])
    assert "/stable/sec-filings-search/symbol" in upstream.urls[0]
    assert query["from"] == ["2024-03-15"]
    assert query["to"] == ["2025-03-15"]
    assert "type" not in query


async def test_filings_filters_type_client_side(vendor, upstream):
    raw = [
        {"symbol": "AAPL", "type": "10-K", "fillingDate": "2024-11-01"},
        {"symbol": "AAPL", "type": "8-K", "fillingDate": "2024-10-15"},
        {"symbol": "AAPL", "type": "10-Q", "fillingDate": "2024-08-01"},
        {"symbol": "AAPL", "type": "10-K", "fillingDate": "2023-11-03"},
    ]
    upstream.queue(raw)

    result = await _fetch(vendor, "/filings/", ticker="AAPL", filing_type="10-K", limit=5)

    assert result.data == {"filings": [raw[0], raw[3]]}
    assert "type" not in _query(upstream.urls[0])
    assert "filing_type" not in _query(upstream.urls[0])


# ── Cross-cutting query rules ───────────────────────────────────


async def test_forwards_limit_quarter_period_and_key(vendor, upstream):
    upstream.queue([])

    await _fetch(vendor, "/financials/income-statements/", ticker="MSFT", period="quarterly", limit=4)

    query = _query(upstream.urls[0])
    assert query["symbol"] == ["MSFT"]
    assert query["limit"] == ["4"]
    assert query["period"] == ["quarter"]
    assert query["apikey"] == ["test-fmp-key"]


async def test_annual_period_is_not_forwarded(vendor, upstream):
    upstream.queue([])
    await _fetch(vendor, "/financials/income-statements/", ticker="MSFT", period="annual")
    assert "period" not in _query(upstream.urls[0])


async def test_returned_url_masks_api_key(vendor, upstream):
    upstream.queue([])
    result = await _fetch(vendor, "/financials/income-statements/", ticker="MSFT")
    assert "test-fmp-key" not in result.url
    assert "apikey=***" in result.url


# ── Errors ──────────────────────────────────────────────────────


@pytest.mark.parametrize("endpoint", ["/filings/items/", "/crypto/prices/", "/crypto/prices/snapshot/"])
async def test_primary_only_features_name_the_missing_key(vendor, upstream, endpoint):
    with pytest.raises(UnsupportedByBackendError) as excinfo:
        await _fetch(vendor, endpoint, ticker="AAPL")

    assert "FINANCIAL_DATASETS_API_KEY" in str(excinfo.value)
    assert "requires a Financial Datasets API key" in str(excinfo.value)
    assert upstream.calls == []


async def test_unsupported_endpoint(vendor, upstream):
    with pytest.raises(UnsupportedEndpointError) as excinfo:
        await _fetch(vendor, "/some/unsupported/endpoint/", ticker="AAPL", limit=3)

    assert "/some/unsupported/endpoint/" in str(excinfo.value)
    assert "not supported by FMP adapter" in str(excinfo.value)
    assert "/some/unsupported/endpoint/ (AAPL, limit=3)" in str(excinfo.value)
    assert upstream.calls == []


@pytest.mark.parametrize("ticker", [None, "", "   "])
async def test_missing_ticker_fails_before_network(vendor, upstream, ticker):
    params = {"period": "annual", "limit": 1}
    if ticker is not None:
        params["ticker"] = ticker

    with pytest.raises(MissingTickerError, match="Ticker is required"):
        await _fetch(vendor, "/financials/income-statements/", **params)

    assert upstream.calls == []


async def test_upstream_http_error_propagates(vendor, upstream):
    upstream.queue(UpstreamHttpError("/financials/income-statements/ (AAPL)", 401))

    with pytest.raises(UpstreamHttpError, match="401"):
        await _fetch(vendor, "/financials/income-statements/", ticker="AAPL")


# ── Rule ordering ───────────────────────────────────────────────


def test_snapshot_rule_precedes_general_metrics_rule():
    vendor = FmpVendor("k")
    descriptions = [rule.description for rule in vendor.rules]
    assert descriptions.index("contains('/financial-metrics/snapshot/')") < descriptions.index(
        "contains('/financial-metrics/')"
    )
    assert descriptions.index("contains('/crypto/')") < descriptions.index(
        "contains('/prices/snapshot')"
    )
