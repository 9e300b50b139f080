#!/usr/bin/env python3
"""Live gateway smoke test against whichever backend the environment selects."""

from __future__ import annotations

import argparse
import asyncio
import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from loguru import logger

from findata.core.exceptions import FinDataError
from findata.dal.manager import MarketDataGateway
from findata.logging_utils import setup_logging

DEFAULT_CHECKS: Sequence[tuple[str, str]] = (
    ("/financials/income-statements/", "AAPL"),
    ("/financials/", "MSFT"),
    ("/financial-metrics/snapshot/", "NVDA"),
    ("/prices/snapshot/", "SPY"),
    ("/company/facts", "AAPL"),
    ("/filings/", "AAPL"),
)


@dataclass
class SmokeResult:
    endpoint: str
    ticker: str
    status: str
    keys: List[str] | None = None
    url: Optional[str] = None
    error: Optional[str] = None


async def _run_single_check(
    gateway: MarketDataGateway, endpoint: str, ticker: str
) -> SmokeResult:
    try:
        result = await gateway.call(endpoint, {"ticker": ticker, "limit": 1})
    except FinDataError as exc:
        logger.warning(
            "gateway smoke failed endpoint={} ticker={} error={}", endpoint, ticker, exc
        )
        return SmokeResult(endpoint=endpoint, ticker=ticker, status="error", error=str(exc))
    return SmokeResult(
        endpoint=endpoint,
        ticker=ticker,
        status="ok",
        keys=sorted(result.data),
        url=result.url,
    )


def _write_report(results: Iterable[SmokeResult], output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    ts = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    path = output_dir / f"findata_smoke_{ts}.json"
    payload = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "results": [asdict(res) for res in results],
    }
    path.write_text(json.dumps(payload, indent=2))
    logger.info("[findata-smoke] wrote report -> {}", path)
    return path


def _parse_checks(arg_checks: Optional[List[str]]) -> Sequence[tuple[str, str]]:
    if not arg_checks:
        return DEFAULT_CHECKS
    parsed = []
    for entry in arg_checks:
        endpoint, sep, ticker = entry.rpartition(":")
        if not sep or not endpoint or not ticker:
            raise ValueError(f"Invalid check format '{entry}'. Expected endpoint:ticker")
        parsed.append((endpoint, ticker))
    return parsed


async def _run(checks: Sequence[tuple[str, str]]) -> List[SmokeResult]:
    gateway = MarketDataGateway()
    results: List[SmokeResult] = []
    for endpoint, ticker in checks:
        logger.info("[findata-smoke] running endpoint={} ticker={}", endpoint, ticker)
        results.append(await _run_single_check(gateway, endpoint, ticker))
    return results


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Exercise the financial data gateway end-to-end.")
    parser.add_argument(
        "--check",
        action="append",
        dest="checks",
        help="Custom check endpoint:ticker, e.g. /prices/snapshot/:AAPL (can repeat).",
    )
    parser.add_argument(
        "--output-dir",
        default="artifacts/ops/findata_smoke",
        help="Directory to store JSON reports (default: artifacts/ops/findata_smoke).",
    )
    args = parser.parse_args(argv)
    setup_logging()
    checks = _parse_checks(args.checks)

    results = asyncio.run(_run(checks))
    failures = [res for res in results if res.status != "ok"]
    report_path = _write_report(results, Path(args.output_dir))
    logger.info(
        "[findata-smoke] completed checks={} failures={} report={}",
        len(results),
        len(failures),
        report_path,
    )
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
