from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from findata.logging_utils import setup_test_logging
from findata.utils.http import build_url

os.environ.setdefault("ENV", "test")

_CREDENTIAL_VARS = ("FINANCIAL_DATASETS_API_KEY", "FMP_API_KEY")


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    setup_test_logging(level="DEBUG")
    yield


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Start every test with no credentials and a private cache directory."""
    for name in _CREDENTIAL_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("FINDATA_CACHE_DIR", str(tmp_path / "cache"))
    yield


@pytest.fixture
def anyio_backend():
    """Force anyio-powered async tests to run under asyncio backend only."""
    return "asyncio"


class FakeUpstream:
    """Stand-in for ``findata.utils.http.get_json`` that records each call.

    Payloads are served in order; an exception instance in the queue is raised
    instead of returned.
    """

    def __init__(self, *payloads: Any) -> None:
        self.payloads: List[Any] = list(payloads)
        self.calls: List[Dict[str, Any]] = []

    def queue(self, *payloads: Any) -> "FakeUpstream":
        self.payloads.extend(payloads)
        return self

    async def __call__(
        self,
        url: str,
        *,
        label: str,
        params: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        client: Any = None,
    ):
        resolved = build_url(url, params)
        self.calls.append(
            {
                "url": resolved,
                "base": url,
                "label": label,
                "params": list(params.items()) if isinstance(params, dict) else list(params or []),
                "headers": dict(headers or {}),
            }
        )
        if not self.payloads:
            raise AssertionError(f"unexpected upstream call: {resolved}")
        payload = self.payloads.pop(0)
        if isinstance(payload, BaseException):
            raise payload
        return resolved, payload

    @property
    def urls(self) -> List[str]:
        return [call["url"] for call in self.calls]


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()
