from __future__ import annotations

import re
import time
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

import httpx
from loguru import logger

from findata.core.exceptions import (
    UpstreamHttpError,
    UpstreamNetworkError,
    UpstreamParseError,
)

QueryParams = Union[Mapping[str, Any], Sequence[Tuple[str, Any]]]

DEFAULT_TIMEOUT_SECS = 30.0

# Regex to strip API keys/tokens from URLs before logging.
_TOKEN_RE = re.compile(r"(apikey|api_key|token)=[^&\s]+", re.IGNORECASE)

# ------------------------------------------------------------------------------
# URL helpers
# ------------------------------------------------------------------------------


def sanitize_url(url: str) -> str:
    """Remove apikey/token query values from a URL for safe logging."""
    return _TOKEN_RE.sub(r"\1=***", url)


def build_url(url: str, params: Optional[QueryParams] = None) -> str:
    """Render *url* with *params* encoded the same way httpx puts them on the wire."""
    if not params:
        return str(httpx.URL(url))
    return str(httpx.URL(url, params=params))


# ------------------------------------------------------------------------------
# Core HTTP (JSON)
# ------------------------------------------------------------------------------


def _log_http_event(
    *,
    level: str,
    method: str,
    url: str,
    status: int,
    start_time: float,
    note: str = "",
) -> None:
    latency_ms = round((time.perf_counter() - start_time) * 1000.0, 1)
    logger.log(
        level,
        "[http] method={} url={} status={} latency_ms={:.1f} {}",
        method.upper(),
        sanitize_url(url),
        status,
        latency_ms,
        note,
    )


async def get_json(
    url: str,
    *,
    label: str,
    params: Optional[QueryParams] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Tuple[str, Any]:
    """GET *url* expecting JSON. Returns ``(resolved_url, payload)``.

    No retries are attempted. Failures are mapped onto the upstream error
    taxonomy, each carrying *label* so callers can tell which request failed:

    - transport failures (DNS, connect, timeout) -> ``UpstreamNetworkError``
    - non-2xx responses -> ``UpstreamHttpError``
    - bodies that cannot be decoded or are not JSON -> ``UpstreamParseError``

    The returned URL is the full request URL including any credential query
    parameter; mask it with :func:`sanitize_url` before exposing it.
    """
    resolved = build_url(url, params)
    timeout = timeout if timeout is not None else DEFAULT_TIMEOUT_SECS
    start_time = time.perf_counter()

    try:
        if client is not None:
            resp = await client.get(resolved, headers=headers, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout) as owned:
                resp = await owned.get(resolved, headers=headers)
    except httpx.DecodingError as exc:
        # Content-Encoding did not match the body; nothing usable was received.
        _log_http_event(
            level="WARNING",
            method="GET",
            url=resolved,
            status=0,
            start_time=start_time,
            note="undecodable",
        )
        logger.error("API parse error: {} - undecodable body ({})", label, exc)
        raise UpstreamParseError(label) from exc
    except httpx.TransportError as exc:
        _log_http_event(
            level="ERROR",
            method="GET",
            url=resolved,
            status=599,
            start_time=start_time,
            note=f"error={type(exc).__name__}",
        )
        logger.error("API network error: {} - {}", label, exc)
        raise UpstreamNetworkError(label, exc) from exc

    if not resp.is_success:
        _log_http_event(
            level="WARNING",
            method="GET",
            url=resolved,
            status=resp.status_code,
            start_time=start_time,
            note="non-2xx",
        )
        logger.error("API error: {} - {} {}", label, resp.status_code, resp.reason_phrase)
        raise UpstreamHttpError(label, resp.status_code, resp.reason_phrase)

    try:
        payload = resp.json()
    except ValueError as exc:
        body = (resp.text or "")[:400]
        logger.debug("Non-JSON response for {}: {}", sanitize_url(resolved), body)
        logger.error("API parse error: {} - invalid JSON ({})", label, resp.status_code)
        raise UpstreamParseError(label, resp.status_code) from exc

    _log_http_event(
        level="INFO",
        method="GET",
        url=resolved,
        status=resp.status_code,
        start_time=start_time,
        note="ok",
    )
    return resolved, payload


__all__ = ["get_json", "build_url", "sanitize_url", "DEFAULT_TIMEOUT_SECS"]
