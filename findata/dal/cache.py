from __future__ import annotations

import hashlib
import json
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from loguru import logger

from findata.dal.schemas import ApiResponse, Params

_SLUG_RE = re.compile(r"[^A-Za-z0-9]+")


def _normalize_params(params: Params) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key in sorted(params):
        value = params[key]
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            out[key] = [str(v) for v in value]
        else:
            out[key] = str(value)
    return out


def describe_request(endpoint: str, params: Params) -> str:
    """Human-readable label for a request, used in logs and error messages.

    The ticker leads, the remaining parameters follow in key order. This is a
    diagnostic label only; it is not the cache key.
    """
    normalized = _normalize_params(params)
    parts = []
    ticker = normalized.pop("ticker", None)
    if ticker is not None:
        parts.append(ticker if isinstance(ticker, str) else ",".join(ticker))
    for key, value in normalized.items():
        rendered = ",".join(value) if isinstance(value, list) else value
        parts.append(f"{key}={rendered}")
    if not parts:
        return endpoint
    return f"{endpoint} ({', '.join(parts)})"


def cache_key(endpoint: str, params: Params) -> str:
    """Deterministic digest of (endpoint, params); ``None`` values are ignored."""
    blob = json.dumps(
        {"endpoint": endpoint, "params": _normalize_params(params)},
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(blob.encode("utf-8")).hexdigest()


@runtime_checkable
class ResponseCache(Protocol):
    """Storage for immutable upstream responses keyed by (endpoint, params)."""

    def read(self, endpoint: str, params: Params) -> Optional[ApiResponse]:
        ...

    def write(self, endpoint: str, params: Params, data: Dict[str, Any], url: str) -> None:
        ...


class FileResponseCache:
    """JSON-file cache, one file per (endpoint, params) key."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path_for(self, endpoint: str, params: Params) -> Path:
        slug = _SLUG_RE.sub("_", endpoint).strip("_") or "root"
        return self.directory / f"{slug}_{cache_key(endpoint, params)[:24]}.json"

    def read(self, endpoint: str, params: Params) -> Optional[ApiResponse]:
        path = self._path_for(endpoint, params)
        if not path.exists():
            return None
        try:
            entry = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("cache entry unreadable path={} error={}", path, exc)
            return None
        if not isinstance(entry, dict) or "data" not in entry or "url" not in entry:
            logger.warning("cache entry malformed path={}", path)
            return None
        logger.debug("cache hit {}", describe_request(endpoint, params))
        return ApiResponse(data=entry["data"], url=entry["url"])

    def write(self, endpoint: str, params: Params, data: Dict[str, Any], url: str) -> None:
        path = self._path_for(endpoint, params)
        entry = {
            "endpoint": endpoint,
            "params": _normalize_params(params),
            "data": data,
            "url": url,
            "cached_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(entry, handle)
            os.replace(tmp_name, path)
        except OSError as exc:
            logger.warning("cache write failed path={} error={}", path, exc)
            return
        logger.debug("stored response to {} {}", path, describe_request(endpoint, params))


__all__ = ["ResponseCache", "FileResponseCache", "describe_request", "cache_key"]
