from __future__ import annotations

from typing import Any, Dict, Sequence

from findata.dal.schemas import ApiResponse

AGGREGATED_MARKER = "(aggregated)"


def single_result(result_key: str, payload: Any, url: str) -> ApiResponse:
    """Wrap one sub-request payload under its canonical result key."""
    return ApiResponse(data={result_key: payload}, url=url)


def merge_results(parts: Sequence[ApiResponse], result_key: str, base_url: str) -> ApiResponse:
    """Fold several sub-results into one nested object under *result_key*.

    No single upstream URL describes a fan-out, so the result carries a
    synthetic ``<base>/(aggregated)`` marker instead.
    """
    merged: Dict[str, Any] = {}
    for part in parts:
        merged.update(part.data)
    return ApiResponse(data={result_key: merged}, url=f"{base_url}/{AGGREGATED_MARKER}")


__all__ = ["AGGREGATED_MARKER", "single_result", "merge_results"]
