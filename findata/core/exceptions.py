from __future__ import annotations

from typing import Optional


class FinDataError(Exception):
    """Base class for all findata exceptions."""


class NoCredentialError(FinDataError):
    """Raised when neither backend credential is configured."""

    def __init__(self, label: Optional[str] = None) -> None:
        self.label = label
        message = (
            "No valid financial API key found "
            "(requires FINANCIAL_DATASETS_API_KEY or FMP_API_KEY)"
        )
        super().__init__(f"{message}: {label}" if label else message)


class MissingTickerError(FinDataError):
    """Raised when the FMP backend is asked for data without a ticker."""

    def __init__(self, label: str) -> None:
        self.label = label
        super().__init__(f"Ticker is required for FMP API: {label}")


class UpstreamError(FinDataError):
    """Base class for failures talking to an upstream provider."""

    def __init__(self, message: str, *, label: str) -> None:
        self.label = label
        super().__init__(message)


class UpstreamNetworkError(UpstreamError):
    """DNS, connection or timeout failure before a response arrived."""

    def __init__(self, label: str, cause: BaseException) -> None:
        self.cause = cause
        detail = str(cause) or type(cause).__name__
        super().__init__(f"API request failed for {label}: {detail}", label=label)


class UpstreamHttpError(UpstreamError):
    """Upstream answered with a non-2xx status."""

    def __init__(self, label: str, status: int, reason: Optional[str] = None) -> None:
        self.status = status
        detail = f"{status} {reason}".strip() if reason else str(status)
        super().__init__(f"API request failed for {label}: {detail}", label=label)


class UpstreamParseError(UpstreamError):
    """Upstream answered but the body is not valid JSON."""

    def __init__(self, label: str, status: Optional[int] = None) -> None:
        self.status = status
        detail = f"invalid JSON ({status})" if status is not None else "undecodable response body"
        super().__init__(f"API request failed for {label}: {detail}", label=label)


class UnsupportedByBackendError(FinDataError):
    """Feature only exists on the Financial Datasets backend."""

    def __init__(self, label: str, reason: str) -> None:
        self.label = label
        self.reason = reason
        super().__init__(
            f"{reason} requires a Financial Datasets API key "
            f"(set FINANCIAL_DATASETS_API_KEY): {label}"
        )


class UnsupportedEndpointError(FinDataError):
    """No FMP translation rule matches the canonical endpoint."""

    def __init__(self, endpoint: str, label: Optional[str] = None) -> None:
        self.endpoint = endpoint
        self.label = label
        message = f"Endpoint {endpoint} not supported by FMP adapter yet"
        super().__init__(f"{message}: {label}" if label else message)


__all__ = [
    "FinDataError",
    "NoCredentialError",
    "MissingTickerError",
    "UpstreamError",
    "UpstreamNetworkError",
    "UpstreamHttpError",
    "UpstreamParseError",
    "UnsupportedByBackendError",
    "UnsupportedEndpointError",
]
