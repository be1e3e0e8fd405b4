"""Provider error taxonomy shared by both upstream clients.

Every failure talking to CoinGecko or OpenSea surfaces as one of the
``ProviderError`` subclasses below. ``map_provider_error`` converts raw
httpx / decoding exceptions into that taxonomy.
"""

from __future__ import annotations

import json
from typing import Optional

import httpx
from pydantic import ValidationError


class ProviderError(Exception):
    """Base class for upstream provider failures."""

    kind = "unknown"
    http_status = 502

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.provider = provider

    def __str__(self) -> str:
        if self.provider:
            return f"[{self.provider}] {self.message}"
        return self.message


class InvalidURLError(ProviderError):
    kind = "invalid_url"
    http_status = 400

    def __init__(self, provider: Optional[str] = None):
        super().__init__("Invalid URL", provider)


class DecodingError(ProviderError):
    kind = "decoding_error"

    def __init__(self, detail: str, provider: Optional[str] = None):
        super().__init__(f"Data decoding error: {detail}", provider)
        self.detail = detail


class NetworkError(ProviderError):
    kind = "network_error"
    http_status = 504

    def __init__(self, detail: str, provider: Optional[str] = None):
        super().__init__(f"Network error: {detail}", provider)
        self.detail = detail


class ServerError(ProviderError):
    kind = "server_error"

    def __init__(self, code: int, detail: str, provider: Optional[str] = None):
        super().__init__(f"Server error ({code}): {detail}", provider)
        self.code = code
        self.detail = detail


class UnauthorizedError(ProviderError):
    kind = "unauthorized"

    def __init__(self, provider: Optional[str] = None):
        super().__init__("Invalid API key or unauthorized access", provider)


class RateLimitedError(ProviderError):
    kind = "rate_limited"
    http_status = 429

    def __init__(self, provider: Optional[str] = None):
        super().__init__("API request limit exceeded", provider)


class UnknownProviderError(ProviderError):
    kind = "unknown"

    def __init__(self, detail: str, provider: Optional[str] = None):
        super().__init__(f"Unknown error: {detail}", provider)
        self.detail = detail


def error_for_status(status_code: int, provider: Optional[str] = None) -> ProviderError:
    """Map a non-success HTTP status to the matching provider error."""
    if status_code == 401:
        return UnauthorizedError(provider)
    if status_code == 429:
        return RateLimitedError(provider)
    if 400 <= status_code <= 499:
        return ServerError(status_code, "Client error", provider)
    if 500 <= status_code <= 599:
        return ServerError(status_code, "Server error", provider)
    return UnknownProviderError(f"unexpected status {status_code}", provider)


def map_provider_error(exc: BaseException, provider: Optional[str] = None) -> ProviderError:
    """Convert an exception raised during a provider call into the taxonomy."""
    if isinstance(exc, ProviderError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        return error_for_status(exc.response.status_code, provider)
    # UnsupportedProtocol is a TransportError, so it has to be checked first
    if isinstance(exc, (httpx.InvalidURL, httpx.UnsupportedProtocol)):
        return InvalidURLError(provider)
    if isinstance(exc, httpx.TimeoutException):
        return NetworkError(f"request timed out ({exc.__class__.__name__})", provider)
    if isinstance(exc, httpx.TransportError):
        return NetworkError(str(exc) or exc.__class__.__name__, provider)
    if isinstance(exc, (json.JSONDecodeError, ValidationError)):
        return DecodingError(str(exc), provider)
    return UnknownProviderError(str(exc) or exc.__class__.__name__, provider)
