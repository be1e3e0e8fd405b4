"""Abstract provider client with shared HTTP and error handling."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from app.core.errors import DecodingError, InvalidURLError, map_provider_error

T = TypeVar("T")


class BaseSource(ABC):
    """Base class for upstream NFT data providers.

    Each request opens a short-lived ``httpx.AsyncClient``; tests hand in a
    ``transport`` (usually ``httpx.MockTransport``) to fake the provider.
    Every failure leaves this class as a ``ProviderError``.
    """

    name: str

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @abstractmethod
    def _auth_headers(self) -> Dict[str, str]:
        """Provider-specific API key header(s)."""

    @property
    def headers(self) -> Dict[str, str]:
        return {"accept": "application/json", **self._auth_headers()}

    def _path(self, template: str, *segments: str) -> str:
        """Fill ``template`` with URL-quoted segments; blank segments are invalid."""
        if any(not segment or not segment.strip() for segment in segments):
            raise InvalidURLError(self.name)
        return template.format(*(quote(segment, safe="") for segment in segments))

    async def _get_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=timeout if timeout is not None else self.timeout,
                transport=self._transport,
            ) as client:
                resp = await client.get(path, params=params)
                resp.raise_for_status()
                return resp.json()
        except Exception as exc:  # noqa: BLE001
            raise map_provider_error(exc, self.name) from exc

    def _decode(self, model: Type[T], payload: Any) -> T:
        try:
            return TypeAdapter(model).validate_python(payload)
        except ValidationError as exc:
            raise DecodingError(str(exc), self.name) from exc
