"""Async HTTP client for the paginated upstream API.

This module provides:
- `ReservoirClient`: an httpx client with the API key header and fixed timeouts
- `EntityPages`: binds a client to one entity type and contract allow-list,
  implementing `IPageProvider` for the unit workers
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx

from reservoir_sync.constants import PAGE_SIZE, REQUEST_TIMEOUT_S, URL_BASES
from reservoir_sync.core.errors import TransportFailure, UpstreamFailure, ValidationFailure
from reservoir_sync.core.interfaces import IPageProvider
from reservoir_sync.orchestration.utils import create_query
from reservoir_sync.records.specs import RecordSpec


def base_url_for(chain: str) -> str:
    try:
        return URL_BASES[chain]
    except KeyError as e:
        raise ValidationFailure(f"unknown chain {chain!r}") from e


def _error_body(r: httpx.Response) -> Any:
    try:
        return r.json()
    except ValueError:
        return r.text or None


class ReservoirClient:
    """Minimal async client.

    Parameters
    ----------
    base_url : str
        Chain-specific API base URL.
    api_key : str
        Sent as the `x-api-key` header.
    timeout_s : int
        Per-operation timeout in seconds (connect/read/write).
    max_connections : int
        Maximum concurrent connections to keep in the pool.
    transport : httpx.AsyncBaseTransport | None
        Optional transport override (tests).
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout_s: int = REQUEST_TIMEOUT_S,
        max_connections: int = 64,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=timeout_s,
                read=timeout_s,
                write=timeout_s,
                pool=max(30, timeout_s * 3),
            ),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(1, max_connections // 2),
            ),
            headers={
                "Content-Type": "application/json",
                "x-api-key": api_key,
            },
            transport=transport,
        )

    async def get(self, path: str, query: str) -> dict[str, Any]:
        """GET `<base><path>?<query>` and return the decoded JSON body."""
        url = f"{self.base_url}{path}?{query}"
        try:
            r = await self.client.get(url)
        except httpx.HTTPError as e:
            raise TransportFailure(f"{type(e).__name__}: {e}") from e

        if r.status_code != 200:
            raise UpstreamFailure(r.status_code, _error_body(r))
        try:
            data = r.json()
        except ValueError as e:
            raise UpstreamFailure(r.status_code, {"message": "invalid JSON body", "body": r.text[:500]}) from e
        if not isinstance(data, dict):
            raise UpstreamFailure(r.status_code, {"message": "unexpected payload", "body": data})
        return data

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()


class EntityPages(IPageProvider):
    """Page provider for one entity type over a `ReservoirClient`."""

    def __init__(
        self,
        client: ReservoirClient,
        spec: RecordSpec,
        *,
        contracts: Sequence[str] = (),
        page_size: int = PAGE_SIZE,
    ) -> None:
        self._client = client
        self._spec = spec
        self._contracts = tuple(contracts)
        self._page_size = page_size

    async def get_page(
        self,
        *,
        continuation: str = "",
        start_timestamp: int | None = None,
        end_timestamp: int | None = None,
    ) -> dict[str, Any]:
        query = create_query(
            continuation,
            self._contracts,
            start_timestamp,
            end_timestamp,
            limit=self._page_size,
        )
        return await self._client.get(self._spec.path, query)
