import json

import httpx
import pytest

from reservoir_sync.clients.reservoir import EntityPages, ReservoirClient, base_url_for
from reservoir_sync.core.errors import TransportFailure, UpstreamFailure, ValidationFailure
from reservoir_sync.records.sales import SALES_SPEC

BASE = "https://api.reservoir.tools"


def _client(handler) -> ReservoirClient:
    return ReservoirClient(BASE, "secret", timeout_s=5, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_get_returns_json_and_sends_api_key() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"sales": [], "continuation": None})

    client = _client(handler)
    try:
        data = await client.get("/sales/v4", "limit=1")
    finally:
        await client.aclose()

    assert data == {"sales": [], "continuation": None}
    assert seen[0].headers["x-api-key"] == "secret"
    assert str(seen[0].url) == f"{BASE}/sales/v4?limit=1"


@pytest.mark.asyncio
async def test_non_200_raises_upstream_failure_with_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"message": "Too many requests"})

    client = _client(handler)
    try:
        with pytest.raises(UpstreamFailure) as exc_info:
            await client.get("/sales/v4", "limit=1")
    finally:
        await client.aclose()

    assert exc_info.value.status == 429
    assert exc_info.value.body == {"message": "Too many requests"}


@pytest.mark.asyncio
async def test_non_json_body_raises_upstream_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    client = _client(handler)
    try:
        with pytest.raises(UpstreamFailure):
            await client.get("/sales/v4", "limit=1")
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_connection_error_raises_transport_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)
    try:
        with pytest.raises(TransportFailure):
            await client.get("/sales/v4", "limit=1")
    finally:
        await client.aclose()


@pytest.mark.asyncio
async def test_entity_pages_builds_query() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=json.dumps({"sales": [], "continuation": "next"}))

    contract = "0x" + "ab" * 20
    client = _client(handler)
    pages = EntityPages(client, SALES_SPEC, contracts=[contract], page_size=500)
    try:
        payload = await pages.get_page(start_timestamp=100, end_timestamp=200)
        await pages.get_page(continuation="next")
    finally:
        await client.aclose()

    assert payload["continuation"] == "next"
    first = seen[0].url
    assert first.path == "/sales/v4"
    assert first.params["limit"] == "500"
    assert first.params["startTimestamp"] == "100"
    assert first.params["endTimestamp"] == "200"
    assert first.params["contract"] == contract
    assert "continuation" not in first.params

    second = seen[1].url
    assert second.params["continuation"] == "next"
    assert "startTimestamp" not in second.params


def test_base_url_for_unknown_chain() -> None:
    assert base_url_for("mainnet") == BASE
    with pytest.raises(ValidationFailure):
        base_url_for("solana")
