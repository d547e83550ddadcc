from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from reservoir_sync.core.errors import UpstreamFailure
from reservoir_sync.core.use_cases.units import ShutdownSignal, UnitContext
from reservoir_sync.core.use_cases.write import IdempotentWriter
from reservoir_sync.records.sales import SALES_SPEC
from reservoir_sync.storage.checkpoints import MemoryCheckpointStore
from reservoir_sync.storage.rows import MemoryRowStore

NOW = datetime(2023, 3, 1, 12, 0, tzinfo=UTC)
CONTRACT = "0x" + "ab" * 20


class ScriptedPages:
    """Page provider replaying a list of payloads (or exceptions), then empty pages."""

    def __init__(self, script: list[Any] | None = None) -> None:
        self.script = list(script or [])
        self.calls: list[dict[str, Any]] = []

    async def get_page(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(kwargs)
        if not self.script:
            return {"sales": [], "continuation": None}
        step = self.script.pop(0)
        if isinstance(step, Exception):
            raise step
        return step


def make_sale(
    tx: int,
    *,
    log_index: int = 0,
    updated_at: str = "2023-01-20T00:00:00.000Z",
    contract: str = CONTRACT,
    deleted: bool = False,
) -> dict[str, Any]:
    tx_hash = "0x" + f"{tx:064x}"
    return {
        "id": f"sale-{tx}",
        "saleId": f"{tx:064x}",
        "token": {"contract": contract, "tokenId": str(tx)},
        "orderId": "0x" + "11" * 32,
        "orderSource": "opensea.io",
        "orderSide": "ask",
        "orderKind": "seaport",
        "from": "0x" + "01" * 20,
        "to": "0x" + "02" * 20,
        "amount": "1",
        "fillSource": "opensea.io",
        "block": 16_000_000 + tx,
        "txHash": tx_hash,
        "logIndex": log_index,
        "batchIndex": 1,
        "timestamp": 1674172800,
        "price": {
            "currency": {
                "contract": "0x" + "00" * 20,
                "name": "Ether",
                "symbol": "ETH",
                "decimals": 18,
            },
            "amount": {
                "raw": "1000000000000000000",
                "decimal": 1.0,
                "usd": 1550.12,
                "native": 1.0,
            },
        },
        "washTradingScore": 0,
        "isDeleted": deleted,
        "createdAt": "2023-01-20T00:00:00.000Z",
        "updatedAt": updated_at,
    }


def page(*sales: dict[str, Any], continuation: str | None = None) -> dict[str, Any]:
    return {"sales": list(sales), "continuation": continuation}


@pytest.fixture
def scripted():
    return ScriptedPages


@pytest.fixture
def sale_factory():
    return make_sale


@pytest.fixture
def page_factory():
    return page


@pytest.fixture
def fixed_clock():
    return lambda: NOW


@pytest.fixture
def row_store() -> MemoryRowStore:
    return MemoryRowStore()


@pytest.fixture
def checkpoint_store() -> MemoryCheckpointStore:
    return MemoryCheckpointStore()


@pytest.fixture
def rate_limited() -> UpstreamFailure:
    return UpstreamFailure(429, {"message": "Too many requests"})


@pytest.fixture
def observer():
    obs = MagicMock()
    obs.checkpoint = AsyncMock()
    obs.claim_tailing = MagicMock(return_value=True)
    return obs


@pytest.fixture
def make_ctx(row_store, observer, fixed_clock):
    def _make(pages: ScriptedPages, **overrides: Any) -> UnitContext:
        params: dict[str, Any] = dict(
            pages=pages,
            spec=SALES_SPEC,
            writer=IdempotentWriter(row_store, "sales"),
            observer=observer,
            shutdown=ShutdownSignal(),
            clock=fixed_clock,
            retry_interval_s=0.0,
            tail_interval_s=0.0,
        )
        params.update(overrides)
        return UnitContext(**params)

    return _make
