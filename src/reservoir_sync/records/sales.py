"""Sales records: raw `/sales/v4` items -> canonical rows."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from reservoir_sync.constants import URL_PATHS
from reservoir_sync.core.models import Row
from reservoir_sync.orchestration.utils import to_epoch_seconds
from reservoir_sync.records.specs import EntityType, RawItem, RecordSpec
from reservoir_sync.records.utils import address_to_bytes, to_bytes

SALES_COLUMNS: dict[str, str] = {
    "id": "BLOB",
    "sale_id": "BLOB",
    "token_id": "VARCHAR",
    "contract_id": "BLOB",
    "order_id": "BLOB",
    "order_source": "VARCHAR",
    "order_side": "VARCHAR",
    "order_kind": "VARCHAR",
    "amount": "VARCHAR",
    "from": "BLOB",
    "to": "BLOB",
    "fill_source": "VARCHAR",
    "block": "BIGINT",
    "tx_hash": "BLOB",
    "log_index": "INTEGER",
    "batch_index": "INTEGER",
    "timestamp": "BIGINT",
    "wash_trading_score": "DOUBLE",
    "created_at": "VARCHAR",
    "updated_at": "VARCHAR",
    "price_currency_contract": "BLOB",
    "price_currency_name": "VARCHAR",
    "price_currency_symbol": "VARCHAR",
    "price_currency_decimals": "INTEGER",
    "price_amount_raw": "VARCHAR",
    "price_amount_decimal": "DOUBLE",
    "price_amount_usd": "DOUBLE",
    "price_amount_native": "DOUBLE",
}


def sale_id(sale: RawItem) -> bytes:
    """Deterministic row id: immutable (tx hash, log index, batch index) triple."""
    return f"{sale['txHash']}-{sale['logIndex']}-{sale['batchIndex']}".encode()


def format_sale(sale: RawItem) -> Row:
    token: dict[str, Any] = sale.get("token") or {}
    price: dict[str, Any] = sale.get("price") or {}
    currency: dict[str, Any] = price.get("currency") or {}
    amount: dict[str, Any] = price.get("amount") or {}
    return {
        "id": sale_id(sale),
        "sale_id": to_bytes(sale.get("saleId")),
        "token_id": token.get("tokenId"),
        "contract_id": address_to_bytes(token.get("contract")),
        "order_id": address_to_bytes(sale.get("orderId")),
        "order_source": sale.get("orderSource"),
        "order_side": sale.get("orderSide"),
        "order_kind": sale.get("orderKind"),
        "amount": None if sale.get("amount") is None else str(sale["amount"]),
        "from": address_to_bytes(sale.get("from")),
        "to": address_to_bytes(sale.get("to")),
        "fill_source": sale.get("fillSource"),
        "block": sale.get("block"),
        "tx_hash": address_to_bytes(sale.get("txHash")),
        "log_index": sale.get("logIndex"),
        "batch_index": sale.get("batchIndex"),
        "timestamp": sale.get("timestamp"),
        "wash_trading_score": sale.get("washTradingScore"),
        "created_at": sale.get("createdAt"),
        "updated_at": sale.get("updatedAt"),
        "price_currency_contract": address_to_bytes(currency.get("contract")),
        "price_currency_name": currency.get("name"),
        "price_currency_symbol": currency.get("symbol"),
        "price_currency_decimals": currency.get("decimals"),
        "price_amount_raw": amount.get("raw"),
        "price_amount_decimal": amount.get("decimal"),
        "price_amount_usd": amount.get("usd"),
        "price_amount_native": amount.get("native"),
        "is_deleted": bool(sale.get("isDeleted", False)),
    }


def format_sales(sales: Sequence[RawItem]) -> list[Row]:
    if not sales:
        return []
    return [format_sale(s) for s in sales]


def sale_updated_at(sale: RawItem) -> int | None:
    return to_epoch_seconds(sale.get("updatedAt"))


def sale_contract(sale: RawItem) -> str:
    return (sale.get("token") or {}).get("contract") or ""


SALES_SPEC = RecordSpec(
    entity=EntityType.SALES,
    path=URL_PATHS[EntityType.SALES],
    columns=SALES_COLUMNS,
    format=format_sales,
    updated_at=sale_updated_at,
    contract_of=sale_contract,
)
