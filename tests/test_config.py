from typing import Any

import pytest

from reservoir_sync.core.config import SyncConfig
from reservoir_sync.core.errors import ValidationFailure
from reservoir_sync.records.registry import parse_entity_type
from reservoir_sync.records.specs import EntityType


def _config(**kwargs: Any) -> SyncConfig:
    params: dict[str, Any] = dict(
        entity_type=EntityType.SALES,
        chain="mainnet",
        api_key="k",
        date="2023-01-15",
    )
    params.update(kwargs)
    return SyncConfig(**params)


def test_defaults() -> None:
    config = _config()
    assert config.url_base == "https://api.reservoir.tools"
    assert config.manager_count == 1
    assert config.worker_count == 1
    assert config.backup is None


def test_base_url_override_skips_chain_lookup() -> None:
    config = _config(chain="devnet", base_url="http://localhost:8080")
    assert config.url_base == "http://localhost:8080"


@pytest.mark.parametrize(
    "overrides",
    [
        {"manager_count": 0},
        {"worker_count": 0},
        {"page_size": 0},
        {"page_size": 1001},
        {"chain": "devnet"},
        {"date": "2023/01/15"},
        {"date": "2023-02-30"},
        {"contracts": ("0x1234",)},
    ],
)
def test_invalid_config(overrides: dict[str, Any]) -> None:
    with pytest.raises(ValidationFailure):
        _config(**overrides)


def test_validation_failure_is_value_error() -> None:
    with pytest.raises(ValueError):
        _config(worker_count=-1)


def test_parse_entity_type() -> None:
    assert parse_entity_type("SALES") is EntityType.SALES
    with pytest.raises(ValidationFailure):
        parse_entity_type("asks")


def test_url_base_follows_chain() -> None:
    assert _config(chain="polygon").url_base == "https://api-polygon.reservoir.tools"
