"""Dispatch from entity type to its record spec."""

from __future__ import annotations

from typing import assert_never

from reservoir_sync.core.errors import ValidationFailure
from reservoir_sync.records.sales import SALES_SPEC
from reservoir_sync.records.specs import EntityType, RecordSpec


def record_spec(entity: EntityType) -> RecordSpec:
    """Return the spec handling `entity`; adding a member without a case fails type checks."""
    match entity:
        case EntityType.SALES:
            return SALES_SPEC
        case _:
            assert_never(entity)


def parse_entity_type(value: str) -> EntityType:
    try:
        return EntityType(value.lower())
    except ValueError as e:
        supported = ", ".join(t.value for t in EntityType)
        raise ValidationFailure(f"unsupported entity type {value!r} (supported: {supported})") from e


def all_specs() -> list[RecordSpec]:
    return [record_spec(t) for t in EntityType]
