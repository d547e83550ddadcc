"""Record transform table: raw upstream payloads -> canonical rows.

This package provides:
- EntityType / RecordSpec: the supported entity types and their transforms
- record_spec: dispatch from entity type to spec
- Byte helpers for ids, hashes and addresses
"""

from reservoir_sync.records.registry import all_specs, parse_entity_type, record_spec
from reservoir_sync.records.specs import EntityType, RecordSpec

__all__ = [
    "EntityType",
    "RecordSpec",
    "all_specs",
    "parse_entity_type",
    "record_spec",
]
