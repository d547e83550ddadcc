"""Checkpoint tree: orchestrator cursor -> managers -> workers.

The tree is keyed implicitly by list order; restore rebuilds managers and
workers in the same order with fresh process-local identifiers.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from reservoir_sync.core.errors import ValidationFailure


class WorkerCheckpoint(BaseModel):
    date: str
    timestamp: int = 0
    continuation: str = ""

    @field_validator("continuation", mode="before")
    @classmethod
    def _none_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class ManagerCheckpoint(BaseModel):
    date: str
    timestamp: int = 0
    workers: list[WorkerCheckpoint] = Field(default_factory=list)


class Checkpoint(BaseModel):
    date: str
    managers: list[ManagerCheckpoint] = Field(default_factory=list)


class CheckpointEnvelope(BaseModel):
    """On-disk wrapper: `{"type": <entity>, "data": <Checkpoint>}`."""

    type: str
    data: Checkpoint


def load_checkpoint(payload: dict[str, Any]) -> Checkpoint:
    """Validate a raw checkpoint dict (bare tree or envelope)."""
    try:
        if "data" in payload and "type" in payload:
            return CheckpointEnvelope.model_validate(payload).data
        return Checkpoint.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailure(f"malformed checkpoint: {e}") from e
