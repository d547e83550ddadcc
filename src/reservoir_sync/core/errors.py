"""Error taxonomy shared by the client, the storage backends and the orchestration layer.

- `TransportFailure` / `UpstreamFailure` are caught at the worker boundary and
  turned into a "retry next cycle" poll result.
- `ValidationFailure` covers malformed dates, configs and checkpoints.
- `WriteFailure` is raised by row stores and is never swallowed.
"""

from __future__ import annotations

from typing import Any


class SyncError(Exception):
    """Base class for every error raised by reservoir_sync."""


class TransportFailure(SyncError):
    """Network error or timeout before an HTTP status was received."""


class UpstreamFailure(SyncError):
    """Upstream answered with a non-200 status (or an unreadable 200)."""

    def __init__(self, status: int, body: Any = None) -> None:
        self.status = status
        self.body = body
        super().__init__(f"upstream returned {status}: {body!r}")


class ValidationFailure(SyncError, ValueError):
    """Malformed date, config value or checkpoint tree."""


class WriteFailure(SyncError):
    """The row store rejected an upsert or delete."""
