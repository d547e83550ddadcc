"""Upstream API clients."""

from reservoir_sync.clients.reservoir import EntityPages, ReservoirClient, base_url_for

__all__ = ["EntityPages", "ReservoirClient", "base_url_for"]
