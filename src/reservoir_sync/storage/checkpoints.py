from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path

from reservoir_sync.core.checkpoint import Checkpoint, CheckpointEnvelope, load_checkpoint
from reservoir_sync.core.errors import ValidationFailure
from reservoir_sync.core.interfaces import ICheckpointStore


class FileCheckpointStore(ICheckpointStore):
    """JSON checkpoint file per entity type, replaced atomically on every save.

    Layout: <root>/<entity>.json -> {"type": <entity>, "data": {date, managers: [...]}}
    """

    def __init__(self, root: str | Path, entity: str) -> None:
        """Initialize the store under `root`.

        Args:
            root: Directory holding checkpoint files (created if missing)
            entity: Entity type; also the file basename
        """
        self.root = Path(root)
        self.entity = entity
        self.path = self.root / f"{entity}.json"
        self.root.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    async def load(self) -> Checkpoint | None:
        if not self.path.exists():
            return None
        text = await asyncio.to_thread(self.path.read_text)
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationFailure(f"corrupt checkpoint file {self.path}: {e}") from e
        return load_checkpoint(payload)

    async def save(self, checkpoint: Checkpoint) -> None:
        """Serialize and write the checkpoint (tmp + fsync + replace)."""
        body = CheckpointEnvelope(type=self.entity, data=checkpoint).model_dump_json(indent=2)
        async with self._lock:
            await asyncio.to_thread(self._atomic_write, self.path, body)

    @staticmethod
    def _atomic_write(path: Path, body: str) -> None:
        tmp = path.with_suffix(".tmp")
        with open(tmp, "w") as f:
            f.write(body)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)


class MemoryCheckpointStore(ICheckpointStore):
    """Keeps every saved snapshot in memory (tests, dry runs)."""

    def __init__(self, initial: Checkpoint | None = None) -> None:
        self.saved: list[Checkpoint] = []
        self._initial = initial

    @property
    def latest(self) -> Checkpoint | None:
        return self.saved[-1] if self.saved else self._initial

    async def load(self) -> Checkpoint | None:
        return self.latest

    async def save(self, checkpoint: Checkpoint) -> None:
        self.saved.append(checkpoint.model_copy(deep=True))
