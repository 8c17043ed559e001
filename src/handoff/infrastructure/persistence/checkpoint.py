"""
Checkpoint persistence for the latest run of a project.

The checkpoint only remembers which preset ran and how it ended; progress
itself is derived from the artifacts on disk.
"""

import json
from pathlib import Path
from typing import Any

from handoff.domain.interfaces import CheckpointStoreInterface
from handoff.domain.models import RunCheckpoint, RunStatus


def checkpoint_to_dict(checkpoint: RunCheckpoint) -> dict[str, Any]:
    return {
        "run_id": checkpoint.run_id,
        "preset": checkpoint.preset,
        "preset_ref": checkpoint.preset_ref,
        "status": checkpoint.status.value,
        "started_at": checkpoint.started_at,
        "finished_at": checkpoint.finished_at,
        "failed_agent": checkpoint.failed_agent,
        "failed_stage": checkpoint.failed_stage,
        "error": checkpoint.error,
    }


def dict_to_checkpoint(data: dict[str, Any]) -> RunCheckpoint:
    return RunCheckpoint(
        run_id=data["run_id"],
        preset=data["preset"],
        preset_ref=data.get("preset_ref", ""),
        status=RunStatus(data["status"]),
        started_at=data.get("started_at", ""),
        finished_at=data.get("finished_at"),
        failed_agent=data.get("failed_agent"),
        failed_stage=data.get("failed_stage"),
        error=data.get("error", ""),
    )


class InMemoryCheckpointStore(CheckpointStoreInterface):
    """In-memory checkpoint holder for testing."""

    def __init__(self) -> None:
        self._checkpoint: RunCheckpoint | None = None

    def save(self, checkpoint: RunCheckpoint) -> None:
        self._checkpoint = checkpoint

    def load(self) -> RunCheckpoint | None:
        return self._checkpoint


class FilesystemCheckpointStore(CheckpointStoreInterface):
    """Stores the checkpoint as `checkpoint.json` under the state directory."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = Path(base_path)
        self._path = self.base_path / "checkpoint.json"

    def save(self, checkpoint: RunCheckpoint) -> None:
        self.base_path.mkdir(parents=True, exist_ok=True)
        temp_path = self._path.with_suffix(".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(checkpoint_to_dict(checkpoint), f, indent=2)
        temp_path.rename(self._path)  # Atomic on POSIX

    def load(self) -> RunCheckpoint | None:
        if not self._path.exists():
            return None
        with open(self._path, encoding="utf-8") as f:
            return dict_to_checkpoint(json.load(f))
