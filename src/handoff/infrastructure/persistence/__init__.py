"""
Persistence adapters: artifact stores, run log and checkpoints.
"""

from handoff.infrastructure.persistence.checkpoint import (
    FilesystemCheckpointStore,
    InMemoryCheckpointStore,
)
from handoff.infrastructure.persistence.filesystem import (
    FilesystemArtifactStore,
    shared_dir,
    state_dir,
)
from handoff.infrastructure.persistence.memory import InMemoryArtifactStore
from handoff.infrastructure.persistence.run_events import (
    FilesystemRunEventStore,
    InMemoryRunEventStore,
)

__all__ = [
    "InMemoryArtifactStore",
    "FilesystemArtifactStore",
    "InMemoryRunEventStore",
    "FilesystemRunEventStore",
    "InMemoryCheckpointStore",
    "FilesystemCheckpointStore",
    "shared_dir",
    "state_dir",
]
