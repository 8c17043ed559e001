"""
Infrastructure layer for the handoff pipeline.

Contains adapters for external concerns (persistence, executors, registry).
"""

from handoff.infrastructure.executors import (
    CommandExecutor,
    MockExecutor,
    OpenAIExecutor,
)
from handoff.infrastructure.persistence import (
    FilesystemArtifactStore,
    FilesystemCheckpointStore,
    FilesystemRunEventStore,
    InMemoryArtifactStore,
    InMemoryCheckpointStore,
    InMemoryRunEventStore,
)
from handoff.infrastructure.registry import ExecutorRegistry

__all__ = [
    # Persistence
    "InMemoryArtifactStore",
    "FilesystemArtifactStore",
    "InMemoryRunEventStore",
    "FilesystemRunEventStore",
    "InMemoryCheckpointStore",
    "FilesystemCheckpointStore",
    # Executors
    "CommandExecutor",
    "MockExecutor",
    "OpenAIExecutor",
    # Registry
    "ExecutorRegistry",
]
