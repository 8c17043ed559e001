"""Shared pytest fixtures for handoff tests."""

from collections.abc import Callable

import pytest

from handoff.application.registry import AgentRegistry, PresetRegistry
from handoff.application.runner import PipelineRunner
from handoff.catalog import default_registries
from handoff.config import RunConfig
from handoff.domain.graph import DependencyGraph
from handoff.domain.models import (
    AgentDefinition,
    Artifact,
    ArtifactMetadata,
    ExecutionMode,
    Phase,
    WorkflowPreset,
)
from handoff.infrastructure.executors.mock import MockExecutor
from handoff.infrastructure.persistence.checkpoint import InMemoryCheckpointStore
from handoff.infrastructure.persistence.memory import InMemoryArtifactStore
from handoff.infrastructure.persistence.run_events import InMemoryRunEventStore


@pytest.fixture
def agent_registry() -> AgentRegistry:
    """Built-in agents."""
    agents, _ = default_registries()
    return agents


@pytest.fixture
def preset_registry() -> PresetRegistry:
    """Built-in presets over the built-in agents."""
    _, presets = default_registries()
    return presets


@pytest.fixture
def webapp_graph(preset_registry: PresetRegistry) -> DependencyGraph:
    return preset_registry.graph("webapp")


@pytest.fixture
def memory_store() -> InMemoryArtifactStore:
    return InMemoryArtifactStore()


@pytest.fixture
def event_store() -> InMemoryRunEventStore:
    return InMemoryRunEventStore()


@pytest.fixture
def checkpoint_store() -> InMemoryCheckpointStore:
    return InMemoryCheckpointStore()


@pytest.fixture
def fast_config() -> RunConfig:
    """Retries without backoff delays."""
    return RunConfig(max_attempts=3, backoff_seconds=0.0, max_workers=3)


@pytest.fixture
def make_runner(
    memory_store: InMemoryArtifactStore,
    event_store: InMemoryRunEventStore,
    checkpoint_store: InMemoryCheckpointStore,
    fast_config: RunConfig,
) -> Callable[..., PipelineRunner]:
    """Factory building a runner over the in-memory stores."""

    def _make(
        graph: DependencyGraph,
        executor: MockExecutor | None = None,
        config: RunConfig | None = None,
    ) -> PipelineRunner:
        return PipelineRunner(
            graph=graph,
            store=memory_store,
            executor=executor or MockExecutor(),
            config=config or fast_config,
            event_store=event_store,
            checkpoint_store=checkpoint_store,
        )

    return _make


@pytest.fixture
def populate(memory_store: InMemoryArtifactStore) -> Callable[..., None]:
    """Write placeholder artifacts for the given slugs."""

    def _populate(*slugs: str) -> None:
        for slug in slugs:
            memory_store.put(slug, f"# {slug}\n\nExisting content.\n", agent="manual")

    return _populate


@pytest.fixture
def sample_artifact() -> Artifact:
    return Artifact(
        metadata=ArtifactMetadata(
            slug="requirements",
            agent="interviewer",
            created_at="2025-01-01T00:00:00+00:00",
        ),
        content="# Requirements\n\n## Problem\n\nUsers lose track of tasks.\n",
    )


@pytest.fixture
def tiny_agents() -> AgentRegistry:
    """Three-agent catalog: a -> (b, c) with c optional."""
    return AgentRegistry(
        [
            AgentDefinition("writer", "requirements", sections=("Goals",)),
            AgentDefinition("sketcher", "wireframes", requires=("requirements",)),
            AgentDefinition(
                "animator",
                "animations",
                requires=("requirements",),
                optional=True,
            ),
        ]
    )


@pytest.fixture
def tiny_preset() -> WorkflowPreset:
    return WorkflowPreset(
        name="tiny",
        phases=(
            Phase("first", ExecutionMode.SEQUENTIAL, ("writer",)),
            Phase("second", ExecutionMode.PARALLEL, ("sketcher", "animator")),
        ),
    )
