"""
Domain layer for the handoff pipeline.

Contains core business logic with no external dependencies.
"""

from handoff.domain.exceptions import (
    ArtifactNotFound,
    ConfigurationError,
    CyclicDependency,
    DuplicateAgentName,
    DuplicateArtifact,
    ExecutorFailure,
    HandoffError,
    InvalidDefinition,
    InvalidParallelGroup,
    MissingRequiredInput,
    PresetChanged,
    UnknownAgent,
    UnknownPreset,
    UnknownStage,
)
from handoff.domain.graph import DependencyGraph
from handoff.domain.interfaces import (
    AgentExecutorInterface,
    ArtifactCheckInterface,
    ArtifactStoreInterface,
    CheckpointStoreInterface,
    RunEventStoreInterface,
)
from handoff.domain.models import (
    AgentDefinition,
    AgentOutcome,
    AgentStatus,
    Artifact,
    ArtifactMetadata,
    CheckResult,
    ExecutionMode,
    Phase,
    RunCheckpoint,
    RunResult,
    RunState,
    RunStatus,
    WorkflowPreset,
)
from handoff.domain.prompts import AgentRequest
from handoff.domain.stages import STAGES, Stage, is_stage_slug, stage_for

__all__ = [
    # Stages
    "STAGES",
    "Stage",
    "is_stage_slug",
    "stage_for",
    # Models
    "Artifact",
    "ArtifactMetadata",
    "AgentDefinition",
    "ExecutionMode",
    "Phase",
    "WorkflowPreset",
    "CheckResult",
    "RunStatus",
    "RunState",
    "RunResult",
    "RunCheckpoint",
    "AgentStatus",
    "AgentOutcome",
    "AgentRequest",
    "DependencyGraph",
    # Interfaces
    "ArtifactStoreInterface",
    "AgentExecutorInterface",
    "ArtifactCheckInterface",
    "RunEventStoreInterface",
    "CheckpointStoreInterface",
    # Exceptions
    "HandoffError",
    "DuplicateArtifact",
    "ArtifactNotFound",
    "UnknownStage",
    "DuplicateAgentName",
    "UnknownAgent",
    "UnknownPreset",
    "InvalidDefinition",
    "CyclicDependency",
    "InvalidParallelGroup",
    "ExecutorFailure",
    "MissingRequiredInput",
    "PresetChanged",
    "ConfigurationError",
]
