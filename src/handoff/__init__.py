"""
handoff: shared-state orchestration for persona agent pipelines.

Named persona agents (interviewer, UI sketcher, UX writer, architects,
diagram and interaction designers, planner, browser QA) each read earlier
markdown artifacts from a project's `.shared/` directory and write exactly
one new artifact. Presets group the agents into sequential and parallel
phases; the LLM call itself is delegated to a pluggable executor.

Example:
    from handoff import PipelineRunner, default_registries
    from handoff.infrastructure import FilesystemArtifactStore, MockExecutor

    _, presets = default_registries()
    runner = PipelineRunner(
        graph=presets.graph("webapp"),
        store=FilesystemArtifactStore("./my-project"),
        executor=MockExecutor(),
    )
    result = runner.run()
"""

__version__ = "0.1.0"

# Application layer (orchestration)
from handoff.application import (  # noqa: E402
    AgentRegistry,
    PipelineRunner,
    PresetRegistry,
    ResumeService,
    Scheduler,
    StatusReport,
    build_status,
)

# Built-in catalog
from handoff.catalog import (  # noqa: E402
    BUILTIN_PRESETS,
    builtin_agents,
    default_registries,
    load_preset_file,
)
from handoff.config import RunConfig, load_run_config  # noqa: E402

# Domain exceptions
from handoff.domain.exceptions import (  # noqa: E402
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
from handoff.domain.graph import DependencyGraph  # noqa: E402

# Domain interfaces (for type hints and custom implementations)
from handoff.domain.interfaces import (  # noqa: E402
    AgentExecutorInterface,
    ArtifactCheckInterface,
    ArtifactStoreInterface,
)
from handoff.domain.models import (  # noqa: E402
    AgentDefinition,
    Artifact,
    ArtifactMetadata,
    ExecutionMode,
    Phase,
    RunResult,
    RunStatus,
    WorkflowPreset,
)
from handoff.domain.prompts import AgentRequest  # noqa: E402
from handoff.domain.stages import STAGES, Stage  # noqa: E402

__all__ = [
    "__version__",
    # Application
    "AgentRegistry",
    "PresetRegistry",
    "Scheduler",
    "PipelineRunner",
    "ResumeService",
    "StatusReport",
    "build_status",
    "RunConfig",
    "load_run_config",
    # Catalog
    "BUILTIN_PRESETS",
    "builtin_agents",
    "default_registries",
    "load_preset_file",
    # Domain
    "STAGES",
    "Stage",
    "Artifact",
    "ArtifactMetadata",
    "AgentDefinition",
    "AgentRequest",
    "ExecutionMode",
    "Phase",
    "WorkflowPreset",
    "DependencyGraph",
    "RunResult",
    "RunStatus",
    # Interfaces
    "AgentExecutorInterface",
    "ArtifactCheckInterface",
    "ArtifactStoreInterface",
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
