"""
Domain models for the handoff pipeline.

These are pure data structures. Everything except RunState is immutable
(frozen dataclasses); agents and presets are plain data consumed by the
dependency graph, and persona payloads are carried as opaque text.
"""

from dataclasses import dataclass, field
from enum import Enum

from handoff.domain.stages import Stage, stage_for

# =============================================================================
# ARTIFACTS
# =============================================================================


@dataclass(frozen=True)
class ArtifactMetadata:
    """Everything known about a stored artifact except its body."""

    slug: str
    agent: str  # Producing agent name
    created_at: str  # ISO timestamp
    inputs: tuple[str, ...] = ()  # File names of consumed artifacts
    path: str | None = None  # None for in-memory stores

    @property
    def stage(self) -> Stage:
        return stage_for(self.slug)


@dataclass(frozen=True)
class Artifact:
    """
    Immutable markdown document produced by exactly one stage.

    Later stages read it, never rewrite it.
    """

    metadata: ArtifactMetadata
    content: str

    @property
    def slug(self) -> str:
        return self.metadata.slug

    @property
    def agent(self) -> str:
        return self.metadata.agent

    @property
    def stage(self) -> Stage:
        return self.metadata.stage


# =============================================================================
# AGENTS, PHASES, PRESETS
# =============================================================================


@dataclass(frozen=True)
class AgentDefinition:
    """
    Static description of one persona agent.

    The instruction payload and constraints are passed to the executor
    unmodified; the orchestrator never interprets them.
    """

    name: str
    produces: str  # Output stage slug
    requires: tuple[str, ...] = ()  # Input stage slugs, in prompt order
    instructions: str = ""  # Persona prompt (opaque)
    must_do: tuple[str, ...] = ()
    must_not_do: tuple[str, ...] = ()
    description: str = ""
    sections: tuple[str, ...] = ()  # Headings downstream stages rely on
    optional: bool = False  # Failure does not fail the run


class ExecutionMode(str, Enum):
    """How the members of a phase are dispatched."""

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


@dataclass(frozen=True)
class Phase:
    """An ordered group of agents sharing an execution mode."""

    name: str
    mode: ExecutionMode
    agents: tuple[str, ...]


@dataclass(frozen=True)
class WorkflowPreset:
    """
    A named end-to-end pipeline.

    Substitutions swap one agent for another that fills the same output
    slot (e.g. ui-sketcher -> mobile-ui-sketcher). Checks name artifact
    validators layered on top of a slot for this preset only.
    """

    name: str
    phases: tuple[Phase, ...]
    description: str = ""
    substitutions: tuple[tuple[str, str], ...] = ()  # (original, replacement)
    checks: tuple[tuple[str, str], ...] = ()  # (slug, check name)

    def substitute(self, agent: str) -> str:
        """Return the agent that actually runs in place of `agent`."""
        for original, replacement in self.substitutions:
            if original == agent:
                return replacement
        return agent

    def resolved_phases(self) -> tuple[Phase, ...]:
        """Phases with substitutions applied."""
        return tuple(
            Phase(
                name=phase.name,
                mode=phase.mode,
                agents=tuple(self.substitute(a) for a in phase.agents),
            )
            for phase in self.phases
        )

    def agent_names(self) -> tuple[str, ...]:
        """All agents that run under this preset, in declared order."""
        return tuple(a for phase in self.resolved_phases() for a in phase.agents)

    def checks_for(self, slug: str) -> tuple[str, ...]:
        return tuple(name for s, name in self.checks if s == slug)


# =============================================================================
# CHECK RESULT (per-preset validator hook)
# =============================================================================


@dataclass(frozen=True)
class CheckResult:
    """Outcome of validating executor output for a slot."""

    passed: bool
    feedback: str = ""
    check_name: str | None = None


# =============================================================================
# RUN STATE
# =============================================================================


class RunStatus(str, Enum):
    """Lifecycle of a pipeline run."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.ABORTED)


class AgentStatus(str, Enum):
    """Per-agent outcome within one run."""

    SKIPPED = "skipped"  # Artifact already present before the run
    COMPLETED = "completed"
    FAILED = "failed"
    BLOCKED = "blocked"  # An input will never be produced


@dataclass(frozen=True)
class AgentOutcome:
    """Result of one agent within a run."""

    agent: str
    slug: str
    status: AgentStatus
    attempts: int = 0
    error: str = ""


@dataclass
class RunState:
    """Mutable bookkeeping for a run in progress."""

    status: RunStatus = RunStatus.PENDING
    outcomes: dict[str, AgentOutcome] = field(default_factory=dict)

    def record(self, outcome: AgentOutcome) -> None:
        self.outcomes[outcome.agent] = outcome


@dataclass(frozen=True)
class RunResult:
    """Result of driving a preset to a terminal state."""

    run_id: str
    preset: str
    status: RunStatus
    outcomes: tuple[AgentOutcome, ...] = ()
    failed_agent: str | None = None
    failed_stage: Stage | None = None
    error: str = ""

    @property
    def executed(self) -> tuple[str, ...]:
        return tuple(
            o.agent for o in self.outcomes if o.status == AgentStatus.COMPLETED
        )

    @property
    def skipped(self) -> tuple[str, ...]:
        return tuple(o.agent for o in self.outcomes if o.status == AgentStatus.SKIPPED)


@dataclass(frozen=True)
class RunCheckpoint:
    """Persisted summary of the latest run for a project (enables `resume`)."""

    run_id: str
    preset: str
    preset_ref: str  # Content hash of the resolved preset
    status: RunStatus
    started_at: str
    finished_at: str | None = None
    failed_agent: str | None = None
    failed_stage: str | None = None
    error: str = ""
