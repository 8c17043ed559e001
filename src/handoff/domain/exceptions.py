"""
Domain exceptions for the handoff pipeline.

Structural errors (unknown agents, invalid definitions, cycles, bad parallel
groups) are raised while a preset is validated, before any agent runs.
Execution errors are raised around the external agent executor.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class HandoffError(Exception):
    """Base class for every error raised by handoff."""

    pass


# =============================================================================
# ARTIFACT STORE
# =============================================================================


class DuplicateArtifact(HandoffError):
    """Raised when a stage artifact already exists and overwrite was not requested."""

    def __init__(self, slug: str):
        super().__init__(f"Artifact already exists: {slug}")
        self.slug = slug


class ArtifactNotFound(HandoffError):
    """Raised when a stage artifact has not been produced yet."""

    def __init__(self, slug: str):
        super().__init__(f"Artifact not found: {slug}")
        self.slug = slug


class UnknownStage(HandoffError):
    """Raised when a slug or stage number is not one of the eight stage slots."""

    pass


# =============================================================================
# REGISTRIES AND VALIDATION
# =============================================================================


class DuplicateAgentName(HandoffError):
    """Raised when an agent name is registered twice."""

    def __init__(self, name: str):
        super().__init__(f"Agent already registered: {name}")
        self.name = name


class UnknownAgent(HandoffError):
    """Raised when an agent name cannot be resolved."""

    def __init__(self, name: str, available: "Sequence[str]" = ()):
        message = f"Unknown agent: {name}"
        if available:
            message += f" (available: {', '.join(available)})"
        super().__init__(message)
        self.name = name


class UnknownPreset(HandoffError):
    """Raised when a workflow preset name cannot be resolved."""

    def __init__(self, name: str, available: "Sequence[str]" = ()):
        message = f"Unknown preset: {name}"
        if available:
            message += f" (available: {', '.join(available)})"
        super().__init__(message)
        self.name = name


class InvalidDefinition(HandoffError):
    """Raised when an agent definition or preset is structurally invalid."""

    pass


class CyclicDependency(HandoffError):
    """Raised when agent dependencies form a cycle."""

    def __init__(self, agents: "Sequence[str]"):
        super().__init__(f"Cyclic dependency between agents: {' -> '.join(agents)}")
        self.agents = tuple(agents)


class InvalidParallelGroup(HandoffError):
    """
    Raised when a parallel phase is not safe to dispatch concurrently.

    Either two members write the same artifact, or a member requires an
    artifact that no earlier phase produces.
    """

    def __init__(self, phase: str, reason: str):
        super().__init__(f"Invalid parallel phase '{phase}': {reason}")
        self.phase = phase
        self.reason = reason


# =============================================================================
# EXECUTION
# =============================================================================


class ExecutorFailure(HandoffError):
    """
    Raised when the external agent executor errors or returns unusable output.

    Recoverable: the runner retries up to its configured attempt bound.
    """

    def __init__(self, agent: str, message: str):
        super().__init__(f"{agent}: {message}")
        self.agent = agent
        self.feedback = message


class MissingRequiredInput(HandoffError):
    """
    Raised when an agent is about to be dispatched with an input missing.

    The scheduler only admits ready agents, so this signals a broken
    invariant rather than a user error.
    """

    def __init__(self, agent: str, missing: "Sequence[str]"):
        super().__init__(
            f"Agent '{agent}' dispatched without required inputs: {', '.join(missing)}"
        )
        self.agent = agent
        self.missing = tuple(missing)


class PresetChanged(HandoffError):
    """Raised when resuming a run whose preset definition has changed."""

    def __init__(self, preset: str, expected: str, actual: str):
        super().__init__(
            f"Preset '{preset}' changed since the last run. "
            f"Expected: {expected[:12]}, Got: {actual[:12]}"
        )
        self.preset = preset
        self.expected = expected
        self.actual = actual


class ConfigurationError(HandoffError):
    """Raised when configuration files are invalid or missing."""

    pass
