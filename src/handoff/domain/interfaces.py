"""
Domain interfaces (Ports) for the handoff pipeline.

These abstract base classes define the contracts adapters must satisfy.
They have no external dependencies.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from handoff.domain.models import (
        Artifact,
        ArtifactMetadata,
        CheckResult,
        RunCheckpoint,
    )
    from handoff.domain.prompts import AgentRequest
    from handoff.domain.run_event import RunEvent, RunEventType


class ArtifactStoreInterface(ABC):
    """
    Port for stage artifact persistence.

    Single source of truth between stages, scoped to one project. At most
    one artifact per slug; once written an artifact is never rewritten
    unless the caller explicitly asks to overwrite.
    """

    @abstractmethod
    def put(
        self,
        slug: str,
        content: str,
        agent: str = "manual",
        inputs: Sequence[str] = (),
        overwrite: bool = False,
    ) -> "ArtifactMetadata":
        """
        Store the artifact for a stage slot.

        Args:
            slug: Stage slug (e.g. 'requirements')
            content: Raw markdown body
            agent: Name of the producing agent
            inputs: File names of the artifacts consumed to produce it
            overwrite: Replace an existing artifact instead of failing

        Returns:
            Metadata of the stored artifact

        Raises:
            DuplicateArtifact: If the slot is filled and overwrite is False
            UnknownStage: If slug is not a stage slot
        """
        pass

    @abstractmethod
    def get(self, slug: str) -> "Artifact":
        """
        Retrieve an artifact.

        Raises:
            ArtifactNotFound: If the slot is empty
        """
        pass

    @abstractmethod
    def exists(self, slug: str) -> bool:
        """Check whether the slot has content."""
        pass

    @abstractmethod
    def list(self) -> list["ArtifactMetadata"]:
        """Metadata of all stored artifacts ordered by stage number."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every stage artifact (clean re-run)."""
        pass

    @abstractmethod
    def slugs(self) -> set[str]:
        """Slugs currently present."""
        pass


class AgentExecutorInterface(ABC):
    """
    Port for running one persona agent.

    Implementations connect to an LLM or a coding-assistant CLI. During
    execution the agent may use side-effecting tools of its own (browser,
    web fetch, file I/O); the orchestrator only invokes and awaits.
    """

    @abstractmethod
    def execute(self, request: "AgentRequest") -> str:
        """
        Run the agent and return its markdown deliverable.

        Any exception raised is treated as an executor failure and retried.
        """
        pass


class ArtifactCheckInterface(ABC):
    """
    Port for per-preset validation of executor output.

    Checks are deterministic: they inspect the produced markdown (and
    optionally its inputs) and pass or fail with feedback for the retry.
    """

    name: str = "check"

    @abstractmethod
    def validate(self, content: str, **inputs: "Artifact") -> "CheckResult":
        """
        Validate output produced for a slot.

        Args:
            content: The markdown the executor returned
            **inputs: Consumed artifacts keyed by slug
        """
        pass


class RunEventStoreInterface(ABC):
    """Port for the run log."""

    @abstractmethod
    def store_event(self, event: "RunEvent") -> str:
        """Persist an event; returns its id."""
        pass

    @abstractmethod
    def get_events(
        self,
        run_id: str,
        event_type: "RunEventType | None" = None,
        agent: str | None = None,
    ) -> list["RunEvent"]:
        """Events of a run, oldest first, optionally filtered."""
        pass


class CheckpointStoreInterface(ABC):
    """Port for the latest-run checkpoint of a project."""

    @abstractmethod
    def save(self, checkpoint: "RunCheckpoint") -> None:
        pass

    @abstractmethod
    def load(self) -> "RunCheckpoint | None":
        """Latest checkpoint, or None if the project never ran."""
        pass
