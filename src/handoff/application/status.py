"""Project status: which artifacts exist, what runs next, how to resume."""

from __future__ import annotations

from dataclasses import dataclass

from handoff.application.scheduler import Scheduler
from handoff.domain.graph import DependencyGraph
from handoff.domain.interfaces import ArtifactStoreInterface
from handoff.domain.models import ArtifactMetadata, RunCheckpoint, RunStatus
from handoff.domain.stages import STAGES, Stage


@dataclass(frozen=True)
class StatusReport:
    """Snapshot of a project's `.shared/` directory against a preset."""

    preset: str
    present: tuple[ArtifactMetadata, ...]
    missing: tuple[Stage, ...]  # Slots the preset produces that do not exist
    next_ready: tuple[str, ...]
    last_run: RunCheckpoint | None = None

    @property
    def is_complete(self) -> bool:
        return not self.missing

    @property
    def resume_hint(self) -> str:
        """One-line suggestion for the user."""
        if self.is_complete:
            return "All artifacts present; nothing to resume."
        if self.last_run and self.last_run.status == RunStatus.FAILED:
            return (
                f"Last run failed at {self.last_run.failed_stage} "
                f"({self.last_run.failed_agent}); `handoff resume` continues "
                "from there, keeping existing artifacts."
            )
        if self.last_run and self.last_run.status == RunStatus.RUNNING:
            return (
                "Last run did not finish; `handoff resume` continues from the "
                "first missing artifact."
            )
        if self.next_ready:
            return f"Next: {', '.join(self.next_ready)}."
        return "No agent is ready; check the missing inputs above."


def build_status(
    store: ArtifactStoreInterface,
    graph: DependencyGraph,
    checkpoint: RunCheckpoint | None = None,
) -> StatusReport:
    """
    Compare the store against the slots a preset produces.

    Args:
        store: Artifact store of the project
        graph: Validated graph of the preset to report against
        checkpoint: Latest run checkpoint, if any
    """
    present = tuple(store.list())
    present_slugs = {m.slug for m in present}
    produced = {a.produces for a in graph.agents.values()}
    missing = tuple(
        s for s in STAGES if s.slug in produced and s.slug not in present_slugs
    )
    scheduler = Scheduler(graph, store)
    return StatusReport(
        preset=graph.preset.name,
        present=present,
        missing=missing,
        next_ready=tuple(sorted(scheduler.next_ready())),
        last_run=checkpoint,
    )
