"""Run log emission service."""

import uuid
from datetime import UTC, datetime

from handoff.domain.interfaces import RunEventStoreInterface
from handoff.domain.run_event import RunEvent, RunEventType


class RunEventEmitter:
    """Emits run log events to a store.

    Provides convenience methods for the events of a pipeline run,
    handling ID generation and timestamps.
    """

    def __init__(
        self, event_store: RunEventStoreInterface | None, run_id: str
    ) -> None:
        self._store = event_store
        self._run_id = run_id

    @property
    def run_id(self) -> str:
        return self._run_id

    def _emit(
        self,
        event_type: RunEventType,
        agent: str | None = None,
        slug: str | None = None,
        attempt: int | None = None,
        summary: str = "",
    ) -> str:
        event = RunEvent(
            event_id=str(uuid.uuid4()),
            event_type=event_type,
            run_id=self._run_id,
            agent=agent,
            slug=slug,
            attempt=attempt,
            summary=summary[:500],
            created_at=datetime.now(UTC).isoformat(),
        )
        if self._store is None:
            return event.event_id
        return self._store.store_event(event)

    def run_start(self, preset: str) -> None:
        self._emit(RunEventType.RUN_START, summary=preset)

    def agent_skip(self, agent: str, slug: str) -> None:
        """Artifact already present; the agent is not invoked."""
        self._emit(RunEventType.AGENT_SKIP, agent=agent, slug=slug)

    def agent_start(self, agent: str, slug: str, attempt: int) -> None:
        self._emit(RunEventType.AGENT_START, agent=agent, slug=slug, attempt=attempt)

    def agent_pass(self, agent: str, slug: str, attempt: int) -> None:
        self._emit(RunEventType.AGENT_PASS, agent=agent, slug=slug, attempt=attempt)

    def agent_fail(self, agent: str, slug: str, attempt: int, feedback: str) -> None:
        self._emit(
            RunEventType.AGENT_FAIL,
            agent=agent,
            slug=slug,
            attempt=attempt,
            summary=feedback,
        )

    def run_complete(self) -> None:
        self._emit(RunEventType.RUN_COMPLETE)

    def run_fail(self, agent: str | None, summary: str) -> None:
        self._emit(RunEventType.RUN_FAIL, agent=agent, summary=summary)

    def run_abort(self) -> None:
        self._emit(RunEventType.RUN_ABORT)
