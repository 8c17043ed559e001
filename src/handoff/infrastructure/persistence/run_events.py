"""Run log store implementations."""

import json
import threading
from pathlib import Path
from typing import Any

from handoff.domain.interfaces import RunEventStoreInterface
from handoff.domain.run_event import RunEvent, RunEventType


class InMemoryRunEventStore(RunEventStoreInterface):
    """In-memory implementation for testing."""

    def __init__(self) -> None:
        self._events: list[RunEvent] = []
        self._lock = threading.Lock()

    def store_event(self, event: RunEvent) -> str:
        with self._lock:
            self._events.append(event)
        return event.event_id

    def get_events(
        self,
        run_id: str,
        event_type: RunEventType | None = None,
        agent: str | None = None,
    ) -> list[RunEvent]:
        return [
            e
            for e in self._events
            if e.run_id == run_id
            and (event_type is None or e.event_type == event_type)
            and (agent is None or e.agent == agent)
        ]


class FilesystemRunEventStore(RunEventStoreInterface):
    """Filesystem implementation storing one JSONL file per run."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = Path(base_path)
        self.events_dir = self.base_path / "events"
        self._lock = threading.Lock()

    def _get_run_file(self, run_id: str) -> Path:
        return self.events_dir / f"{run_id}.jsonl"

    def store_event(self, event: RunEvent) -> str:
        path = self._get_run_file(event.run_id)
        with self._lock:
            self.events_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(json.dumps(self._event_to_dict(event)) + "\n")
        return event.event_id

    def get_events(
        self,
        run_id: str,
        event_type: RunEventType | None = None,
        agent: str | None = None,
    ) -> list[RunEvent]:
        path = self._get_run_file(run_id)
        if not path.exists():
            return []
        events: list[RunEvent] = []
        with open(path, encoding="utf-8") as f:
            for line in f:
                if not line.strip():
                    continue
                event = self._dict_to_event(json.loads(line))
                if event_type and event.event_type != event_type:
                    continue
                if agent and event.agent != agent:
                    continue
                events.append(event)
        return events

    def _event_to_dict(self, event: RunEvent) -> dict[str, Any]:
        """Serialize event to dict."""
        return {
            "event_id": event.event_id,
            "event_type": event.event_type.value,
            "run_id": event.run_id,
            "agent": event.agent,
            "slug": event.slug,
            "attempt": event.attempt,
            "summary": event.summary,
            "created_at": event.created_at,
        }

    def _dict_to_event(self, data: dict[str, Any]) -> RunEvent:
        """Deserialize dict to event."""
        return RunEvent(
            event_id=data["event_id"],
            event_type=RunEventType(data["event_type"]),
            run_id=data["run_id"],
            agent=data.get("agent"),
            slug=data.get("slug"),
            attempt=data.get("attempt"),
            summary=data.get("summary", ""),
            created_at=data.get("created_at", ""),
        )
