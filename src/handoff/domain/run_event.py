"""Run log models."""

from dataclasses import dataclass
from enum import Enum


class RunEventType(str, Enum):
    """Types of run log events."""

    RUN_START = "RUN_START"
    AGENT_SKIP = "AGENT_SKIP"
    AGENT_START = "AGENT_START"
    AGENT_PASS = "AGENT_PASS"
    AGENT_FAIL = "AGENT_FAIL"
    RUN_COMPLETE = "RUN_COMPLETE"
    RUN_FAIL = "RUN_FAIL"
    RUN_ABORT = "RUN_ABORT"


@dataclass(frozen=True)
class RunEvent:
    """Single entry of the run log (agent start/end/result)."""

    event_id: str
    event_type: RunEventType
    run_id: str
    agent: str | None = None
    slug: str | None = None
    attempt: int | None = None
    summary: str = ""
    created_at: str = ""  # ISO 8601
