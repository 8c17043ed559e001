"""
Mock executor for testing without an LLM.

Returns scripted responses per agent, in sequence.
"""

import threading
from collections.abc import Mapping, Sequence

from handoff.domain.interfaces import AgentExecutorInterface
from handoff.domain.prompts import AgentRequest


def stub_document(request: AgentRequest) -> str:
    """Minimal deliverable containing every required section heading."""
    agent = request.agent
    lines = [f"# {agent.name}", ""]
    for section in agent.sections:
        lines.extend([f"## {section}", "", f"- Draft {section.lower()}", ""])
    if not agent.sections:
        lines.extend([f"Deliverable for {agent.produces}.", ""])
    return "\n".join(lines)


class MockExecutor(AgentExecutorInterface):
    """
    Returns predefined responses for testing.

    Scripted items that are exceptions are raised instead of returned.
    Agents without a script (or whose script is used up) get a stub
    document with their required sections.
    """

    def __init__(
        self,
        responses: Mapping[str, Sequence[str | BaseException]] | None = None,
    ):
        """
        Args:
            responses: Agent name -> responses to return in sequence
        """
        self._responses = {k: list(v) for k, v in (responses or {}).items()}
        self._lock = threading.Lock()
        self.requests: list[AgentRequest] = []

    def execute(self, request: AgentRequest) -> str:
        """Return (or raise) the next scripted response for the agent."""
        name = request.agent.name
        with self._lock:
            self.requests.append(request)
            script = self._responses.get(name)
            item = script.pop(0) if script else None

        if isinstance(item, BaseException):
            raise item
        if item is None:
            return stub_document(request)
        return item

    @property
    def calls(self) -> list[str]:
        """Agent names in invocation order."""
        return [r.agent.name for r in self.requests]

    def call_count(self, agent: str | None = None) -> int:
        if agent is None:
            return len(self.requests)
        return sum(1 for r in self.requests if r.agent.name == agent)
