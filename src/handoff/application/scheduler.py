"""
Scheduler: readiness of agents against the live artifact store.
"""

from handoff.domain.graph import DependencyGraph
from handoff.domain.interfaces import ArtifactStoreInterface
from handoff.domain.models import AgentDefinition, Phase


class Scheduler:
    """
    Answers "which agents can run now?" for one preset and one store.

    Readiness is recomputed from the store on every call, so repeated
    calls without store changes return the same set and a fresh scheduler
    over a partially filled store resumes where the last run stopped.
    """

    def __init__(self, graph: DependencyGraph, store: ArtifactStoreInterface):
        self._graph = graph
        self._store = store
        self._settled: set[str] = set()

    @property
    def graph(self) -> DependencyGraph:
        return self._graph

    @property
    def settled(self) -> frozenset[str]:
        return frozenset(self._settled)

    def settle(self, agent: str) -> None:
        """Treat a failed optional agent as finished for barrier purposes."""
        self._settled.add(agent)

    def present(self) -> set[str]:
        return self._store.slugs()

    def next_ready(self) -> frozenset[str]:
        """Agents whose inputs all exist, within the current phase."""
        return self._graph.next_ready(self.present(), self._settled)

    def current_phase(self) -> Phase | None:
        """Earliest phase that still has unfinished agents."""
        present = self.present()
        for phase in self._graph.phases:
            if any(
                not self._graph.is_done(n, present, self._settled)
                for n in phase.agents
            ):
                return phase
        return None

    def missing_inputs(self, agent: AgentDefinition) -> list[str]:
        return [s for s in agent.requires if not self._store.exists(s)]

    def blocked(self) -> frozenset[str]:
        """Agents that can never run because a settled agent left a gap."""
        return self._graph.unreachable(self.present(), self._settled)

    def is_complete(self) -> bool:
        return self._graph.is_complete(self.present(), self._settled)
