"""
Dependency graph for a workflow preset.

An edge runs from producer to consumer whenever the consumer requires the
producer's output slug. The graph is validated once, before any agent runs;
readiness is then a pure function of which slugs exist, so a run can be
resumed at any point.
"""

from collections.abc import Iterable, Mapping

from handoff.domain.exceptions import (
    CyclicDependency,
    InvalidDefinition,
    InvalidParallelGroup,
    UnknownAgent,
)
from handoff.domain.models import (
    AgentDefinition,
    ExecutionMode,
    Phase,
    WorkflowPreset,
)
from handoff.domain.stages import is_stage_slug, stage_for


class DependencyGraph:
    """
    Validated agent graph of one preset.

    Use DependencyGraph.build(); the constructor assumes validated input.
    """

    def __init__(
        self,
        preset: WorkflowPreset,
        phases: tuple[Phase, ...],
        agents: dict[str, AgentDefinition],
    ):
        self.preset = preset
        self.phases = phases
        self._agents = agents
        self._producers = {a.produces: a.name for a in agents.values()}
        self._edges: dict[str, set[str]] = {name: set() for name in agents}
        for consumer in agents.values():
            for slug in consumer.requires:
                self._edges[self._producers[slug]].add(consumer.name)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def build(
        cls, preset: WorkflowPreset, agents: Mapping[str, AgentDefinition]
    ) -> "DependencyGraph":
        """
        Resolve and validate a preset against a set of agent definitions.

        Raises:
            UnknownAgent: A phase or substitution names an unknown agent
            InvalidDefinition: Duplicate producers, missing producers,
                forward references or mismatched substitutions
            InvalidParallelGroup: A parallel phase is not safe to fan out
            CyclicDependency: Agents depend on each other in a cycle
        """
        _check_substitutions(preset, agents)
        phases = preset.resolved_phases()
        members = _resolve_members(preset, phases, agents)

        for phase in phases:
            if phase.mode == ExecutionMode.PARALLEL:
                _check_disjoint_outputs(phase, members)

        producers: dict[str, str] = {}
        for agent in members.values():
            if agent.produces in producers:
                raise InvalidDefinition(
                    f"Preset '{preset.name}': slug '{agent.produces}' is produced by "
                    f"both '{producers[agent.produces]}' and '{agent.name}'"
                )
            producers[agent.produces] = agent.name

        for agent in members.values():
            for slug in agent.requires:
                if slug not in producers:
                    raise InvalidDefinition(
                        f"Preset '{preset.name}': agent '{agent.name}' requires "
                        f"'{slug}' but no agent in the preset produces it"
                    )

        for slug, check in preset.checks:
            if slug not in producers:
                raise InvalidDefinition(
                    f"Preset '{preset.name}': check '{check}' is attached to "
                    f"'{slug}' but no agent in the preset produces it"
                )

        graph = cls(preset, phases, members)
        graph._check_acyclic()
        graph._check_phase_order()
        return graph

    def _check_acyclic(self) -> None:
        visiting: list[str] = []
        done: set[str] = set()

        def visit(node: str) -> None:
            if node in done:
                return
            if node in visiting:
                cycle = visiting[visiting.index(node) :] + [node]
                raise CyclicDependency(cycle)
            visiting.append(node)
            for successor in sorted(self._edges[node]):
                visit(successor)
            visiting.pop()
            done.add(node)

        for name in self._agents:
            visit(name)

    def _check_phase_order(self) -> None:
        available: set[str] = set()
        for phase in self.phases:
            if phase.mode == ExecutionMode.PARALLEL:
                for name in phase.agents:
                    missing = [
                        s for s in self._agents[name].requires if s not in available
                    ]
                    if missing:
                        raise InvalidParallelGroup(
                            phase.name,
                            f"'{name}' requires {', '.join(missing)} which no "
                            "earlier phase produces",
                        )
                available.update(self._agents[n].produces for n in phase.agents)
            else:
                for name in phase.agents:
                    agent = self._agents[name]
                    missing = [s for s in agent.requires if s not in available]
                    if missing:
                        raise InvalidDefinition(
                            f"Preset '{self.preset.name}': agent '{name}' in phase "
                            f"'{phase.name}' requires {', '.join(missing)} produced "
                            "by a later agent"
                        )
                    available.add(agent.produces)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def agents(self) -> dict[str, AgentDefinition]:
        return dict(self._agents)

    def agent(self, name: str) -> AgentDefinition:
        try:
            return self._agents[name]
        except KeyError:
            raise UnknownAgent(name, sorted(self._agents)) from None

    def producer_of(self, slug: str) -> str | None:
        return self._producers.get(slug)

    def consumers_of(self, name: str) -> set[str]:
        """Agents that directly require `name`'s output."""
        return set(self._edges.get(name, ()))

    def edges(self) -> list[tuple[str, str]]:
        """(producer, consumer) pairs."""
        return sorted((p, c) for p, cs in self._edges.items() for c in cs)

    def topological_order(self) -> list[str]:
        """Agents ordered by stage number within a valid dependency order."""
        indegree = {name: 0 for name in self._agents}
        for consumers in self._edges.values():
            for c in consumers:
                indegree[c] += 1

        def key(name: str) -> int:
            return stage_for(self._agents[name].produces).number

        ready = sorted((n for n, d in indegree.items() if d == 0), key=key)
        order: list[str] = []
        while ready:
            node = ready.pop(0)
            order.append(node)
            for c in self._edges[node]:
                indegree[c] -= 1
                if indegree[c] == 0:
                    ready.append(c)
            ready.sort(key=key)
        return order

    # -------------------------------------------------------------------------
    # Readiness
    # -------------------------------------------------------------------------

    def is_done(
        self, name: str, present: Iterable[str], settled: Iterable[str] = ()
    ) -> bool:
        """An agent is done when its artifact exists or its failure is settled."""
        return self._agents[name].produces in set(present) or name in set(settled)

    def next_ready(
        self, present: Iterable[str], settled: Iterable[str] = ()
    ) -> frozenset[str]:
        """
        Agents eligible to run now.

        Only the earliest phase with unfinished agents is admitted. A
        sequential phase yields at most its first unfinished agent; a
        parallel phase yields every unfinished member whose inputs exist.

        Args:
            present: Slugs that exist in the artifact store
            settled: Optional agents whose failure was accepted this run
        """
        present = set(present)
        settled = set(settled)
        for phase in self.phases:
            pending = [
                n for n in phase.agents if not self.is_done(n, present, settled)
            ]
            if not pending:
                continue
            if phase.mode == ExecutionMode.SEQUENTIAL:
                candidates = pending[:1]
            else:
                candidates = pending
            return frozenset(
                n
                for n in candidates
                if all(s in present for s in self._agents[n].requires)
            )
        return frozenset()

    def unreachable(
        self, present: Iterable[str], settled: Iterable[str]
    ) -> frozenset[str]:
        """Unfinished agents that need an artifact a settled agent never wrote."""
        present = set(present)
        settled = set(settled)
        lost = {self._agents[n].produces for n in settled} - present
        result: set[str] = set()
        changed = True
        while changed:
            changed = False
            for agent in self._agents.values():
                if agent.name in result or agent.produces in present:
                    continue
                if agent.name in settled:
                    continue
                if any(s in lost for s in agent.requires):
                    result.add(agent.name)
                    lost.add(agent.produces)
                    changed = True
        return frozenset(result)

    def is_complete(self, present: Iterable[str], settled: Iterable[str] = ()) -> bool:
        present = set(present)
        settled = set(settled)
        return all(self.is_done(n, present, settled) for n in self._agents)


def _check_substitutions(
    preset: WorkflowPreset, agents: Mapping[str, AgentDefinition]
) -> None:
    for original, replacement in preset.substitutions:
        for name in (original, replacement):
            if name not in agents:
                raise UnknownAgent(name, sorted(agents))
        if agents[original].produces != agents[replacement].produces:
            raise InvalidDefinition(
                f"Preset '{preset.name}': '{replacement}' produces "
                f"'{agents[replacement].produces}' and cannot replace '{original}' "
                f"which produces '{agents[original].produces}'"
            )


def _resolve_members(
    preset: WorkflowPreset,
    phases: tuple[Phase, ...],
    agents: Mapping[str, AgentDefinition],
) -> dict[str, AgentDefinition]:
    if not phases:
        raise InvalidDefinition(f"Preset '{preset.name}' has no phases")
    members: dict[str, AgentDefinition] = {}
    for phase in phases:
        if not phase.agents:
            raise InvalidDefinition(
                f"Preset '{preset.name}': phase '{phase.name}' has no agents"
            )
        for name in phase.agents:
            if name not in agents:
                raise UnknownAgent(name, sorted(agents))
            if name in members:
                raise InvalidDefinition(
                    f"Preset '{preset.name}': agent '{name}' appears more than once"
                )
            agent = agents[name]
            if not is_stage_slug(agent.produces):
                raise InvalidDefinition(
                    f"Agent '{name}' produces unknown slot '{agent.produces}'"
                )
            members[name] = agent
    return members


def _check_disjoint_outputs(
    phase: Phase, members: Mapping[str, AgentDefinition]
) -> None:
    seen: dict[str, str] = {}
    for name in phase.agents:
        slug = members[name].produces
        if slug in seen:
            raise InvalidParallelGroup(
                phase.name,
                f"'{seen[slug]}' and '{name}' both write '{slug}'",
            )
        seen[slug] = name
