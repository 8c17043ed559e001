"""
Agent and preset registries.

The agent registry is the static catalog of persona agents. The preset
registry only accepts presets whose dependency graph validates against
that catalog, so structural errors surface at registration time.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping

from handoff.domain.exceptions import (
    DuplicateAgentName,
    InvalidDefinition,
    UnknownAgent,
    UnknownPreset,
)
from handoff.domain.graph import DependencyGraph
from handoff.domain.models import AgentDefinition, WorkflowPreset
from handoff.domain.stages import is_stage_slug

logger = logging.getLogger(__name__)


class AgentRegistry(Mapping[str, AgentDefinition]):
    """Catalog of agent definitions keyed by unique name."""

    def __init__(self, definitions: Iterable[AgentDefinition] = ()) -> None:
        self._agents: dict[str, AgentDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def __getitem__(self, name: str) -> AgentDefinition:
        return self._agents[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._agents)

    def __len__(self) -> int:
        return len(self._agents)

    def register(self, definition: AgentDefinition) -> AgentDefinition:
        """
        Add a definition.

        Raises:
            DuplicateAgentName: If the name is already registered
        """
        if definition.name in self._agents:
            raise DuplicateAgentName(definition.name)
        self._agents[definition.name] = definition
        logger.debug("Registered agent %s -> %s", definition.name, definition.produces)
        return definition

    def resolve(self, name: str) -> AgentDefinition:
        """
        Look up a definition by name.

        Raises:
            UnknownAgent: If no agent has that name
        """
        try:
            return self._agents[name]
        except KeyError:
            raise UnknownAgent(name, sorted(self._agents)) from None

    def names(self) -> list[str]:
        return list(self._agents)

    def producers_of(self, slug: str) -> list[str]:
        """Names of every registered agent that writes `slug`."""
        return [a.name for a in self._agents.values() if a.produces == slug]

    def validate(self, definition: AgentDefinition) -> None:
        """
        Check a definition against the stage slots and this registry.

        Raises:
            InvalidDefinition: If the output is not a stage slot, or a
                required input has no producer anywhere in the registry
        """
        if not is_stage_slug(definition.produces):
            raise InvalidDefinition(
                f"Agent '{definition.name}' produces unknown slot "
                f"'{definition.produces}'"
            )
        for slug in definition.requires:
            if not is_stage_slug(slug):
                raise InvalidDefinition(
                    f"Agent '{definition.name}' requires unknown slot '{slug}'"
                )
            if not self.producers_of(slug):
                raise InvalidDefinition(
                    f"Agent '{definition.name}' requires '{slug}' but no "
                    "registered agent produces it"
                )

    def validate_all(self) -> None:
        for definition in self._agents.values():
            self.validate(definition)


class PresetRegistry:
    """Named workflow presets, each validated into a DependencyGraph."""

    def __init__(
        self, agents: AgentRegistry, presets: Iterable[WorkflowPreset] = ()
    ) -> None:
        self._agents = agents
        self._presets: dict[str, WorkflowPreset] = {}
        self._graphs: dict[str, DependencyGraph] = {}
        for preset in presets:
            self.register(preset)

    @property
    def agents(self) -> AgentRegistry:
        return self._agents

    def __contains__(self, name: object) -> bool:
        return name in self._presets

    def register(
        self,
        preset: WorkflowPreset,
        replace: bool = False,
        agents: Iterable[AgentDefinition] = (),
    ) -> DependencyGraph:
        """
        Validate and add a preset, together with any agents it brings.

        The extra agents join the agent catalog only once the preset
        validates; on error neither the preset nor its agents are kept.

        Raises:
            InvalidDefinition: Name already taken (unless replace) or the
                preset is structurally invalid
            InvalidParallelGroup: A parallel phase is not safe to fan out
            CyclicDependency: The agents depend on each other in a cycle
            UnknownAgent: The preset names an unregistered agent
            DuplicateAgentName: An extra agent reuses a registered name
        """
        if preset.name in self._presets and not replace:
            raise InvalidDefinition(f"Preset already registered: {preset.name}")

        extra = tuple(agents)
        catalog = self._agents
        if extra:
            catalog = AgentRegistry([*self._agents.values(), *extra])

        for definition in extra:
            catalog.validate(definition)
        graph = DependencyGraph.build(preset, catalog)
        for agent in graph.agents.values():
            catalog.validate(agent)

        for definition in extra:
            self._agents.register(definition)
        self._presets[preset.name] = preset
        self._graphs[preset.name] = graph
        logger.debug(
            "Registered preset %s (%d phases, %d agents)",
            preset.name,
            len(preset.phases),
            len(graph.agents),
        )
        return graph

    def resolve(self, name: str) -> WorkflowPreset:
        """
        Raises:
            UnknownPreset: If no preset has that name
        """
        try:
            return self._presets[name]
        except KeyError:
            raise UnknownPreset(name, self.names()) from None

    def graph(self, name: str) -> DependencyGraph:
        """The validated dependency graph of a preset."""
        self.resolve(name)
        return self._graphs[name]

    def names(self) -> list[str]:
        return list(self._presets)

    def derive(
        self,
        base: str,
        name: str,
        substitutions: Mapping[str, str] | None = None,
        checks: Iterable[tuple[str, str]] = (),
        description: str = "",
    ) -> WorkflowPreset:
        """
        Build (without registering) a preset from an existing one.

        Substitutions and checks are layered on top of the base preset's.
        """
        parent = self.resolve(base)
        merged = dict(parent.substitutions)
        merged.update(substitutions or {})
        return WorkflowPreset(
            name=name,
            phases=parent.phases,
            description=description or parent.description,
            substitutions=tuple(merged.items()),
            checks=parent.checks + tuple(checks),
        )
