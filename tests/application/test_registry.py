"""Tests for the agent and preset registries."""

import dataclasses

import pytest

from handoff.application.registry import AgentRegistry, PresetRegistry
from handoff.catalog import SKELETON
from handoff.domain.exceptions import (
    DuplicateAgentName,
    InvalidDefinition,
    UnknownAgent,
    UnknownPreset,
)
from handoff.domain.models import AgentDefinition, WorkflowPreset


class TestAgentRegistry:
    def test_register_and_resolve(self):
        registry = AgentRegistry()
        definition = AgentDefinition("interviewer", "requirements")
        registry.register(definition)

        assert registry.resolve("interviewer") is definition
        assert "interviewer" in registry
        assert len(registry) == 1
        assert registry.names() == ["interviewer"]

    def test_duplicate_name_rejected(self, agent_registry):
        with pytest.raises(DuplicateAgentName):
            agent_registry.register(AgentDefinition("planner", "roadmap"))

    def test_unknown_agent(self, agent_registry):
        with pytest.raises(UnknownAgent, match="ghostwriter"):
            agent_registry.resolve("ghostwriter")

    def test_output_must_be_stage_slot(self, agent_registry):
        with pytest.raises(InvalidDefinition, match="unknown slot"):
            agent_registry.validate(AgentDefinition("deployer", "deployment"))

    def test_required_input_needs_a_producer(self):
        registry = AgentRegistry([AgentDefinition("planner", "roadmap")])
        orphan = AgentDefinition("qa", "qa-report", requires=("requirements",))
        with pytest.raises(InvalidDefinition, match="no registered agent produces"):
            registry.validate(orphan)

    def test_producers_of(self, agent_registry):
        assert set(agent_registry.producers_of("wireframes")) == {
            "ui-sketcher",
            "popup-ui-sketcher",
            "mobile-ui-sketcher",
        }


class TestPresetRegistry:
    def test_builtin_presets(self, preset_registry):
        assert preset_registry.names() == [
            "webapp",
            "tauri-app",
            "chrome-extension",
            "mobile-web",
        ]

    def test_unknown_preset(self, preset_registry):
        with pytest.raises(UnknownPreset, match="available: webapp"):
            preset_registry.graph("desktop")

    def test_duplicate_preset_name(self, preset_registry):
        with pytest.raises(InvalidDefinition, match="already registered"):
            preset_registry.register(WorkflowPreset("webapp", SKELETON))

    def test_replace_existing_preset(self, preset_registry):
        replacement = WorkflowPreset("webapp", SKELETON, description="mine")
        preset_registry.register(replacement, replace=True)
        assert preset_registry.resolve("webapp").description == "mine"

    def test_derive_layers_substitutions(self, preset_registry):
        derived = preset_registry.derive(
            "mobile-web",
            "mobile-web-lite",
            substitutions={"interactive-designer": "interactive-designer"},
            checks=[("tech-architecture", "non-empty")],
        )
        assert derived.substitute("ui-sketcher") == "mobile-ui-sketcher"
        assert derived.substitute("interactive-designer") == "interactive-designer"
        assert derived.checks_for("tech-architecture") == (
            "pwa-manifest",
            "non-empty",
        )
        assert "mobile-web-lite" not in preset_registry

        graph = preset_registry.register(derived)
        assert graph.producer_of("animations") == "interactive-designer"

    def test_invalid_preset_not_registered(self, agent_registry):
        registry = PresetRegistry(agent_registry)
        broken = dataclasses.replace(
            WorkflowPreset("broken", SKELETON),
            substitutions=(("ui-sketcher", "ux-writer"),),
        )
        with pytest.raises(InvalidDefinition):
            registry.register(broken)
        assert registry.names() == []
