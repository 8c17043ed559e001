"""
User-defined presets loaded from JSON files.

A preset file either lists its own phases or `extends` a registered
preset, layering substitutions and checks on top. It may also define
extra agents, which join the agent catalog only if the preset validates:

    {
      "name": "svelte-webapp",
      "extends": "webapp",
      "agents": [
        {
          "name": "svelte-architect",
          "produces": "tech-architecture",
          "requires": ["requirements", "wireframes", "ux-specification"],
          "instructions_file": "personas/svelte-architect.md"
        }
      ],
      "substitutions": {"client-tech-architect": "svelte-architect"}
    }
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema

from handoff.application.registry import PresetRegistry
from handoff.checks import NAMED_CHECKS
from handoff.domain.exceptions import ConfigurationError, InvalidDefinition
from handoff.domain.models import AgentDefinition, ExecutionMode, Phase, WorkflowPreset
from handoff.schemas import validate_preset

logger = logging.getLogger(__name__)


def agent_from_dict(data: dict[str, Any], base_dir: Path | None = None) -> AgentDefinition:
    """
    Build an AgentDefinition from its JSON form.

    `instructions_file` is read relative to `base_dir` (the preset file's
    directory) and takes precedence over inline `instructions`.

    Raises:
        ConfigurationError: If the instructions file cannot be read
    """
    instructions = data.get("instructions", "")
    if "instructions_file" in data:
        path = Path(data["instructions_file"])
        if base_dir is not None and not path.is_absolute():
            path = base_dir / path
        try:
            instructions = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read instructions for agent '{data['name']}': {e}"
            ) from e

    return AgentDefinition(
        name=data["name"],
        produces=data["produces"],
        requires=tuple(data.get("requires", ())),
        instructions=instructions,
        must_do=tuple(data.get("must_do", ())),
        must_not_do=tuple(data.get("must_not_do", ())),
        description=data.get("description", ""),
        sections=tuple(data.get("sections", ())),
        optional=data.get("optional", False),
    )


def preset_from_dict(
    data: dict[str, Any],
    registry: PresetRegistry,
    base_dir: Path | None = None,
) -> tuple[WorkflowPreset, tuple[AgentDefinition, ...]]:
    """
    Build a WorkflowPreset and the agents it defines from its JSON form.

    Nothing is registered; pass both to `PresetRegistry.register`.

    Args:
        data: Parsed preset definition
        registry: Resolves the `extends` base preset
        base_dir: Directory that relative instruction files are read from

    Raises:
        ConfigurationError: If the data does not match the preset schema
        InvalidDefinition: If a check name is unknown
        UnknownPreset: If `extends` names an unregistered preset
    """
    try:
        validate_preset(data)
    except jsonschema.ValidationError as e:
        raise ConfigurationError(f"Invalid preset definition: {e.message}") from e

    checks = tuple(
        (slug, check)
        for slug, names in data.get("checks", {}).items()
        for check in names
    )
    for _, check in checks:
        if check not in NAMED_CHECKS:
            raise InvalidDefinition(
                f"Preset '{data['name']}' uses unknown check '{check}' "
                f"(available: {', '.join(sorted(NAMED_CHECKS))})"
            )

    agents = tuple(agent_from_dict(item, base_dir) for item in data.get("agents", ()))

    if "extends" in data:
        preset = registry.derive(
            data["extends"],
            data["name"],
            substitutions=data.get("substitutions"),
            checks=checks,
            description=data.get("description", ""),
        )
        if "phases" in data:
            preset = WorkflowPreset(
                name=preset.name,
                phases=_phases(data["phases"]),
                description=preset.description,
                substitutions=preset.substitutions,
                checks=preset.checks,
            )
        return preset, agents

    preset = WorkflowPreset(
        name=data["name"],
        phases=_phases(data["phases"]),
        description=data.get("description", ""),
        substitutions=tuple(data.get("substitutions", {}).items()),
        checks=checks,
    )
    return preset, agents


def _phases(items: list[dict[str, Any]]) -> tuple[Phase, ...]:
    return tuple(
        Phase(
            name=item["name"],
            mode=ExecutionMode(item["mode"]),
            agents=tuple(item["agents"]),
        )
        for item in items
    )


def load_preset_file(path: str | Path, registry: PresetRegistry) -> WorkflowPreset:
    """
    Load, validate and register a preset file.

    Raises:
        ConfigurationError: If the file is missing or not valid JSON
        HandoffError: If the preset fails graph validation
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Preset file not found: {path}")

    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected object in {path}, got {type(data).__name__}")

    preset, agents = preset_from_dict(data, registry, base_dir=path.parent)
    registry.register(preset, agents=agents)
    logger.info("Loaded preset '%s' from %s", preset.name, path)
    return preset
