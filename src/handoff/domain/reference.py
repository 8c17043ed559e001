"""
Content-addressed preset reference.

A preset reference changes whenever the structure that drives scheduling
changes (phases, modes, substitutions, checks, agent inputs/outputs). It
is stored with each run checkpoint so `resume` can detect that the
pipeline it is about to continue is no longer the one that started.
"""

import hashlib
import json
from collections.abc import Mapping
from typing import Any

from handoff.domain.models import AgentDefinition, WorkflowPreset


def preset_to_dict(preset: WorkflowPreset) -> dict[str, Any]:
    """Serialize a preset to its JSON file form."""
    data: dict[str, Any] = {
        "name": preset.name,
        "description": preset.description,
        "phases": [
            {"name": p.name, "mode": p.mode.value, "agents": list(p.agents)}
            for p in preset.phases
        ],
    }
    if preset.substitutions:
        data["substitutions"] = dict(preset.substitutions)
    if preset.checks:
        checks: dict[str, list[str]] = {}
        for slug, name in preset.checks:
            checks.setdefault(slug, []).append(name)
        data["checks"] = checks
    return data


def compute_preset_ref(
    preset: WorkflowPreset, agents: Mapping[str, AgentDefinition]
) -> str:
    """
    SHA-256 over the canonical JSON of the resolved preset.

    Args:
        preset: The preset to fingerprint
        agents: Definitions of (at least) every agent the preset runs

    Returns:
        Hex-encoded SHA-256 hash string
    """
    structure = {
        "phases": [
            {"name": p.name, "mode": p.mode.value, "agents": list(p.agents)}
            for p in preset.resolved_phases()
        ],
        "agents": {
            name: {
                "requires": list(agents[name].requires),
                "produces": agents[name].produces,
                "optional": agents[name].optional,
            }
            for name in preset.agent_names()
            if name in agents
        },
        "checks": sorted([list(c) for c in preset.checks]),
    }
    canonical = json.dumps(structure, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
