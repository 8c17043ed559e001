"""
Built-in agent catalog and workflow presets, plus user preset files.
"""

from handoff.catalog.agents import builtin_agents, load_persona
from handoff.catalog.loader import agent_from_dict, load_preset_file, preset_from_dict
from handoff.catalog.presets import (
    BUILTIN_PRESETS,
    DEFAULT_PRESET,
    SKELETON,
    default_registries,
)

__all__ = [
    "BUILTIN_PRESETS",
    "DEFAULT_PRESET",
    "SKELETON",
    "agent_from_dict",
    "builtin_agents",
    "default_registries",
    "load_persona",
    "load_preset_file",
    "preset_from_dict",
]
