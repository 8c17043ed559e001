"""
Built-in workflow presets.

All four share the eight-stage skeleton and differ only in which agent
fills the wireframe, architecture and interaction slots, plus the checks
layered onto the architecture document.
"""

from handoff.application.registry import AgentRegistry, PresetRegistry
from handoff.catalog.agents import builtin_agents
from handoff.domain.models import ExecutionMode, Phase, WorkflowPreset

SKELETON: tuple[Phase, ...] = (
    Phase(
        "discovery",
        ExecutionMode.SEQUENTIAL,
        ("interviewer", "ui-sketcher", "ux-writer"),
    ),
    Phase(
        "design",
        ExecutionMode.PARALLEL,
        ("client-tech-architect", "mermaid-designer", "interactive-designer"),
    ),
    Phase("planning", ExecutionMode.SEQUENTIAL, ("planner",)),
    Phase("verification", ExecutionMode.SEQUENTIAL, ("browser-qa",)),
)

DEFAULT_PRESET = "webapp"

BUILTIN_PRESETS: tuple[WorkflowPreset, ...] = (
    WorkflowPreset(
        name="webapp",
        phases=SKELETON,
        description="Client-side web application",
    ),
    WorkflowPreset(
        name="tauri-app",
        phases=SKELETON,
        description="Tauri desktop/mobile application",
        substitutions=(("client-tech-architect", "tauri-architect"),),
        checks=(("tech-architecture", "tauri-capabilities"),),
    ),
    WorkflowPreset(
        name="chrome-extension",
        phases=SKELETON,
        description="Chrome extension (Manifest V3)",
        substitutions=(
            ("client-tech-architect", "extension-architect"),
            ("ui-sketcher", "popup-ui-sketcher"),
        ),
        checks=(("tech-architecture", "manifest-permissions"),),
    ),
    WorkflowPreset(
        name="mobile-web",
        phases=SKELETON,
        description="Installable mobile web app (PWA)",
        substitutions=(
            ("ui-sketcher", "mobile-ui-sketcher"),
            ("interactive-designer", "mobile-interaction-designer"),
            ("client-tech-architect", "pwa-architect"),
        ),
        checks=(("tech-architecture", "pwa-manifest"),),
    ),
)


def default_registries() -> tuple[AgentRegistry, PresetRegistry]:
    """Fresh registries holding the built-in agents and presets."""
    agents = AgentRegistry(builtin_agents())
    agents.validate_all()
    return agents, PresetRegistry(agents, BUILTIN_PRESETS)
