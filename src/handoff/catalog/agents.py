"""
Built-in persona agents.

Each agent's instruction payload is a markdown file under `personas/`,
shipped as package data and passed to the executor verbatim.
"""

from importlib.resources import files

from handoff.domain.models import AgentDefinition

_REQUIREMENTS = ("requirements",)
_DESIGN_INPUTS = ("requirements", "wireframes", "ux-specification")

_WIREFRAME_RULES = (
    "Sketch every screen named in the requirements",
    "Put each sketch in a fenced code block",
)
_ARCHITECTURE_RULES = (
    "Trace every decision back to a requirement",
    "Name components exactly as the wireframes do",
)
_NO_CODE = ("Write production code",)

# name -> (produces, requires, sections, must_do, must_not_do, description)
_CATALOG: dict[str, tuple] = {
    "interviewer": (
        "requirements",
        (),
        ("Problem", "Users", "Features", "Out of Scope", "Open Questions"),
        ("Ask one question at a time", "Record unanswered questions"),
        ("Propose a technical solution",),
        "Interviews the stakeholder and writes the requirements",
    ),
    "ui-sketcher": (
        "wireframes",
        _REQUIREMENTS,
        ("Screens", "Components", "Navigation"),
        _WIREFRAME_RULES,
        ("Choose colours or typography",),
        "ASCII wireframes for every screen",
    ),
    "popup-ui-sketcher": (
        "wireframes",
        _REQUIREMENTS,
        ("Popup", "Options Page", "Components", "Navigation"),
        _WIREFRAME_RULES,
        ("Design surfaces larger than the popup allows",),
        "Wireframes for extension popup and options surfaces",
    ),
    "mobile-ui-sketcher": (
        "wireframes",
        _REQUIREMENTS,
        ("Screens", "Components", "Navigation"),
        _WIREFRAME_RULES + ("Design for a portrait viewport first",),
        ("Rely on hover interactions",),
        "Mobile-first wireframes",
    ),
    "ux-writer": (
        "ux-specification",
        ("requirements", "wireframes"),
        ("Information Architecture", "Interactions", "Copy", "Accessibility"),
        ("Write the exact interface copy", "Cover empty and error states"),
        ("Change the screen layout",),
        "UX specification and interface copy",
    ),
    "client-tech-architect": (
        "tech-architecture",
        _DESIGN_INPUTS,
        ("Stack", "Components", "State", "Data Model"),
        _ARCHITECTURE_RULES,
        _NO_CODE,
        "Client-side web application architecture",
    ),
    "tauri-architect": (
        "tech-architecture",
        _DESIGN_INPUTS,
        ("Stack", "Commands", "State", "Data Model", "Capabilities"),
        _ARCHITECTURE_RULES + ("List every capability the frontend needs",),
        _NO_CODE,
        "Tauri desktop/mobile architecture",
    ),
    "extension-architect": (
        "tech-architecture",
        _DESIGN_INPUTS,
        ("Stack", "Components", "Messaging", "State", "Permissions"),
        _ARCHITECTURE_RULES + ("Declare the manifest permission list",),
        _NO_CODE + ("Request permissions no feature needs",),
        "Browser extension (Manifest V3) architecture",
    ),
    "pwa-architect": (
        "tech-architecture",
        _DESIGN_INPUTS,
        ("Stack", "Components", "State", "Web App Manifest", "Offline"),
        _ARCHITECTURE_RULES + ("Specify the manifest icon set",),
        _NO_CODE,
        "Installable mobile web app architecture",
    ),
    "mermaid-designer": (
        "flow-diagrams",
        _DESIGN_INPUTS,
        ("User Flows", "Sequences"),
        ("Use fenced mermaid blocks",),
        ("Invent screens that are not in the wireframes",),
        "Mermaid user-flow and sequence diagrams",
    ),
    "interactive-designer": (
        "animations",
        ("wireframes", "ux-specification"),
        ("Transitions", "Micro-interactions", "Reduced Motion"),
        ("Give duration and easing for every animation",),
        ("Animate purely for decoration",),
        "Motion and micro-interaction specification",
    ),
    "mobile-interaction-designer": (
        "animations",
        ("wireframes", "ux-specification"),
        ("Gestures", "Transitions", "Reduced Motion"),
        ("Give duration and easing for every animation",),
        ("Depend on gestures without a visible alternative",),
        "Touch gestures and mobile motion specification",
    ),
    "planner": (
        "roadmap",
        (
            "requirements",
            "ux-specification",
            "tech-architecture",
            "flow-diagrams",
            "animations",
        ),
        ("Milestones", "Tasks", "Risks"),
        ("Reference earlier documents by their names",),
        ("Add features that are not in the requirements",),
        "Milestone roadmap and task breakdown",
    ),
    "browser-qa": (
        "qa-report",
        ("requirements", "ux-specification", "roadmap"),
        ("Summary", "Passed", "Failed", "Not Tested"),
        ("Give reproduction steps for every failure",),
        ("Fix the defects you find",),
        "Browser-based verification report",
    ),
}


def load_persona(name: str) -> str:
    """Instruction payload for a built-in agent."""
    return files("handoff.catalog").joinpath("personas", f"{name}.md").read_text(
        encoding="utf-8"
    )


def builtin_agents() -> tuple[AgentDefinition, ...]:
    """All built-in agent definitions, in catalog order."""
    agents = []
    for name, entry in _CATALOG.items():
        produces, requires, sections, must_do, must_not_do, description = entry
        agents.append(
            AgentDefinition(
                name=name,
                produces=produces,
                requires=requires,
                instructions=load_persona(name),
                must_do=must_do,
                must_not_do=must_not_do,
                description=description,
                sections=sections,
            )
        )
    return tuple(agents)
