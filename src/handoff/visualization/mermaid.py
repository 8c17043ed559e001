"""
Mermaid export of a preset's dependency graph.

Phases become subgraphs (labelled with their execution mode); edges run
from producer to consumer. Artifact status can be overlaid so the diagram
doubles as a progress view of a project.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from handoff.domain.stages import stage_for

if TYPE_CHECKING:
    from handoff.domain.graph import DependencyGraph


def _node_id(name: str) -> str:
    return name.replace("-", "_")


def export_preset_mermaid(
    graph: DependencyGraph,
    present: Iterable[str] = (),
    direction: str = "LR",
) -> str:
    """Render a validated graph as a Mermaid flowchart.

    Args:
        graph: Dependency graph of the preset.
        present: Slugs that already exist; their producers are highlighted.
        direction: Mermaid flow direction (LR, TB, ...).

    Returns:
        Mermaid source text.

    Example:
        >>> from handoff.catalog import default_registries
        >>> _, presets = default_registries()
        >>> print(export_preset_mermaid(presets.graph("webapp")))
    """
    present = set(present)
    lines = [f"flowchart {direction}"]

    for phase in graph.phases:
        lines.append(
            f'    subgraph {_node_id(phase.name)}["{phase.name} ({phase.mode.value})"]'
        )
        for name in phase.agents:
            filename = stage_for(graph.agent(name).produces).filename
            lines.append(f'        {_node_id(name)}["{name}<br/>{filename}"]')
        lines.append("    end")

    for producer, consumer in sorted(graph.edges()):
        lines.append(f"    {_node_id(producer)} --> {_node_id(consumer)}")

    done = [n for n, a in graph.agents.items() if a.produces in present]
    if done:
        lines.append("    classDef done fill:#d4edda,stroke:#28a745")
        lines.append(f"    class {','.join(_node_id(n) for n in sorted(done))} done")

    return "\n".join(lines) + "\n"


def write_preset_mermaid(
    graph: DependencyGraph,
    output_path: str | Path,
    present: Iterable[str] = (),
) -> Path:
    """Write the Mermaid diagram to a `.mmd` (or fenced `.md`) file."""
    output_path = Path(output_path)
    text = export_preset_mermaid(graph, present)
    if output_path.suffix == ".md":
        text = f"```mermaid\n{text}```\n"
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(text, encoding="utf-8")
    return output_path
