"""Rich console output for the handoff CLI."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from handoff.application.status import StatusReport
    from handoff.domain.models import AgentDefinition, RunResult, WorkflowPreset

# Shared console instances
console = Console()
error_console = Console(stderr=True)

_STATUS_STYLES = {
    "completed": "green",
    "skipped": "dim",
    "failed": "red",
    "blocked": "yellow",
}


def print_header(title: str, subtitle: str | None = None) -> None:
    """Print a styled header panel."""
    content = Text(title, style="bold blue")
    if subtitle:
        content.append(f"\n{subtitle}", style="dim")
    console.print(Panel(content, expand=False))


def print_error(message: str, hint: str | None = None) -> None:
    """Print formatted error message to stderr."""
    content = Text(f"ERROR: {message}", style="bold red")
    if hint:
        content.append(f"\n\nHint: {hint}", style="yellow")
    error_console.print(Panel(content, title="Error", border_style="red"))


def print_success(message: str) -> None:
    """Print success message."""
    console.print(Panel(message, title="Success", border_style="green"))


def print_failure(message: str, details: str | None = None) -> None:
    """Print failure message."""
    content = Text(message, style="bold red")
    if details:
        content.append(f"\n{details}", style="dim")
    console.print(Panel(content, title="Failed", border_style="red"))


def print_run_result(result: RunResult) -> None:
    """Per-agent outcome table."""
    table = Table(show_header=True, box=None)
    table.add_column("Agent", style="cyan")
    table.add_column("Artifact", style="magenta")
    table.add_column("Status")
    table.add_column("Attempts", justify="right")
    table.add_column("Error (summary)", style="red")

    for outcome in result.outcomes:
        style = _STATUS_STYLES.get(outcome.status.value, "")
        summary = outcome.error.split("\n")[0][:80]
        table.add_row(
            outcome.agent,
            outcome.slug,
            f"[{style}]{outcome.status.value}[/{style}]" if style else outcome.status.value,
            str(outcome.attempts) if outcome.attempts else "-",
            summary,
        )
    console.print(table)


def print_status(report: StatusReport) -> None:
    """Present/missing artifacts and the resume hint."""
    table = Table(show_header=True, box=None)
    table.add_column("File", style="cyan")
    table.add_column("Agent")
    table.add_column("Created")

    for meta in report.present:
        table.add_row(meta.stage.filename, meta.agent, meta.created_at)
    for stage in report.missing:
        table.add_row(f"[dim]{stage.filename}[/dim]", "[yellow]missing[/yellow]", "")
    console.print(table)

    if report.last_run is not None:
        run = report.last_run
        line = f"\nLast run [bold]{run.run_id[:8]}[/bold] ({run.preset}): {run.status.value}"
        if run.failed_agent:
            line += f" at {run.failed_stage} ({run.failed_agent})"
        console.print(line)
    console.print(f"[yellow]{report.resume_hint}[/yellow]")


def print_presets(presets: Iterable[WorkflowPreset]) -> None:
    table = Table(show_header=True, box=None)
    table.add_column("Preset", style="cyan")
    table.add_column("Description")
    table.add_column("Substitutions", style="magenta")
    table.add_column("Checks", style="yellow")

    for preset in presets:
        table.add_row(
            preset.name,
            preset.description,
            ", ".join(f"{o} -> {r}" for o, r in preset.substitutions),
            ", ".join(f"{s}: {c}" for s, c in preset.checks),
        )
    console.print(table)


def print_agents(agents: Iterable[AgentDefinition]) -> None:
    table = Table(show_header=True, box=None)
    table.add_column("Agent", style="cyan")
    table.add_column("Produces", style="magenta")
    table.add_column("Requires")
    table.add_column("Description", style="dim")

    for agent in agents:
        name = f"{agent.name} (optional)" if agent.optional else agent.name
        table.add_row(
            name, agent.produces, ", ".join(agent.requires) or "-", agent.description
        )
    console.print(table)
