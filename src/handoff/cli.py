"""
handoff command-line interface.

Usage:
    handoff run webapp ./my-project --command "my-agent --print"
    handoff status ./my-project
    handoff resume ./my-project
    handoff presets
    handoff agents --preset chrome-extension
    handoff graph mobile-web --output flows.md

Exit codes:
    0   every agent of the preset produced its artifact
    1   an agent failed after its retries (named in the output)
    2   validation or configuration error (nothing was run)
    130 run aborted (Ctrl-C / SIGTERM); written artifacts are kept
"""

from __future__ import annotations

import logging
import signal
import sys
import threading
from collections.abc import Callable
from functools import wraps
from pathlib import Path
from typing import Any

import click

from handoff import __version__
from handoff.application import (
    PipelineRunner,
    PresetRegistry,
    ResumeService,
    build_status,
)
from handoff.catalog import DEFAULT_PRESET, default_registries, load_preset_file
from handoff.config import RunConfig, load_run_config
from handoff.console import (
    console,
    print_agents,
    print_error,
    print_failure,
    print_header,
    print_presets,
    print_run_result,
    print_status,
    print_success,
)
from handoff.domain.exceptions import HandoffError
from handoff.domain.graph import DependencyGraph
from handoff.domain.models import RunResult, RunStatus
from handoff.infrastructure import (
    ExecutorRegistry,
    FilesystemArtifactStore,
    FilesystemCheckpointStore,
    FilesystemRunEventStore,
)
from handoff.infrastructure.persistence import state_dir
from handoff.logging_setup import setup_logging
from handoff.visualization import export_preset_mermaid, write_preset_mermaid

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2
EXIT_ABORTED = 130

logger = logging.getLogger(__name__)


def run_options[F: Callable[..., Any]](func: F) -> F:
    """
    Decorator adding the options shared by `run` and `resume`.

    Options added:
        --executor: Executor name (command, openai, mock or an entry point)
        --command: Command line for the command executor
        --model: Model for the openai executor
        --max-attempts: Executor invocations per agent
        --max-workers: Thread pool size for parallel phases
        --preset-file: Extra preset JSON files
        --log-file: Path to log file
        -v/--verbose: Enable verbose logging
    """

    @click.option("--executor", default=None, help="Executor name (default: command)")
    @click.option(
        "--command",
        "agent_command",
        default=None,
        help="Command line the command executor runs per agent",
    )
    @click.option("--model", default=None, help="Model for the openai executor")
    @click.option(
        "--max-attempts",
        default=None,
        type=click.IntRange(min=1),
        help="Executor invocations per agent (default: 3)",
    )
    @click.option(
        "--max-workers",
        default=None,
        type=click.IntRange(min=1),
        help="Concurrent agents in parallel phases (default: 4)",
    )
    @click.option(
        "--preset-file",
        "preset_files",
        multiple=True,
        type=click.Path(exists=True, dir_okay=False),
        help="Additional preset JSON file (repeatable)",
    )
    @click.option(
        "--log-file",
        default=None,
        type=click.Path(),
        help="Path to log file (default: .shared/.handoff/handoff.log)",
    )
    @click.option(
        "-v",
        "--verbose",
        is_flag=True,
        help="Enable verbose (DEBUG) logging to console",
    )
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


# =============================================================================
# HELPERS
# =============================================================================


def _exit_invalid(error: Exception, hint: str | None = None) -> None:
    logger.error("%s", error)
    print_error(str(error), hint)
    sys.exit(EXIT_INVALID)


def _load_presets(config: RunConfig, extra_files: tuple[str, ...] = ()) -> PresetRegistry:
    _, presets = default_registries()
    for path in (*config.preset_files, *extra_files):
        load_preset_file(path, presets)
    return presets


def _resolve_config(project: Path, **overrides: Any) -> RunConfig:
    config = load_run_config(project)
    executor_config = dict(config.executor_config)
    command = overrides.pop("agent_command", None)
    model = overrides.pop("model", None)
    if command is not None:
        executor_config["command"] = command
    if model is not None:
        executor_config["model"] = model
    return config.with_overrides(executor_config=executor_config, **overrides)


def _execute(
    graph: DependencyGraph,
    project: Path,
    config: RunConfig,
    clean: bool = False,
) -> RunResult:
    """Build the runner for a project and drive it."""
    try:
        executor = ExecutorRegistry.create(config.executor, **config.executor_config)
    except KeyError as e:
        _exit_invalid(HandoffError(e.args[0]))
    except TypeError as e:
        _exit_invalid(
            HandoffError(f"Invalid config for executor '{config.executor}': {e}")
        )

    base = state_dir(project)
    runner = PipelineRunner(
        graph=graph,
        store=FilesystemArtifactStore(project),
        executor=executor,
        config=config,
        event_store=FilesystemRunEventStore(base),
        checkpoint_store=FilesystemCheckpointStore(base),
        project_dir=project,
    )

    print_header(
        f"handoff: {graph.preset.name}",
        f"{project}  |  executor: {config.executor}  |  run: {runner.run_id[:8]}",
    )
    if threading.current_thread() is not threading.main_thread():
        return runner.run(clean=clean)

    previous = signal.signal(signal.SIGTERM, lambda *_: runner.abort())
    try:
        return runner.run(clean=clean)
    finally:
        signal.signal(signal.SIGTERM, previous)


def _report(result: RunResult, project: Path) -> None:
    """Print the outcome and exit with the matching code."""
    print_run_result(result)
    if result.status == RunStatus.COMPLETED:
        print_success(
            f"Preset '{result.preset}' completed: {len(result.executed)} run, "
            f"{len(result.skipped)} skipped"
        )
        sys.exit(EXIT_OK)
    if result.status == RunStatus.ABORTED:
        print_failure(
            "Run aborted; artifacts written so far are kept.",
            f"Continue with: handoff resume {project}",
        )
        sys.exit(EXIT_ABORTED)

    stage = result.failed_stage.filename if result.failed_stage else "?"
    print_failure(
        f"Agent '{result.failed_agent}' failed at {stage}",
        f"{result.error}\n\nFix the cause and continue with: handoff resume {project}",
    )
    sys.exit(EXIT_FAILED)


def _setup(project: Path | None, log_file: str | None, verbose: bool) -> None:
    if log_file is None and project is not None:
        log_file = str(state_dir(project) / "handoff.log")
    setup_logging(log_file=log_file, verbose=verbose)


# =============================================================================
# COMMANDS
# =============================================================================


@click.group()
@click.version_option(__version__, prog_name="handoff")
def main() -> None:
    """Run persona agent pipelines over a project's .shared/ directory."""


@main.command()
@click.argument("preset")
@click.argument(
    "project_dir", type=click.Path(file_okay=False, path_type=Path), default="."
)
@click.option(
    "--clean",
    is_flag=True,
    help="Delete existing artifacts first instead of resuming from them",
)
@run_options
def run(
    preset: str,
    project_dir: Path,
    clean: bool,
    executor: str | None,
    agent_command: str | None,
    model: str | None,
    max_attempts: int | None,
    max_workers: int | None,
    preset_files: tuple[str, ...],
    log_file: str | None,
    verbose: bool,
) -> None:
    """Run PRESET against PROJECT_DIR, skipping artifacts that already exist."""
    project = project_dir.resolve()
    project.mkdir(parents=True, exist_ok=True)
    _setup(project, log_file, verbose)

    try:
        config = _resolve_config(
            project,
            executor=executor,
            agent_command=agent_command,
            model=model,
            max_attempts=max_attempts,
            max_workers=max_workers,
        )
        graph = _load_presets(config, preset_files).graph(preset)
        result = _execute(graph, project, config, clean=clean)
    except HandoffError as e:
        _exit_invalid(e, "Run `handoff presets` and `handoff agents` to inspect definitions.")
    _report(result, project)


@main.command()
@click.argument(
    "project_dir", type=click.Path(file_okay=False, path_type=Path), default="."
)
@click.option("--force", is_flag=True, help="Resume even if the preset changed")
@run_options
def resume(
    project_dir: Path,
    force: bool,
    executor: str | None,
    agent_command: str | None,
    model: str | None,
    max_attempts: int | None,
    max_workers: int | None,
    preset_files: tuple[str, ...],
    log_file: str | None,
    verbose: bool,
) -> None:
    """Continue the last run of PROJECT_DIR from its first missing artifact."""
    project = project_dir.resolve()
    _setup(project, log_file, verbose)

    try:
        config = _resolve_config(
            project,
            executor=executor,
            agent_command=agent_command,
            model=model,
            max_attempts=max_attempts,
            max_workers=max_workers,
        )
        presets = _load_presets(config, preset_files)
        service = ResumeService(presets, FilesystemCheckpointStore(state_dir(project)))
        graph = service.prepare(force=force)
        result = _execute(graph, project, config)
    except HandoffError as e:
        _exit_invalid(e, "Use --force to resume against a changed preset.")
    _report(result, project)


@main.command()
@click.argument(
    "project_dir", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.option("--preset", default=None, help="Preset to compare against")
def status(project_dir: Path, preset: str | None) -> None:
    """Show which artifacts of PROJECT_DIR exist and what runs next."""
    project = project_dir.resolve()
    try:
        config = load_run_config(project)
        presets = _load_presets(config)
        checkpoint = FilesystemCheckpointStore(state_dir(project)).load()
        name = (
            preset
            or (checkpoint.preset if checkpoint else None)
            or config.preset
            or DEFAULT_PRESET
        )
        report = build_status(
            FilesystemArtifactStore(project), presets.graph(name), checkpoint
        )
    except HandoffError as e:
        _exit_invalid(e)

    print_header(f"handoff status: {report.preset}", str(project))
    print_status(report)


@main.command()
def presets() -> None:
    """List the available presets."""
    try:
        registry = _load_presets(load_run_config(Path.cwd()))
    except HandoffError as e:
        _exit_invalid(e)
    print_presets(registry.resolve(n) for n in registry.names())


@main.command()
@click.option("--preset", default=None, help="Only agents run by this preset")
def agents(preset: str | None) -> None:
    """List the available agents."""
    try:
        registry = _load_presets(load_run_config(Path.cwd()))
        if preset:
            graph = registry.graph(preset)
            definitions = [graph.agent(n) for n in graph.topological_order()]
        else:
            definitions = list(registry.agents.values())
    except HandoffError as e:
        _exit_invalid(e)
    print_agents(definitions)


@main.command()
@click.argument("preset")
@click.option(
    "--project",
    "project_dir",
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Highlight agents whose artifacts exist in this project",
)
@click.option(
    "--output",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write to a .mmd or .md file instead of stdout",
)
def graph(preset: str, project_dir: Path | None, output: Path | None) -> None:
    """Print the dependency graph of PRESET as a Mermaid flowchart."""
    try:
        dependency_graph = _load_presets(load_run_config(Path.cwd())).graph(preset)
    except HandoffError as e:
        _exit_invalid(e)

    present: set[str] = set()
    if project_dir is not None:
        present = FilesystemArtifactStore(project_dir.resolve()).slugs()

    if output is not None:
        path = write_preset_mermaid(dependency_graph, output, present)
        console.print(f"Wrote {path}")
    else:
        click.echo(export_preset_mermaid(dependency_graph, present), nl=False)


if __name__ == "__main__":
    main()
