"""
PipelineRunner: drives a preset to completion or reports the first failure.

Run lifecycle: PENDING -> RUNNING -> {COMPLETED | FAILED | ABORTED}.

Each ready agent is invoked through the external executor with its persona
payload plus the content of its required inputs. Output that passes the
structural and preset checks is written to the agent's slot; failures are
retried with exponential backoff up to `max_attempts` invocations.
Parallel phases fan out on a thread pool and join before the next phase.
"""

import logging
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import UTC, datetime
from pathlib import Path

from handoff.application.run_event_emitter import RunEventEmitter
from handoff.application.scheduler import Scheduler
from handoff.checks import NonEmptyCheck, RequiredSectionsCheck, build_check
from handoff.config import RunConfig
from handoff.domain.exceptions import (
    DuplicateArtifact,
    ExecutorFailure,
    MissingRequiredInput,
)
from handoff.domain.graph import DependencyGraph
from handoff.domain.interfaces import (
    AgentExecutorInterface,
    ArtifactCheckInterface,
    ArtifactStoreInterface,
    CheckpointStoreInterface,
    RunEventStoreInterface,
)
from handoff.domain.models import (
    AgentDefinition,
    AgentOutcome,
    AgentStatus,
    Artifact,
    ExecutionMode,
    RunCheckpoint,
    RunResult,
    RunState,
    RunStatus,
)
from handoff.domain.prompts import AgentRequest
from handoff.domain.reference import compute_preset_ref
from handoff.domain.stages import stage_for

logger = logging.getLogger(__name__)


class PipelineRunner:
    """
    Executes one preset against one project's artifact store.

    A runner instance performs a single run; `abort()` may be called from
    any thread (e.g. a signal handler) while `run()` is in progress.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        store: ArtifactStoreInterface,
        executor: AgentExecutorInterface,
        config: RunConfig | None = None,
        event_store: RunEventStoreInterface | None = None,
        checkpoint_store: CheckpointStoreInterface | None = None,
        project_dir: str | Path | None = None,
    ):
        """
        Args:
            graph: Validated dependency graph of the preset to run
            store: Artifact store of the target project
            executor: Runs one agent and returns its markdown
            config: Retry, backoff and concurrency settings
            event_store: Run log (not recorded if None)
            checkpoint_store: Latest-run checkpoint (not saved if None)
            project_dir: Working directory handed to the executor
        """
        self._graph = graph
        self._store = store
        self._executor = executor
        self._config = config or RunConfig()
        self._event_store = event_store
        self._checkpoint_store = checkpoint_store
        self._project_dir = str(project_dir) if project_dir is not None else None
        self._abort = threading.Event()
        self._state = RunState()
        self._run_id = str(uuid.uuid4())
        self._checks = self._resolve_checks()

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def status(self) -> RunStatus:
        return self._state.status

    @property
    def event_store(self) -> RunEventStoreInterface | None:
        return self._event_store

    def abort(self) -> None:
        """Stop dispatching; in-flight agents finish and keep their artifacts."""
        if not self._abort.is_set():
            logger.warning("Abort requested for run %s", self._run_id)
        self._abort.set()

    # -------------------------------------------------------------------------
    # Run loop
    # -------------------------------------------------------------------------

    def run(self, clean: bool = False) -> RunResult:
        """
        Drive the preset until every agent is done, one fails, or abort.

        Args:
            clean: Remove existing artifacts first instead of resuming

        Returns:
            RunResult naming the failing agent and stage, if any
        """
        if self._state.status != RunStatus.PENDING:
            raise RuntimeError("A PipelineRunner performs a single run")

        preset = self._graph.preset
        emitter = RunEventEmitter(self._event_store, self._run_id)
        started_at = datetime.now(UTC).isoformat()

        if clean:
            logger.info("Clean run requested: removing existing artifacts")
            self._store.clear()

        scheduler = Scheduler(self._graph, self._store)
        self._state.status = RunStatus.RUNNING
        self._save_checkpoint(started_at)
        emitter.run_start(preset.name)
        logger.info("Run %s started for preset '%s'", self._run_id, preset.name)

        present = scheduler.present()
        for name in preset.agent_names():
            slug = self._graph.agent(name).produces
            if slug in present:
                self._state.record(AgentOutcome(name, slug, AgentStatus.SKIPPED))
                emitter.agent_skip(name, slug)
                logger.info("Skipping %s: %s already exists", name, slug)

        failed: AgentOutcome | None = None
        try:
            failed = self._loop(scheduler, emitter)
        except KeyboardInterrupt:
            self.abort()
        except Exception:
            self._state.status = RunStatus.FAILED
            emitter.run_fail(None, "unexpected error")
            logger.exception("Run %s failed unexpectedly", self._run_id)
            self._save_checkpoint(started_at)
            raise

        if failed is None and scheduler.is_complete():
            self._state.status = RunStatus.COMPLETED
            emitter.run_complete()
            logger.info("Run %s completed", self._run_id)
        elif self._abort.is_set():
            failed = None
            self._state.status = RunStatus.ABORTED
            emitter.run_abort()
            logger.warning("Run %s aborted", self._run_id)
        else:
            self._state.status = RunStatus.FAILED
            emitter.run_fail(failed.agent, failed.error)
            logger.error(
                "Run %s failed at stage %02d (%s): %s",
                self._run_id,
                stage_for(failed.slug).number,
                failed.agent,
                failed.error,
            )

        result = RunResult(
            run_id=self._run_id,
            preset=preset.name,
            status=self._state.status,
            outcomes=tuple(self._state.outcomes.values()),
            failed_agent=failed.agent if failed else None,
            failed_stage=stage_for(failed.slug) if failed else None,
            error=failed.error if failed else "",
        )
        self._save_checkpoint(started_at, result)
        return result

    def _loop(self, scheduler: Scheduler, emitter: RunEventEmitter) -> AgentOutcome | None:
        """Dispatch ready agents phase by phase; returns the first fatal outcome."""
        while not self._abort.is_set():
            if scheduler.is_complete():
                return None

            blocked = sorted(
                scheduler.blocked(),
                key=lambda n: stage_for(self._graph.agent(n).produces).number,
            )
            if blocked:
                for name in blocked:
                    agent = self._graph.agent(name)
                    self._state.record(
                        AgentOutcome(
                            name,
                            agent.produces,
                            AgentStatus.BLOCKED,
                            error="an optional input was not produced",
                        )
                    )
                return self._state.outcomes[blocked[0]]

            phase = scheduler.current_phase()
            ready = sorted(
                scheduler.next_ready(),
                key=lambda n: stage_for(self._graph.agent(n).produces).number,
            )
            if not ready or phase is None:
                # Unreachable for a validated graph
                name = next(
                    n
                    for n in self._graph.preset.agent_names()
                    if not self._graph.is_done(
                        n, scheduler.present(), scheduler.settled
                    )
                )
                agent = self._graph.agent(name)
                error = MissingRequiredInput(name, scheduler.missing_inputs(agent))
                return self._internal_failure(agent, error)

            try:
                if phase.mode == ExecutionMode.PARALLEL and len(ready) > 1:
                    outcomes = self._dispatch_parallel(ready, scheduler, emitter)
                else:
                    outcomes = [self._run_agent(ready[0], scheduler, emitter)]
            except MissingRequiredInput as e:
                return self._internal_failure(self._graph.agent(e.agent), e)

            fatal: AgentOutcome | None = None
            for outcome in outcomes:
                self._state.record(outcome)
                if outcome.status != AgentStatus.FAILED:
                    continue
                if self._graph.agent(outcome.agent).optional:
                    logger.warning(
                        "Optional agent %s failed; continuing without %s",
                        outcome.agent,
                        outcome.slug,
                    )
                    scheduler.settle(outcome.agent)
                elif fatal is None:
                    fatal = outcome
            if fatal is not None:
                return fatal
        return None

    def _dispatch_parallel(
        self, names: list[str], scheduler: Scheduler, emitter: RunEventEmitter
    ) -> list[AgentOutcome]:
        """Run siblings concurrently and join (phase barrier)."""
        workers = max(1, min(self._config.max_workers, len(names)))
        logger.info("Dispatching %s in parallel", ", ".join(names))
        outcomes: dict[str, AgentOutcome] = {}
        errors: list[MissingRequiredInput] = []
        with ThreadPoolExecutor(max_workers=workers) as pool:
            try:
                futures = {
                    pool.submit(self._run_agent, name, scheduler, emitter): name
                    for name in names
                }
                for future in as_completed(futures):
                    try:
                        outcomes[futures[future]] = future.result()
                    except MissingRequiredInput as e:
                        errors.append(e)
            except BaseException:
                # Siblings must not start new attempts while the pool joins
                self.abort()
                pool.shutdown(wait=True, cancel_futures=True)
                raise
        if errors:
            raise errors[0]
        return [outcomes[n] for n in names]

    def _internal_failure(
        self, agent: AgentDefinition, error: MissingRequiredInput
    ) -> AgentOutcome:
        logger.error("Internal invariant violated: %s", error)
        outcome = AgentOutcome(
            agent.name, agent.produces, AgentStatus.FAILED, error=str(error)
        )
        self._state.record(outcome)
        return outcome

    # -------------------------------------------------------------------------
    # Single agent
    # -------------------------------------------------------------------------

    def _run_agent(
        self, name: str, scheduler: Scheduler, emitter: RunEventEmitter
    ) -> AgentOutcome:
        """Invoke one agent with retries; store its artifact on success."""
        agent = self._graph.agent(name)
        missing = scheduler.missing_inputs(agent)
        if missing:
            raise MissingRequiredInput(name, missing)

        try:
            inputs = tuple(self._store.get(slug) for slug in agent.requires)
        except Exception as e:
            return self._store_failure(agent, emitter, 1, "read inputs", e)
        feedback: list[str] = []
        max_attempts = self._config.max_attempts

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = self._config.backoff_delay(attempt)
                logger.info(
                    "Retrying %s in %.1fs (attempt %d/%d)",
                    name,
                    delay,
                    attempt,
                    max_attempts,
                )
                if delay > 0 and self._abort.wait(delay):
                    break
                if self._abort.is_set():
                    break

            emitter.agent_start(name, agent.produces, attempt)
            logger.info("Running %s (attempt %d/%d)", name, attempt, max_attempts)
            request = AgentRequest(
                agent=agent,
                inputs=inputs,
                project_dir=self._project_dir,
                preset=self._graph.preset.name,
                attempt=attempt,
                feedback_history=tuple(feedback),
            )

            try:
                content = self._executor.execute(request)
                self._validate(agent, content, inputs)
            except Exception as e:
                failure = (
                    e
                    if isinstance(e, ExecutorFailure)
                    else ExecutorFailure(name, f"{type(e).__name__}: {e}")
                )
                feedback.append(failure.feedback)
                emitter.agent_fail(name, agent.produces, attempt, failure.feedback)
                logger.warning(
                    "%s failed (attempt %d/%d): %s",
                    name,
                    attempt,
                    max_attempts,
                    failure.feedback,
                )
                continue

            try:
                self._store.put(
                    agent.produces,
                    content,
                    agent=name,
                    inputs=request.input_files,
                )
            except DuplicateArtifact:
                logger.warning(
                    "%s already exists; keeping the stored artifact", agent.produces
                )
            except Exception as e:
                return self._store_failure(agent, emitter, attempt, "write output", e)
            emitter.agent_pass(name, agent.produces, attempt)
            logger.info("%s wrote %s", name, stage_for(agent.produces).filename)
            return AgentOutcome(name, agent.produces, AgentStatus.COMPLETED, attempt)

        return AgentOutcome(
            name,
            agent.produces,
            AgentStatus.FAILED,
            attempts=len(feedback),
            error=feedback[-1] if feedback else "aborted before completion",
        )

    def _store_failure(
        self,
        agent: AgentDefinition,
        emitter: RunEventEmitter,
        attempt: int,
        action: str,
        error: Exception,
    ) -> AgentOutcome:
        """Artifact store errors are not retried; the agent fails at once."""
        message = f"could not {action}: {type(error).__name__}: {error}"
        emitter.agent_fail(agent.name, agent.produces, attempt, message)
        logger.error("%s %s", agent.name, message)
        return AgentOutcome(
            agent.name, agent.produces, AgentStatus.FAILED, attempt, message
        )

    def _validate(
        self, agent: AgentDefinition, content: object, inputs: tuple[Artifact, ...]
    ) -> None:
        if not isinstance(content, str):
            raise ExecutorFailure(
                agent.name, f"executor returned {type(content).__name__}, not text"
            )
        checks: list[ArtifactCheckInterface] = [NonEmptyCheck()]
        if agent.sections:
            checks.append(RequiredSectionsCheck(agent.sections))
        checks.extend(self._checks.get(agent.produces, ()))

        by_slug = {a.slug.replace("-", "_"): a for a in inputs}
        for check in checks:
            result = check.validate(content, **by_slug)
            if not result.passed:
                raise ExecutorFailure(
                    agent.name, f"[{result.check_name or check.name}] {result.feedback}"
                )

    def _resolve_checks(self) -> dict[str, list[ArtifactCheckInterface]]:
        """Instantiate the preset's named checks (fails before any agent runs)."""
        checks: dict[str, list[ArtifactCheckInterface]] = {}
        for slug, check_name in self._graph.preset.checks:
            checks.setdefault(slug, []).append(build_check(check_name))
        return checks

    # -------------------------------------------------------------------------
    # Checkpoint
    # -------------------------------------------------------------------------

    def _save_checkpoint(self, started_at: str, result: RunResult | None = None) -> None:
        if self._checkpoint_store is None:
            return
        preset = self._graph.preset
        self._checkpoint_store.save(
            RunCheckpoint(
                run_id=self._run_id,
                preset=preset.name,
                preset_ref=compute_preset_ref(preset, self._graph.agents),
                status=self._state.status,
                started_at=started_at,
                finished_at=datetime.now(UTC).isoformat() if result else None,
                failed_agent=result.failed_agent if result else None,
                failed_stage=result.failed_stage.slug
                if result and result.failed_stage
                else None,
                error=result.error if result else "",
            )
        )
