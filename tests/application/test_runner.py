"""Tests for PipelineRunner."""

import _thread
import threading

import pytest

from handoff.application.registry import AgentRegistry, PresetRegistry
from handoff.application.runner import PipelineRunner
from handoff.config import RunConfig
from handoff.domain.exceptions import ExecutorFailure
from handoff.domain.interfaces import AgentExecutorInterface
from handoff.domain.models import (
    AgentDefinition,
    AgentStatus,
    ExecutionMode,
    Phase,
    RunStatus,
    WorkflowPreset,
)
from handoff.domain.prompts import AgentRequest
from handoff.domain.reference import compute_preset_ref
from handoff.domain.run_event import RunEventType
from handoff.domain.stages import STAGES
from handoff.infrastructure.executors.mock import MockExecutor, stub_document
from handoff.infrastructure.persistence.filesystem import FilesystemArtifactStore
from handoff.infrastructure.persistence.memory import InMemoryArtifactStore

ALL_SLUGS = [s.slug for s in STAGES]
DESIGN_AGENTS = {"client-tech-architect", "mermaid-designer", "interactive-designer"}


class AbortingExecutor(AgentExecutorInterface):
    """Requests an abort while a given agent is in flight."""

    def __init__(self, trigger: str):
        self.trigger = trigger
        self.runner: PipelineRunner | None = None
        self.calls: list[str] = []

    def execute(self, request: AgentRequest) -> str:
        self.calls.append(request.agent.name)
        if request.agent.name == self.trigger:
            self.runner.abort()
        return stub_document(request)


class SelfWritingExecutor(AgentExecutorInterface):
    """Simulates an agent that writes its own file before returning."""

    def __init__(self, store):
        self.store = store

    def execute(self, request: AgentRequest) -> str:
        content = stub_document(request)
        if request.agent.name == "ux-writer":
            self.store.put("ux-specification", "# Written by the agent\n", agent="ux-writer")
        return content


class InterruptingExecutor(AgentExecutorInterface):
    """Delivers Ctrl-C to the main thread while the design phase is fanned out."""

    def __init__(self):
        self.calls: list[str] = []
        self.interrupted = threading.Event()
        self.aborted = threading.Event()
        self._lock = threading.Lock()

    def watch(self, runner: PipelineRunner) -> None:
        abort = runner.abort

        def _abort() -> None:
            abort()
            self.aborted.set()

        runner.abort = _abort

    def execute(self, request: AgentRequest) -> str:
        name = request.agent.name
        with self._lock:
            self.calls.append(name)
        if name == "mermaid-designer":
            _thread.interrupt_main()
            self.interrupted.set()
            self.aborted.wait(5)
            # The child process dies with the same SIGINT
            raise RuntimeError("terminated by SIGINT")
        if name == "interactive-designer":
            self.interrupted.wait(5)
        return stub_document(request)


class FailingWriteStore(InMemoryArtifactStore):
    """Raises an I/O error when one slug is written."""

    def __init__(self, slug: str):
        super().__init__()
        self.slug = slug

    def put(self, slug, content, *args, **kwargs):
        if slug == self.slug:
            raise OSError("No space left on device")
        return super().put(slug, content, *args, **kwargs)


class VanishingStore(InMemoryArtifactStore):
    """Stops answering once the first artifact has been written."""

    broken = False

    def put(self, *args, **kwargs):
        metadata = super().put(*args, **kwargs)
        self.broken = True
        return metadata

    def slugs(self):
        if self.broken:
            raise OSError("shared directory vanished")
        return super().slugs()


class TestFullRun:
    def test_empty_project_runs_every_agent(self, webapp_graph, make_runner, memory_store):
        executor = MockExecutor()
        result = make_runner(webapp_graph, executor).run()

        assert result.status == RunStatus.COMPLETED
        assert result.failed_agent is None
        assert set(result.executed) == set(webapp_graph.agents)
        assert memory_store.slugs() == set(ALL_SLUGS)
        assert executor.call_count() == 8

    def test_artifact_metadata_records_agent_and_inputs(
        self, webapp_graph, make_runner, memory_store
    ):
        make_runner(webapp_graph).run()
        roadmap = memory_store.get("roadmap")
        assert roadmap.agent == "planner"
        assert roadmap.metadata.inputs == (
            "01-requirements.md",
            "03-ux-specification.md",
            "04-tech-architecture.md",
            "05-flow-diagrams.md",
            "06-animations.md",
        )

    def test_design_phase_joins_before_planning(self, webapp_graph, make_runner):
        executor = MockExecutor()
        make_runner(webapp_graph, executor).run()

        calls = executor.calls
        assert calls[:3] == ["interviewer", "ui-sketcher", "ux-writer"]
        assert set(calls[3:6]) == DESIGN_AGENTS
        assert calls[6:] == ["planner", "browser-qa"]

    def test_executor_receives_inputs_in_declared_order(self, webapp_graph, make_runner):
        executor = MockExecutor()
        make_runner(webapp_graph, executor).run()

        request = next(r for r in executor.requests if r.agent.name == "browser-qa")
        assert [a.slug for a in request.inputs] == [
            "requirements",
            "ux-specification",
            "roadmap",
        ]
        assert request.preset == "webapp"
        assert request.attempt == 1

    def test_runner_performs_single_run(self, webapp_graph, make_runner):
        runner = make_runner(webapp_graph)
        runner.run()
        with pytest.raises(RuntimeError):
            runner.run()


class TestResume:
    def test_existing_discovery_artifacts_are_skipped(
        self, webapp_graph, make_runner, populate
    ):
        """Stages 1-3 present: execution begins at the design phase."""
        populate("requirements", "wireframes", "ux-specification")
        executor = MockExecutor()
        result = make_runner(webapp_graph, executor).run()

        assert result.status == RunStatus.COMPLETED
        assert result.skipped == ("interviewer", "ui-sketcher", "ux-writer")
        assert not {"interviewer", "ui-sketcher", "ux-writer"} & set(executor.calls)
        assert set(executor.calls[:3]) == DESIGN_AGENTS

    def test_existing_artifacts_are_not_rewritten(
        self, webapp_graph, make_runner, populate, memory_store
    ):
        populate("requirements")
        make_runner(webapp_graph).run()
        assert memory_store.get("requirements").content == (
            "# requirements\n\nExisting content.\n"
        )

    def test_complete_project_invokes_nothing(self, webapp_graph, make_runner, populate):
        populate(*ALL_SLUGS)
        executor = MockExecutor()
        result = make_runner(webapp_graph, executor).run()

        assert result.status == RunStatus.COMPLETED
        assert executor.call_count() == 0
        assert len(result.skipped) == 8

    def test_clean_run_discards_existing_artifacts(
        self, webapp_graph, make_runner, populate, memory_store
    ):
        populate(*ALL_SLUGS)
        executor = MockExecutor()
        result = make_runner(webapp_graph, executor).run(clean=True)

        assert result.status == RunStatus.COMPLETED
        assert result.skipped == ()
        assert executor.call_count() == 8
        assert memory_store.get("requirements").agent == "interviewer"


class TestFailures:
    def test_browser_qa_exhausts_retries(self, webapp_graph, make_runner, memory_store):
        """Two consecutive failures with a bound of two fail the run at stage 8."""
        executor = MockExecutor(
            {
                "browser-qa": [
                    ExecutorFailure("browser-qa", "browser crashed"),
                    ExecutorFailure("browser-qa", "browser crashed again"),
                ]
            }
        )
        config = RunConfig(max_attempts=2, backoff_seconds=0.0)
        result = make_runner(webapp_graph, executor, config).run()

        assert result.status == RunStatus.FAILED
        assert result.failed_agent == "browser-qa"
        assert result.failed_stage.number == 8
        assert result.error == "browser crashed again"
        assert memory_store.slugs() == set(ALL_SLUGS[:7])
        assert executor.call_count("browser-qa") == 2

    def test_arbitrary_exception_is_wrapped(self, webapp_graph, make_runner):
        executor = MockExecutor({"interviewer": [ConnectionError("refused")] * 3})
        result = make_runner(webapp_graph, executor).run()

        assert result.status == RunStatus.FAILED
        assert result.failed_agent == "interviewer"
        assert result.error == "ConnectionError: refused"
        assert result.outcomes[0].attempts == 3

    def test_failure_stops_later_phases(self, webapp_graph, make_runner):
        executor = MockExecutor({"ux-writer": [RuntimeError("x")] * 3})
        make_runner(webapp_graph, executor).run()
        assert not DESIGN_AGENTS & set(executor.calls)

    def test_transient_failure_recovers(self, webapp_graph, make_runner):
        executor = MockExecutor({"planner": [TimeoutError("slow")]})
        result = make_runner(webapp_graph, executor).run()

        assert result.status == RunStatus.COMPLETED
        planner = next(o for o in result.outcomes if o.agent == "planner")
        assert planner.attempts == 2

    def test_check_feedback_reaches_retry(self, webapp_graph, make_runner):
        """Rejected output is fed back into the next attempt's prompt."""
        executor = MockExecutor({"interviewer": ["# Requirements\n\n## Problem\n\nx\n"]})
        result = make_runner(webapp_graph, executor).run()

        assert result.status == RunStatus.COMPLETED
        retries = [r for r in executor.requests if r.agent.name == "interviewer"]
        assert len(retries) == 2
        (feedback,) = retries[1].feedback_history
        assert feedback.startswith("[required-sections] Missing required sections")
        assert "Users" in feedback
        assert "REJECTED OUTPUT" in retries[1].render()

    def test_empty_output_rejected(self, webapp_graph, make_runner, memory_store):
        executor = MockExecutor({"interviewer": ["   \n"] * 3})
        result = make_runner(webapp_graph, executor).run()

        assert result.status == RunStatus.FAILED
        assert result.error == "[non-empty] Output is empty"
        assert not memory_store.exists("requirements")

    def test_preset_check_applies_to_slot(self, preset_registry, make_runner):
        """The extension preset rejects an architecture without permissions."""
        document = "\n\n".join(
            f"## {s}\n\nTBD"
            for s in ("Stack", "Components", "Messaging", "State", "Permissions")
        )
        executor = MockExecutor({"extension-architect": [document]})
        result = make_runner(preset_registry.graph("chrome-extension"), executor).run()

        assert result.status == RunStatus.COMPLETED
        retry = [r for r in executor.requests if r.agent.name == "extension-architect"]
        assert len(retry) == 2
        assert retry[1].feedback_history[0].startswith("[manifest-permissions]")


class TestOptionalAgents:
    @pytest.fixture
    def tiny_graph(self, tiny_agents, tiny_preset):
        return PresetRegistry(tiny_agents, [tiny_preset]).graph("tiny")

    def test_optional_failure_is_settled(self, tiny_graph, make_runner, memory_store):
        executor = MockExecutor({"animator": [RuntimeError("no motion")] * 3})
        result = make_runner(tiny_graph, executor).run()

        assert result.status == RunStatus.COMPLETED
        statuses = {o.agent: o.status for o in result.outcomes}
        assert statuses == {
            "writer": AgentStatus.COMPLETED,
            "sketcher": AgentStatus.COMPLETED,
            "animator": AgentStatus.FAILED,
        }
        assert not memory_store.exists("animations")

    def test_consumer_of_missing_optional_output_is_blocked(
        self, tiny_agents, tiny_preset, make_runner
    ):
        agents = AgentRegistry(tiny_agents.values())
        agents.register(
            AgentDefinition("planner", "roadmap", requires=("animations",))
        )
        preset = WorkflowPreset(
            "tiny-plus",
            tiny_preset.phases
            + (Phase("last", ExecutionMode.SEQUENTIAL, ("planner",)),),
        )
        graph = PresetRegistry(agents, [preset]).graph("tiny-plus")
        executor = MockExecutor({"animator": [RuntimeError("no motion")] * 3})
        result = make_runner(graph, executor).run()

        assert result.status == RunStatus.FAILED
        assert result.failed_agent == "planner"
        assert result.failed_stage.slug == "roadmap"
        assert "planner" not in executor.calls
        blocked = next(o for o in result.outcomes if o.agent == "planner")
        assert blocked.status == AgentStatus.BLOCKED


class TestAbort:
    def test_abort_keeps_in_flight_artifact(self, webapp_graph, make_runner, memory_store):
        executor = AbortingExecutor("ui-sketcher")
        runner = make_runner(webapp_graph, executor)
        executor.runner = runner
        result = runner.run()

        assert result.status == RunStatus.ABORTED
        assert result.failed_agent is None
        assert executor.calls == ["interviewer", "ui-sketcher"]
        assert memory_store.slugs() == {"requirements", "wireframes"}

    def test_abort_before_run_invokes_nothing(self, webapp_graph, make_runner):
        executor = MockExecutor()
        runner = make_runner(webapp_graph, executor)
        runner.abort()
        result = runner.run()

        assert result.status == RunStatus.ABORTED
        assert executor.call_count() == 0
        assert runner.status == RunStatus.ABORTED

    def test_interrupt_during_parallel_phase_stops_retries(
        self, webapp_graph, make_runner, memory_store, populate
    ):
        populate("requirements", "wireframes", "ux-specification")
        executor = InterruptingExecutor()
        runner = make_runner(webapp_graph, executor)
        executor.watch(runner)
        result = runner.run()

        assert result.status == RunStatus.ABORTED
        assert executor.calls.count("mermaid-designer") == 1
        assert "planner" not in executor.calls
        assert memory_store.slugs() == {
            "requirements",
            "wireframes",
            "ux-specification",
            "tech-architecture",
            "animations",
        }


class TestConcurrentWrites:
    def test_artifact_written_by_agent_counts_as_produced(
        self, webapp_graph, make_runner, memory_store
    ):
        result = make_runner(webapp_graph, SelfWritingExecutor(memory_store)).run()

        assert result.status == RunStatus.COMPLETED
        assert memory_store.get("ux-specification").content == "# Written by the agent\n"



class TestStoreErrors:
    def test_unreadable_input_fails_the_consumer(
        self, tmp_path, webapp_graph, fast_config, event_store, checkpoint_store
    ):
        shared = tmp_path / ".shared"
        shared.mkdir()
        (shared / "01-requirements.md").write_bytes(b"\xff\xfe not utf-8")
        executor = MockExecutor()
        runner = PipelineRunner(
            graph=webapp_graph,
            store=FilesystemArtifactStore(tmp_path),
            executor=executor,
            config=fast_config,
            event_store=event_store,
            checkpoint_store=checkpoint_store,
        )
        result = runner.run()

        assert result.status == RunStatus.FAILED
        assert result.failed_agent == "ui-sketcher"
        assert result.failed_stage.slug == "wireframes"
        assert "UnicodeDecodeError" in result.error
        assert executor.call_count() == 0
        assert checkpoint_store.load().status == RunStatus.FAILED
        events = event_store.get_events(runner.run_id)
        assert events[-1].event_type == RunEventType.RUN_FAIL

    def test_write_error_in_parallel_worker_fails_without_retry(
        self, webapp_graph, fast_config, event_store, checkpoint_store
    ):
        store = FailingWriteStore("flow-diagrams")
        for slug in ("requirements", "wireframes", "ux-specification"):
            store.put(slug, f"# {slug}\n", agent="manual")
        executor = MockExecutor()
        runner = PipelineRunner(
            graph=webapp_graph,
            store=store,
            executor=executor,
            config=fast_config,
            event_store=event_store,
            checkpoint_store=checkpoint_store,
        )
        result = runner.run()

        assert result.status == RunStatus.FAILED
        assert result.failed_agent == "mermaid-designer"
        assert result.failed_stage.slug == "flow-diagrams"
        assert "OSError: No space left on device" in result.error
        assert executor.call_count("mermaid-designer") == 1
        assert store.exists("tech-architecture")
        assert checkpoint_store.load().failed_agent == "mermaid-designer"

    def test_unexpected_error_leaves_failed_checkpoint(
        self, webapp_graph, fast_config, event_store, checkpoint_store
    ):
        runner = PipelineRunner(
            graph=webapp_graph,
            store=VanishingStore(),
            executor=MockExecutor(),
            config=fast_config,
            event_store=event_store,
            checkpoint_store=checkpoint_store,
        )
        with pytest.raises(OSError, match="vanished"):
            runner.run()

        assert runner.status == RunStatus.FAILED
        assert checkpoint_store.load().status == RunStatus.FAILED
        events = event_store.get_events(runner.run_id)
        assert events[-1].event_type == RunEventType.RUN_FAIL

class TestRunLog:
    def test_events_cover_run_lifecycle(self, webapp_graph, make_runner, event_store):
        runner = make_runner(webapp_graph)
        runner.run()
        events = event_store.get_events(runner.run_id)

        assert events[0].event_type == RunEventType.RUN_START
        assert events[0].summary == "webapp"
        assert events[-1].event_type == RunEventType.RUN_COMPLETE
        passes = event_store.get_events(runner.run_id, RunEventType.AGENT_PASS)
        assert len(passes) == 8

    def test_failed_attempts_logged(self, webapp_graph, make_runner, event_store):
        executor = MockExecutor({"planner": [RuntimeError("flaky")]})
        runner = make_runner(webapp_graph, executor)
        runner.run()

        fails = event_store.get_events(runner.run_id, RunEventType.AGENT_FAIL)
        assert [(e.agent, e.attempt) for e in fails] == [("planner", 1)]
        assert fails[0].summary == "RuntimeError: flaky"

    def test_skips_logged(self, webapp_graph, make_runner, event_store, populate):
        populate("requirements")
        runner = make_runner(webapp_graph)
        runner.run()
        skips = event_store.get_events(runner.run_id, RunEventType.AGENT_SKIP)
        assert [e.agent for e in skips] == ["interviewer"]

    def test_runs_without_event_or_checkpoint_store(self, webapp_graph, memory_store):
        runner = PipelineRunner(
            webapp_graph, memory_store, MockExecutor(), RunConfig(backoff_seconds=0)
        )
        assert runner.run().status == RunStatus.COMPLETED
        assert runner.event_store is None


class TestCheckpoint:
    def test_completed_checkpoint(self, webapp_graph, make_runner, checkpoint_store):
        runner = make_runner(webapp_graph)
        runner.run()
        checkpoint = checkpoint_store.load()

        assert checkpoint.run_id == runner.run_id
        assert checkpoint.status == RunStatus.COMPLETED
        assert checkpoint.preset == "webapp"
        assert checkpoint.preset_ref == compute_preset_ref(
            webapp_graph.preset, webapp_graph.agents
        )
        assert checkpoint.finished_at is not None

    def test_failed_checkpoint_names_stage(
        self, webapp_graph, make_runner, checkpoint_store
    ):
        executor = MockExecutor({"planner": [RuntimeError("down")] * 3})
        make_runner(webapp_graph, executor).run()
        checkpoint = checkpoint_store.load()

        assert checkpoint.status == RunStatus.FAILED
        assert checkpoint.failed_agent == "planner"
        assert checkpoint.failed_stage == "roadmap"
        assert checkpoint.error == "RuntimeError: down"
