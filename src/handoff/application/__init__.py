"""
Application layer for the handoff pipeline.

Contains registries, the scheduler and the runner that drive presets
against a project's artifact store.
"""

from handoff.application.registry import AgentRegistry, PresetRegistry
from handoff.application.resume_service import ResumeService
from handoff.application.run_event_emitter import RunEventEmitter
from handoff.application.runner import PipelineRunner
from handoff.application.scheduler import Scheduler
from handoff.application.status import StatusReport, build_status

__all__ = [
    "AgentRegistry",
    "PresetRegistry",
    "Scheduler",
    "PipelineRunner",
    "RunEventEmitter",
    "ResumeService",
    "StatusReport",
    "build_status",
]
