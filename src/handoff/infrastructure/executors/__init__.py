"""
Agent executor adapters.
"""

from handoff.infrastructure.executors.command import (
    CommandExecutor,
    CommandExecutorConfig,
)
from handoff.infrastructure.executors.mock import MockExecutor
from handoff.infrastructure.executors.openai_chat import (
    OpenAIExecutor,
    OpenAIExecutorConfig,
)

__all__ = [
    "CommandExecutor",
    "CommandExecutorConfig",
    "MockExecutor",
    "OpenAIExecutor",
    "OpenAIExecutorConfig",
]
