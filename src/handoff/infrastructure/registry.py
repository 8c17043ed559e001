"""
Executor Registry with Entry Points Discovery.

Provides dynamic executor loading via Python entry points
(handoff.executors group). External packages can register executors in
their pyproject.toml:

    [project.entry-points."handoff.executors"]
    my-llm = "mypackage.executors:MyExecutor"
"""

import warnings
from importlib.metadata import entry_points
from typing import Any

from handoff.domain.interfaces import AgentExecutorInterface
from handoff.infrastructure.executors.command import CommandExecutor
from handoff.infrastructure.executors.mock import MockExecutor
from handoff.infrastructure.executors.openai_chat import OpenAIExecutor

BUILTIN_EXECUTORS: dict[str, type[AgentExecutorInterface]] = {
    "command": CommandExecutor,
    "openai": OpenAIExecutor,
    "mock": MockExecutor,
}


class ExecutorRegistry:
    """
    Registry for AgentExecutorInterface implementations.

    Built-in executors are always available; entry points are loaded
    lazily on first access.

    Example usage:
        executor = ExecutorRegistry.create("openai", model="gpt-4o-mini")
    """

    _executors: dict[str, type[AgentExecutorInterface]] = dict(BUILTIN_EXECUTORS)
    _loaded: bool = False

    @classmethod
    def _load_entry_points(cls) -> None:
        """Load executors from entry points (lazy, called once)."""
        if cls._loaded:
            return

        for ep in entry_points(group="handoff.executors"):
            if ep.name in BUILTIN_EXECUTORS:
                continue
            try:
                cls._executors[ep.name] = ep.load()
            except Exception as e:
                warnings.warn(
                    f"Failed to load executor '{ep.name}' from entry point: {e}",
                    stacklevel=2,
                )

        cls._loaded = True

    @classmethod
    def register(cls, name: str, executor_class: type[AgentExecutorInterface]) -> None:
        """Manually register an executor class."""
        cls._executors[name] = executor_class

    @classmethod
    def get(cls, name: str) -> type[AgentExecutorInterface]:
        """
        Get an executor class by name.

        Raises:
            KeyError: If executor not found
        """
        cls._load_entry_points()
        if name not in cls._executors:
            available = ", ".join(sorted(cls._executors)) or "(none)"
            raise KeyError(
                f"Executor '{name}' not found. Available executors: {available}"
            )
        return cls._executors[name]

    @classmethod
    def create(cls, name: str, **config: Any) -> AgentExecutorInterface:
        """
        Create an executor instance by name.

        Raises:
            KeyError: If executor not found
            TypeError: If config doesn't match the executor's config fields
        """
        executor_class = cls.get(name)
        return executor_class(**config)

    @classmethod
    def available(cls) -> list[str]:
        cls._load_entry_points()
        return sorted(cls._executors)

    @classmethod
    def clear(cls) -> None:
        """Reset to the built-in executors (useful for testing)."""
        cls._executors = dict(BUILTIN_EXECUTORS)
        cls._loaded = False
