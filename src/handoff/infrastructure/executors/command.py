"""
Command-line executor.

Pipes the rendered prompt to an external command (typically a coding
assistant CLI running in the project directory) and reads the markdown
deliverable from its stdout. The command may use its own tools while it
runs; handoff only waits for it.
"""

import logging
import os
import shlex
import subprocess
from dataclasses import dataclass, field
from typing import Any

from handoff.domain.exceptions import ConfigurationError, ExecutorFailure
from handoff.domain.interfaces import AgentExecutorInterface
from handoff.domain.prompts import AgentRequest

logger = logging.getLogger(__name__)


@dataclass
class CommandExecutorConfig:
    """Configuration for CommandExecutor."""

    command: str | list[str] = ""
    timeout: float = 1800.0
    env: dict[str, str] = field(default_factory=dict)


class CommandExecutor(AgentExecutorInterface):
    """Runs `command` once per agent with the prompt on stdin."""

    config_class = CommandExecutorConfig

    def __init__(self, config: CommandExecutorConfig | None = None, **kwargs: Any):
        if config is None:
            config = CommandExecutorConfig(**kwargs)
        if not config.command:
            raise ConfigurationError(
                "command executor requires 'command' (e.g. --command 'my-agent -p')"
            )
        if isinstance(config.command, str):
            self._argv = shlex.split(config.command)
        else:
            self._argv = list(config.command)
        self._config = config

    @property
    def argv(self) -> list[str]:
        return list(self._argv)

    def execute(self, request: AgentRequest) -> str:
        env = {**os.environ, **self._config.env}
        env["HANDOFF_AGENT"] = request.agent.name
        env["HANDOFF_OUTPUT"] = request.output_path

        logger.debug("Running %s for %s", self._argv[0], request.agent.name)
        try:
            proc = subprocess.run(
                self._argv,
                input=request.render(),
                capture_output=True,
                text=True,
                cwd=request.project_dir,
                timeout=self._config.timeout,
                env=env,
            )
        except subprocess.TimeoutExpired as e:
            raise ExecutorFailure(
                request.agent.name, f"timed out after {e.timeout:.0f}s"
            ) from e
        except OSError as e:
            raise ExecutorFailure(
                request.agent.name, f"could not start {self._argv[0]}: {e}"
            ) from e

        if proc.returncode != 0:
            stderr = (proc.stderr or "").strip().splitlines()
            detail = stderr[-1] if stderr else "no stderr"
            raise ExecutorFailure(
                request.agent.name, f"exit code {proc.returncode}: {detail}"
            )
        return proc.stdout
