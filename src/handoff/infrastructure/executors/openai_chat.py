"""
OpenAI-compatible chat executor.

Works with OpenAI and any server exposing the same chat completions API
(Ollama, vLLM, LM Studio).
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, cast

from handoff.domain.exceptions import ExecutorFailure
from handoff.domain.interfaces import AgentExecutorInterface
from handoff.domain.prompts import AgentRequest

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are one specialist in a sequential product design pipeline. "
    "Reply with the complete markdown deliverable only, without commentary."
)


@dataclass
class OpenAIExecutorConfig:
    """Configuration for OpenAIExecutor.

    This typed config ensures unknown fields are rejected at construction time.
    """

    model: str = "gpt-4o-mini"
    base_url: str | None = None
    api_key_env: str = "OPENAI_API_KEY"
    timeout: float = 300.0
    temperature: float = 0.4


class OpenAIExecutor(AgentExecutorInterface):
    """Runs each agent as a single chat completion."""

    config_class = OpenAIExecutorConfig

    def __init__(self, config: OpenAIExecutorConfig | None = None, **kwargs: Any):
        """
        Args:
            config: Typed configuration object (preferred)
            **kwargs: Fields of OpenAIExecutorConfig
        """
        if config is None:
            config = OpenAIExecutorConfig(**kwargs)

        try:
            from openai import OpenAI
        except ImportError as err:
            raise ImportError("openai library required: pip install openai") from err

        self._config = config
        self._client = OpenAI(
            base_url=config.base_url,
            api_key=os.environ.get(config.api_key_env) or "unused",
            timeout=config.timeout,
        )

    def execute(self, request: AgentRequest) -> str:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": request.render()},
        ]
        logger.debug(
            "Requesting %s from %s (attempt %d)",
            request.agent.name,
            self._config.model,
            request.attempt,
        )
        response = self._client.chat.completions.create(
            model=self._config.model,
            messages=cast(Any, messages),
            temperature=self._config.temperature,
        )
        content = response.choices[0].message.content or ""
        if not content.strip():
            raise ExecutorFailure(request.agent.name, "model returned an empty reply")
        return _strip_fence(content)


def _strip_fence(content: str) -> str:
    """Unwrap a reply that was wrapped whole in a ```markdown fence."""
    stripped = content.strip()
    if stripped.startswith("```") and stripped.endswith("```"):
        first_newline = stripped.find("\n")
        if first_newline != -1:
            return stripped[first_newline + 1 : -3].rstrip() + "\n"
    return content
