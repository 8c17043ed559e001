"""Run configuration loading (handoff.json)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import jsonschema

from handoff.domain.exceptions import ConfigurationError
from handoff.schemas import validate_run_config

CONFIG_FILE_NAME = "handoff.json"


@dataclass(frozen=True)
class RunConfig:
    """Retry, backoff, concurrency and executor settings for a run."""

    max_attempts: int = 3  # Total executor invocations per agent
    backoff_seconds: float = 2.0
    backoff_factor: float = 2.0
    max_workers: int = 4  # Thread pool size for parallel phases
    executor: str = "command"
    executor_config: dict[str, Any] = field(default_factory=dict)
    preset: str | None = None  # Preset `handoff status` reports against
    preset_files: tuple[str, ...] = ()  # Extra preset JSON files

    def backoff_delay(self, attempt: int) -> float:
        """Delay before invoking `attempt` (2 = first retry)."""
        if attempt <= 1:
            return 0.0
        return self.backoff_seconds * self.backoff_factor ** (attempt - 2)

    def with_overrides(self, **overrides: Any) -> RunConfig:
        """Copy with non-None overrides applied (CLI flags)."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown run config keys: {', '.join(sorted(unknown))}"
            )
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def run_config_from_dict(data: dict[str, Any], source: str = "config") -> RunConfig:
    """
    Build a RunConfig from a parsed mapping.

    Raises:
        ConfigurationError: If the mapping does not match the schema
    """
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected object in {source}, got {type(data).__name__}"
        )
    try:
        validate_run_config(data)
    except jsonschema.ValidationError as e:
        raise ConfigurationError(f"Invalid {source}: {e.message}") from e

    values = dict(data)
    if "preset_files" in values:
        values["preset_files"] = tuple(values["preset_files"])
    return RunConfig(**values)


def load_run_config(project_dir: str | Path) -> RunConfig:
    """
    Load `{project}/handoff.json`, or defaults if it does not exist.

    Relative preset file paths are resolved against the project directory.

    Raises:
        ConfigurationError: If the file is not valid JSON or has unknown keys
    """
    path = Path(project_dir) / CONFIG_FILE_NAME
    if not path.exists():
        return RunConfig()

    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}") from e

    config = run_config_from_dict(data, source=str(path))
    if config.preset_files:
        resolved = tuple(
            str((Path(project_dir) / p).resolve()) for p in config.preset_files
        )
        config = replace(config, preset_files=resolved)
    return config
