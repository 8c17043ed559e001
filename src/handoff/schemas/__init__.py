"""handoff JSON Schema definitions and validation utilities.

Schemas:
    - preset.schema.json: Workflow preset files (phases, substitutions, checks)
    - run_config.schema.json: Per-project run configuration (handoff.json)

Usage:
    from handoff.schemas import validate_preset

    with open("my-preset.json") as f:
        data = json.load(f)
    validate_preset(data)  # Raises jsonschema.ValidationError if invalid
"""

from __future__ import annotations

import json
from importlib.resources import files
from typing import Any

import jsonschema


def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema from the schemas package.

    Args:
        name: Schema filename (e.g., 'preset.schema.json')

    Returns:
        Parsed JSON schema as a dictionary
    """
    schema_text = files("handoff.schemas").joinpath(name).read_text()
    result: dict[str, Any] = json.loads(schema_text)
    return result


def get_preset_schema() -> dict[str, Any]:
    """Get the preset file schema."""
    return _load_schema("preset.schema.json")


def get_run_config_schema() -> dict[str, Any]:
    """Get the handoff.json schema."""
    return _load_schema("run_config.schema.json")


def validate_preset(data: dict[str, Any]) -> None:
    """Validate a preset definition against the schema.

    Args:
        data: Preset dictionary

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(data, get_preset_schema())


def validate_run_config(data: dict[str, Any]) -> None:
    """Validate run configuration against the schema.

    Args:
        data: Contents of handoff.json

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(data, get_run_config_schema())


__all__ = [
    "get_preset_schema",
    "get_run_config_schema",
    "validate_preset",
    "validate_run_config",
]
