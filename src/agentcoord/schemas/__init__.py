"""agentcoord JSON Schema definitions and validation utilities.

Schemas:
    - config.schema.json: Coordinator configuration file
    - payloads.schema.json: Required payload fields per task kind

Usage:
    from agentcoord.schemas import validate_config, validate_payload

    with open("agentcoord.json") as f:
        data = json.load(f)
    validate_config(data)  # Raises jsonschema.ValidationError if invalid
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from functools import cache
from importlib.resources import files
from typing import Any

import jsonschema
from jsonschema.exceptions import best_match


@cache
def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema from the schemas package.

    Args:
        name: Schema filename (e.g., 'config.schema.json')

    Returns:
        Parsed JSON schema as a dictionary
    """
    schema_text = files("agentcoord.schemas").joinpath(name).read_text()
    result: dict[str, Any] = json.loads(schema_text)
    return result


def get_config_schema() -> dict[str, Any]:
    """Get the configuration file schema."""
    return _load_schema("config.schema.json")


def get_payload_schema(kind: str) -> dict[str, Any]:
    """Get the payload schema for one task kind.

    Args:
        kind: TaskKind value (e.g., 'generate-artifact')

    Returns:
        A schema that references the kind's definition, keeping shared $defs

    Raises:
        KeyError: If no definition exists for kind
    """
    schema = _load_schema("payloads.schema.json")
    defs = schema["$defs"]
    if kind not in defs:
        raise KeyError(f"No payload schema for task kind '{kind}'")
    return {"$schema": schema["$schema"], "$defs": defs, "$ref": f"#/$defs/{kind}"}


def validate_config(data: Mapping[str, Any]) -> None:
    """Validate a configuration mapping against the schema.

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(dict(data), get_config_schema())


def validate_payload(kind: str, payload: Mapping[str, Any]) -> None:
    """Validate a task payload against its kind's schema.

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    validator = jsonschema.Draft202012Validator(get_payload_schema(kind))
    error = best_match(validator.iter_errors(dict(payload)))
    if error is not None:
        raise error


__all__ = [
    "get_config_schema",
    "get_payload_schema",
    "validate_config",
    "validate_payload",
]
