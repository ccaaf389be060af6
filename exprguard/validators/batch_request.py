"""Batch request validation against JSON Schema."""

import json
from pathlib import Path

import jsonschema

# Path to the batch request schema
SCHEMA_PATH = Path(__file__).parent.parent / "contracts" / "batch_request.schema.json"


def _load_schema() -> dict:
    """Load the batch request JSON schema."""
    with open(SCHEMA_PATH) as f:
        return json.load(f)


def validate_batch_request(payload: object) -> tuple[bool, list[str]]:
    """
    Validate a decoded batch payload against the request schema.

    Args:
        payload: The decoded JSON value (expected: list of request objects).

    Returns:
        A tuple of (is_valid, list_of_errors).
        If valid, errors list is empty.
    """
    errors: list[str] = []

    try:
        schema = _load_schema()
        validator = jsonschema.Draft202012Validator(schema)
        for error in validator.iter_errors(payload):
            location = "/".join(str(part) for part in error.path) or "<root>"
            errors.append(f"Schema validation error at {location}: {error.message}")
    except FileNotFoundError:
        errors.append(f"Schema file not found: {SCHEMA_PATH}")
    except json.JSONDecodeError as e:
        errors.append(f"Schema JSON decode error: {e}")

    return (len(errors) == 0, errors)
