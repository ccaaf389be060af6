"""Pytest fixtures for exprguard tests."""

import json
from pathlib import Path

import pytest

from exprguard.batch import is_safe_code
from exprguard.security.validator import ScriptValidator


@pytest.fixture
def validator() -> ScriptValidator:
    """Create a ScriptValidator with the default policy."""
    return ScriptValidator()


@pytest.fixture
def validate_instruction():
    """Validate one script through the JSON batch interface.

    Returns the wire-format diagnostics for that script.
    """

    def _validate(script: str, allowed_variables: list[str] | None = None) -> list[dict]:
        instruction_list = [
            {"script": script, "allowedVariables": allowed_variables or []}
        ]
        result = is_safe_code(json.dumps(instruction_list))
        return json.loads(result)[0]

    return _validate


@pytest.fixture
def batch_file(tmp_path: Path) -> Path:
    """Create a batch request file with one accepted and one rejected script."""
    path = tmp_path / "batch.json"
    requests = [
        {"script": "1 + 2", "allowedVariables": []},
        {"script": "x.value.constructor", "allowedVariables": ["x.value"]},
    ]
    path.write_text(json.dumps(requests, indent=2))
    return path


@pytest.fixture
def policy_file(tmp_path: Path) -> Path:
    """Create a policy file restricting calls on safe namespaces."""
    path = tmp_path / "policy.json"
    policy = {
        "namespace_method_whitelist": {"Math": ["abs", "max"]},
        "offset_unit": "codepoint",
    }
    path.write_text(json.dumps(policy, indent=2))
    return path
