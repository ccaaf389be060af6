"""Audit logging for script validation runs."""

import json
from datetime import datetime, timezone
from pathlib import Path

from .models.result import ValidationResult

# Characters that force a value to be quoted
_QUOTE_TRIGGERS = frozenset(' "=\t\r\n')


def _format_value(value: str | int | float | bool) -> str:
    """Render one value, JSON-quoting it when it could break the line format.

    Syntax error messages quote script text, which may contain quotes or
    newlines; those are escaped so every entry stays on one line.
    """
    text = str(value)
    if _QUOTE_TRIGGERS.intersection(text):
        return json.dumps(text, ensure_ascii=False)
    return text


class AuditLogger:
    """Appends validation events to an audit file.

    Log format: ISO8601_TIMESTAMP [OPERATION] key1=value1 key2=value2
    Example: 2026-02-01T10:00:00Z [VALIDATE] index=3 status=rejected diagnostics=2

    Operations: VALIDATE (one per script), BATCH (one per batch)
    """

    def __init__(self, log_path: Path) -> None:
        self.log_path = log_path

    def log(self, operation: str, **fields: str | int | float | bool | None) -> None:
        """Append one entry; fields set to None are left out."""
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        parts = [stamp, f"[{operation}]"]
        parts.extend(
            f"{key}={_format_value(value)}"
            for key, value in fields.items()
            if value is not None
        )

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(" ".join(parts) + "\n")

    def log_result(self, index: int, result: ValidationResult) -> None:
        """Record the outcome of one script in a batch."""
        first = result.diagnostics[0] if result.diagnostics else None
        self.log(
            "VALIDATE",
            index=index,
            status=result.status,
            diagnostics=len(result.diagnostics),
            first=first.message if first else None,
            span=f"{first.start}-{first.end}" if first else None,
        )

    def log_batch(self, results: list[ValidationResult]) -> None:
        """Record a summary line for a whole batch."""
        rejected = sum(1 for r in results if not r.accepted)
        self.log(
            "BATCH",
            scripts=len(results),
            accepted=len(results) - rejected,
            rejected=rejected,
        )
