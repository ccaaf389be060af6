"""Batch validation of expression scripts.

Takes a JSON array of ``{"script": ..., "allowedVariables": [...]}`` records
and returns a JSON array of the same length whose entries are lists of
``{"start", "end", "message"}`` diagnostics. An empty entry means the script
at that position is accepted.
"""

import argparse
import json
import sys
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from .audit import AuditLogger
from .errors import BatchFormatError
from .models.result import ScriptRequest, ValidationResult
from .security.policy import DEFAULT_POLICY, ValidatorPolicy, load_policy
from .security.validator import ScriptValidator
from .validators.batch_request import validate_batch_request


def validate_script(
    script: str,
    allowed_variables: Iterable[str] = (),
    policy: ValidatorPolicy = DEFAULT_POLICY,
) -> ValidationResult:
    """Validate a single script."""
    return ScriptValidator(policy).check(script, allowed_variables)


def validate_batch(
    requests: Sequence[ScriptRequest],
    policy: ValidatorPolicy = DEFAULT_POLICY,
    max_workers: int = 1,
    audit: AuditLogger | None = None,
) -> list[ValidationResult]:
    """Validate every request, preserving input order.

    Args:
        requests: Scripts to validate.
        policy: Allow-list configuration shared by all requests.
        max_workers: Number of worker threads. 1 validates sequentially.
        audit: Optional audit logger; receives one line per script.

    Returns:
        One ValidationResult per request, in request order.
    """
    validator = ScriptValidator(policy)

    def check(request: ScriptRequest) -> ValidationResult:
        return validator.check(request.script, request.allowed_variables)

    if max_workers > 1 and len(requests) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(check, requests))
    else:
        results = [check(request) for request in requests]

    if audit is not None:
        for index, result in enumerate(results):
            audit.log_result(index, result)
        audit.log_batch(results)

    return results


def parse_batch(payload: str) -> list[ScriptRequest]:
    """Decode and check a JSON batch payload.

    Raises:
        BatchFormatError: If the payload is not JSON or does not match the
            batch request schema.
    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise BatchFormatError(f"Batch payload is not valid JSON: {e}") from e

    is_valid, errors = validate_batch_request(data)
    if not is_valid:
        raise BatchFormatError("; ".join(errors))

    return [ScriptRequest.model_validate(item) for item in data]


def is_safe_code(
    payload: str,
    policy: ValidatorPolicy = DEFAULT_POLICY,
    max_workers: int = 1,
    audit: AuditLogger | None = None,
) -> str:
    """JSON-in, JSON-out batch validation."""
    results = validate_batch(parse_batch(payload), policy, max_workers, audit)
    return json.dumps([result.to_wire() for result in results])


def _format_diagnostics(result: ValidationResult) -> str:
    if result.accepted:
        return "OK"
    return "\n".join(f"{d.start}-{d.end}: {d.message}" for d in result.diagnostics)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for script validation."""
    parser = argparse.ArgumentParser(
        description="Check expression scripts against the allow-list policy"
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--input",
        type=str,
        default="-",
        help="Path to a JSON batch file, or - for stdin (default: -)",
    )
    source.add_argument(
        "--script",
        type=str,
        default=None,
        help="Check a single script given on the command line",
    )
    parser.add_argument(
        "--allow",
        action="append",
        default=[],
        metavar="EXPR",
        help="Allowed variable expression for --script (repeatable)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the JSON response here (default: stdout)",
    )
    parser.add_argument(
        "--policy",
        type=Path,
        default=None,
        help="Path to a JSON policy file overriding the default allow-lists",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker threads for batch validation (default: 1)",
    )
    parser.add_argument(
        "--audit-log",
        type=Path,
        default=None,
        help="Append one audit line per script to this file",
    )

    args = parser.parse_args(argv)

    policy = load_policy(args.policy) if args.policy else DEFAULT_POLICY
    audit = AuditLogger(args.audit_log) if args.audit_log else None

    if args.script is not None:
        request = ScriptRequest(script=args.script, allowed_variables=tuple(args.allow))
        result = validate_batch([request], policy, audit=audit)[0]
        print(_format_diagnostics(result))
        return 0 if result.accepted else 1

    if args.input == "-":
        payload = sys.stdin.read()
    else:
        with open(args.input) as f:
            payload = f.read()

    try:
        requests = parse_batch(payload)
    except BatchFormatError as e:
        print(f"Invalid batch: {e}", file=sys.stderr)
        return 2

    results = validate_batch(requests, policy, args.workers, audit)
    response = json.dumps([result.to_wire() for result in results], indent=2)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(response + "\n")
    else:
        print(response)

    rejected = [i for i, r in enumerate(results) if not r.accepted]
    if rejected:
        print(
            f"Rejected {len(rejected)} of {len(results)} scripts: "
            + ", ".join(str(i) for i in rejected),
            file=sys.stderr,
        )
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
