"""Policy tables for the expression script validator.

The module-level constants are the default allow-lists. ``ValidatorPolicy``
bundles them into one immutable value that is built once and handed to the
validator; ``load_policy`` builds a variant from a JSON file.
"""

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Bare identifiers that are always accepted
SAFE_IDENTIFIERS = frozenset({"NaN", "undefined", "Infinity"})

# Global objects whose static members are trusted
SAFE_NAMESPACES = frozenset({
    "Math",
    "Number",
    "Date",
    "Object",
    # Platform helper namespace (isVoid, safeAccess, ...)
    "QlarrScripts",
})

# Constants readable as plain properties on a safe namespace
STATIC_PROPERTY_WHITELIST: dict[str, frozenset[str]] = {
    "Math": frozenset({
        "E", "LN2", "LN10", "LOG2E", "LOG10E", "PI", "SQRT1_2", "SQRT2",
    }),
    "Number": frozenset({
        "EPSILON",
        "MAX_SAFE_INTEGER", "MAX_VALUE",
        "MIN_SAFE_INTEGER", "MIN_VALUE",
        "NaN", "NEGATIVE_INFINITY", "POSITIVE_INFINITY",
    }),
}

# Methods callable on ordinary values (arrays, strings, numbers)
INSTANCE_METHOD_WHITELIST = frozenset({
    # Arrays (non-mutating only)
    "filter", "map", "some", "every", "find", "findIndex", "findLast",
    "findLastIndex", "reduce", "reduceRight", "flat", "flatMap",
    "includes", "indexOf", "lastIndexOf", "join", "slice", "concat", "at",
    # Strings
    "charAt", "charCodeAt", "codePointAt", "startsWith", "endsWith",
    "substring", "toLowerCase", "toUpperCase", "trim", "trimStart",
    "trimEnd", "padStart", "padEnd", "split", "repeat", "localeCompare",
    # Numbers
    "toFixed", "toPrecision", "toString",
    # Read as a call by some platform helpers
    "length",
})

# The only property readable on ordinary values
INSTANCE_PROPERTY_WHITELIST = frozenset({"length"})

ALLOWED_UNARY_OPERATORS = frozenset({"-", "+", "!", "~", "typeof"})

# Default depth at which nested expressions stop being walked. Left-nested
# operator chains such as a + b + c do not count towards it.
MAX_NESTING_DEPTH = 100

# Statement kinds accepted besides the program root
ALLOWED_STATEMENT_KINDS = frozenset({
    "expression_statement",
    "return_statement",
    "statement_block",
})

# Fixed messages for constructs that are always rejected
IF_STATEMENT_MESSAGE = "If statements are not allowed"
LOOP_MESSAGE = "Loops are not allowed"
VARIABLE_DECLARATION_MESSAGE = "Variable Declarations are not allowed"
FUNCTION_DECLARATION_MESSAGE = "Function Declarations are not allowed"
ASSIGNMENT_MESSAGE = "Assignments are not allowed"
UPDATE_MESSAGE = "Update Expressions are not allowed"
COMPUTED_MEMBER_MESSAGE = "Computed member expressions are not allowed"
GLOBAL_CALL_MESSAGE = "global methods are not permitted"
MEMBER_PROPERTY_MESSAGE = "unIdentified member property"
IDENTIFIER_MESSAGE = "unidetified: {name}"
UNARY_OPERATOR_MESSAGE = "Unary operator '{operator}' is not allowed"
UNSUPPORTED_MESSAGE = "Unsupported syntax: {kind}"

REJECTED_STATEMENT_MESSAGES: dict[str, str] = {
    "if_statement": IF_STATEMENT_MESSAGE,
    "while_statement": LOOP_MESSAGE,
    "do_statement": LOOP_MESSAGE,
    "for_statement": LOOP_MESSAGE,
    # for-in and for-of share one node kind
    "for_in_statement": LOOP_MESSAGE,
    "lexical_declaration": VARIABLE_DECLARATION_MESSAGE,
    "variable_declaration": VARIABLE_DECLARATION_MESSAGE,
    "function_declaration": FUNCTION_DECLARATION_MESSAGE,
    "generator_function_declaration": FUNCTION_DECLARATION_MESSAGE,
    "assignment_expression": ASSIGNMENT_MESSAGE,
    "augmented_assignment_expression": ASSIGNMENT_MESSAGE,
    "update_expression": UPDATE_MESSAGE,
}


class ValidatorPolicy(BaseModel):
    """Immutable allow-list configuration consumed by ScriptValidator."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    safe_identifiers: frozenset[str] = SAFE_IDENTIFIERS
    safe_namespaces: frozenset[str] = SAFE_NAMESPACES
    static_property_whitelist: dict[str, frozenset[str]] = Field(
        default_factory=lambda: dict(STATIC_PROPERTY_WHITELIST)
    )
    instance_method_whitelist: frozenset[str] = INSTANCE_METHOD_WHITELIST
    instance_property_whitelist: frozenset[str] = INSTANCE_PROPERTY_WHITELIST
    allowed_unary_operators: frozenset[str] = ALLOWED_UNARY_OPERATORS
    # None trusts every method on a safe namespace
    namespace_method_whitelist: dict[str, frozenset[str]] | None = None
    # UTF-16 code units match JavaScript string indices
    offset_unit: Literal["codepoint", "utf16"] = "utf16"
    # Nodes nested deeper than this are rejected instead of walked
    max_depth: int = Field(default=MAX_NESTING_DEPTH, ge=1)

    def is_static_property(self, namespace: str, name: str) -> bool:
        """Return True if namespace.name is a whitelisted static constant."""
        return name in self.static_property_whitelist.get(namespace, frozenset())

    def is_namespace_method(self, namespace: str, name: str) -> bool:
        """Return True if namespace.name(...) may be called."""
        if self.namespace_method_whitelist is None:
            return True
        return name in self.namespace_method_whitelist.get(namespace, frozenset())


DEFAULT_POLICY = ValidatorPolicy()


def load_policy(policy_path: Path) -> ValidatorPolicy:
    """Load a policy from a JSON file. Missing keys fall back to the defaults."""
    with open(policy_path) as f:
        data = json.load(f)
    return ValidatorPolicy.model_validate(data)
