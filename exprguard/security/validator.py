"""Scope-aware allow-list validator for expression scripts.

Walks the syntax tree pre-order. Every node kind is dispatched through
``_HANDLERS``; kinds without a handler are reported as unsupported so that
nothing is accepted by default. A node that is itself a violation gets one
diagnostic and its subtree is skipped. Siblings are still visited.
"""

from collections.abc import Iterable

from tree_sitter import Node

from ..errors import ScriptSyntaxError
from ..models.result import Diagnostic, ValidationResult
from .matcher import VariableMatcher, unwrap_parens
from .parser import ParsedScript, parse_script
from .policy import (
    ALLOWED_STATEMENT_KINDS,
    COMPUTED_MEMBER_MESSAGE,
    DEFAULT_POLICY,
    GLOBAL_CALL_MESSAGE,
    IDENTIFIER_MESSAGE,
    MEMBER_PROPERTY_MESSAGE,
    REJECTED_STATEMENT_MESSAGES,
    UNARY_OPERATOR_MESSAGE,
    UNSUPPORTED_MESSAGE,
    ValidatorPolicy,
)
from .scope import ScopeTracker

# Node kinds that never contribute to validation
_IGNORED_KINDS = frozenset({"comment", "hash_bang_line"})

_LITERAL_KINDS = frozenset({
    "number", "string", "regex", "true", "false", "null", "undefined",
})

_FUNCTION_KINDS = frozenset({"function_expression", "function", "arrow_function"})

NESTING_MESSAGE = "Expression nesting too deep"


def _children(node: Node) -> list[Node]:
    return [c for c in node.named_children if c.type not in _IGNORED_KINDS]


def _has_optional_chain(node: Node) -> bool:
    return any(c.type == "optional_chain" for c in node.children)


class _Walk:
    """State for validating one parsed script."""

    def __init__(
        self,
        parsed: ParsedScript,
        matcher: VariableMatcher,
        scope: ScopeTracker,
        policy: ValidatorPolicy,
    ) -> None:
        self.parsed = parsed
        self.matcher = matcher
        self.scope = scope
        self.policy = policy
        self.depth = 0

    def report(self, node: Node, message: str) -> list[Diagnostic]:
        return [self.parsed.diagnostic(node, message)]

    def unsupported(self, node: Node, kind: str | None = None) -> list[Diagnostic]:
        return self.report(node, UNSUPPORTED_MESSAGE.format(kind=kind or node.type))

    def validate(self, node: Node) -> list[Diagnostic]:
        message = REJECTED_STATEMENT_MESSAGES.get(node.type)
        if message is not None:
            return self.report(node, message)

        if self.depth >= self.policy.max_depth:
            return self.report(node, NESTING_MESSAGE)

        handler = _HANDLERS.get(node.type)
        if handler is None:
            return self.unsupported(node)

        self.depth += 1
        try:
            return handler(self, node)
        finally:
            self.depth -= 1

    def validate_all(self, nodes: Iterable[Node]) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for node in nodes:
            diagnostics.extend(self.validate(node))
        return diagnostics

    # Statements

    def _sequence(self, node: Node) -> list[Diagnostic]:
        return self.validate_all(_children(node))

    # Expressions

    def _literal(self, node: Node) -> list[Diagnostic]:
        return []

    def _template(self, node: Node) -> list[Diagnostic]:
        substitutions = [c for c in node.named_children if c.type == "template_substitution"]
        return self.validate_all(
            expr for sub in substitutions for expr in _children(sub)
        )

    def _identifier(self, node: Node) -> list[Diagnostic]:
        name = self.parsed.text(node)
        if (
            name in self.policy.safe_identifiers
            or self.scope.is_bound(name)
            or self.matcher.matches(node)
        ):
            return []
        return self.report(node, IDENTIFIER_MESSAGE.format(name=name))

    def _parenthesized(self, node: Node) -> list[Diagnostic]:
        inner = _children(node)
        if len(inner) != 1:
            return self.unsupported(node)
        return self.validate(inner[0])

    def _object(self, node: Node) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for member in _children(node):
            if member.type == "pair":
                key = member.child_by_field_name("key")
                if key is not None and key.type == "computed_property_name":
                    diagnostics.extend(self.validate_all(_children(key)))
                diagnostics.extend(self.validate(member.child_by_field_name("value")))
            elif member.type == "shorthand_property_identifier":
                diagnostics.extend(self._identifier(member))
            else:
                diagnostics.extend(self.unsupported(member))
        return diagnostics

    def _unary(self, node: Node) -> list[Diagnostic]:
        operator = node.child_by_field_name("operator").type
        if operator not in self.policy.allowed_unary_operators:
            return self.report(node, UNARY_OPERATOR_MESSAGE.format(operator=operator))
        return self.validate(node.child_by_field_name("argument"))

    def _binary(self, node: Node) -> list[Diagnostic]:
        # The parser nests a + b + c ... to the left; walk that spine in a loop
        operands = [node.child_by_field_name("right")]
        left = node.child_by_field_name("left")
        while left.type == "binary_expression":
            operands.append(left.child_by_field_name("right"))
            left = left.child_by_field_name("left")
        operands.append(left)
        return self.validate_all(reversed(operands))

    def _ternary(self, node: Node) -> list[Diagnostic]:
        return self.validate_all([
            node.child_by_field_name("condition"),
            node.child_by_field_name("consequence"),
            node.child_by_field_name("alternative"),
        ])

    def _namespace_of(self, node: Node) -> str | None:
        """Name of the safe namespace node refers to, or None."""
        node = unwrap_parens(node)
        if node.type != "identifier":
            return None
        name = self.parsed.text(node)
        if name in self.policy.safe_namespaces and not self.scope.is_bound(name):
            return name
        return None

    def _member(self, node: Node) -> list[Diagnostic]:
        if _has_optional_chain(node):
            return self.unsupported(node, "optional chaining")
        if self.matcher.matches(node):
            return []

        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        name = self.parsed.text(prop)
        namespace = self._namespace_of(obj)

        diagnostics = [] if namespace else self.validate(obj)
        if namespace and self.policy.is_static_property(namespace, name):
            return diagnostics
        if name in self.policy.instance_property_whitelist:
            return diagnostics
        return diagnostics + self.report(prop, MEMBER_PROPERTY_MESSAGE)

    def _subscript(self, node: Node) -> list[Diagnostic]:
        return self.report(node, COMPUTED_MEMBER_MESSAGE)

    def _call(self, node: Node) -> list[Diagnostic]:
        if _has_optional_chain(node):
            return self.unsupported(node, "optional chaining")

        callee = unwrap_parens(node.child_by_field_name("function"))
        if callee.type == "identifier":
            return self.report(node, GLOBAL_CALL_MESSAGE)

        if callee.type == "member_expression":
            diagnostics = self._method(callee)
        elif callee.type == "subscript_expression":
            diagnostics = self._subscript(callee)
        else:
            return self.unsupported(node, f"call of {callee.type}")

        arguments = node.child_by_field_name("arguments")
        if arguments.type == "arguments":
            return diagnostics + self.validate_all(_children(arguments))
        # Tagged template
        return diagnostics + self.validate(arguments)

    def _method(self, callee: Node) -> list[Diagnostic]:
        """Check the obj.method part of a call expression."""
        if _has_optional_chain(callee):
            return self.unsupported(callee, "optional chaining")

        obj = callee.child_by_field_name("object")
        prop = callee.child_by_field_name("property")
        name = self.parsed.text(prop)

        namespace = self._namespace_of(obj)
        if namespace:
            if self.policy.is_namespace_method(namespace, name):
                return []
            return self.report(prop, MEMBER_PROPERTY_MESSAGE)

        diagnostics = self.validate(obj)
        if name not in self.policy.instance_method_whitelist:
            diagnostics.extend(self.report(prop, MEMBER_PROPERTY_MESSAGE))
        return diagnostics

    def _function(self, node: Node) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        names: list[str] = []

        single = node.child_by_field_name("parameter")
        if single is not None:
            params = [single]
        else:
            params = _children(node.child_by_field_name("parameters"))

        for param in params:
            if param.type == "identifier":
                names.append(self.parsed.text(param))
            else:
                # Defaults, rest and destructuring patterns
                diagnostics.extend(self.unsupported(param))

        with self.scope.scope(names):
            diagnostics.extend(self.validate(node.child_by_field_name("body")))
        return diagnostics


_HANDLERS = {
    "program": _Walk._sequence,
    "template_string": _Walk._template,
    "identifier": _Walk._identifier,
    "parenthesized_expression": _Walk._parenthesized,
    "array": _Walk._sequence,
    "object": _Walk._object,
    "unary_expression": _Walk._unary,
    "binary_expression": _Walk._binary,
    "ternary_expression": _Walk._ternary,
    "member_expression": _Walk._member,
    "subscript_expression": _Walk._subscript,
    "call_expression": _Walk._call,
}
_HANDLERS.update({kind: _Walk._sequence for kind in ALLOWED_STATEMENT_KINDS})
_HANDLERS.update({kind: _Walk._literal for kind in _LITERAL_KINDS})
_HANDLERS.update({kind: _Walk._function for kind in _FUNCTION_KINDS})


class ScriptValidator:
    """Static allow-list checker for expression scripts."""

    def __init__(self, policy: ValidatorPolicy = DEFAULT_POLICY) -> None:
        self.policy = policy

    def validate(
        self,
        parsed: ParsedScript,
        allowed_variables: Iterable[str] = (),
        node: Node | None = None,
        scope: ScopeTracker | None = None,
    ) -> list[Diagnostic]:
        """Validate a parsed script, or one node of it.

        Args:
            parsed: Output of parse_script for the script.
            allowed_variables: Source-text fragments accepted as opaque leaves.
            node: Subtree to validate (default: the program root).
            scope: Names already bound (default: none).

        Returns:
            Diagnostics in discovery order.
        """
        walk = _Walk(
            parsed,
            VariableMatcher(parsed, allowed_variables),
            scope if scope is not None else ScopeTracker(),
            self.policy,
        )
        return walk.validate(node if node is not None else parsed.root)

    def check(self, script: str, allowed_variables: Iterable[str] = ()) -> ValidationResult:
        """
        Parse and validate one script.

        Args:
            script: Script source text.
            allowed_variables: Source-text fragments accepted as opaque leaves.

        Returns:
            ValidationResult; syntax errors are reported with syntax_error=True
        """
        try:
            parsed = parse_script(script, self.policy.offset_unit)
        except ScriptSyntaxError as e:
            return ValidationResult(diagnostics=e.diagnostics, syntax_error=True)

        return ValidationResult(diagnostics=self.validate(parsed, allowed_variables))
