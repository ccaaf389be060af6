"""Matching of caller-supplied variable expressions against script nodes."""

from collections.abc import Iterable

from tree_sitter import Node

from .parser import ParsedScript


def unwrap_parens(node: Node) -> Node:
    """Strip any number of enclosing parentheses from an expression."""
    while node.type == "parenthesized_expression":
        inner = [c for c in node.named_children if c.type != "comment"]
        if len(inner) != 1:
            break
        node = inner[0]
    return node


class VariableMatcher:
    """Exact source-text matcher for allowed-variable expressions.

    Entries are compared verbatim with the text a node covers, so
    ``x.value`` matches ``x.value`` but not ``x . value``.
    """

    def __init__(self, parsed: ParsedScript, allowed_variables: Iterable[str]) -> None:
        self.parsed = parsed
        self.allowed = frozenset(allowed_variables)

    def matches(self, node: Node) -> bool:
        if not self.allowed:
            return False
        return self.parsed.text(unwrap_parens(node)) in self.allowed
