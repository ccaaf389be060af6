"""tree-sitter adapter: script text in, syntax tree with character spans out.

tree-sitter reports UTF-8 byte offsets. Diagnostics need offsets into the
original text, so ParsedScript converts them to code points (Python string
indices) or UTF-16 code units (JavaScript string indices).
"""

from collections.abc import Iterator
from typing import Literal

import tree_sitter_javascript as tsjs
from tree_sitter import Language, Node, Parser, Tree

from ..errors import ScriptSyntaxError
from ..models.result import Diagnostic

JS_LANGUAGE = Language(tsjs.language())

OffsetUnit = Literal["codepoint", "utf16"]

# Longest excerpt of unparseable text quoted in a syntax error message
_EXCERPT_LIMIT = 20


class ParsedScript:
    """A parsed script plus the helpers needed to map nodes back to source."""

    def __init__(
        self, source: str, tree: Tree, offset_unit: OffsetUnit = "utf16"
    ) -> None:
        self.source = source
        self.tree = tree
        self.offset_unit = offset_unit
        self._bytes = source.encode("utf-8")
        self._ascii = len(self._bytes) == len(source)
        self._offsets: dict[int, int] = {}

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def offset(self, byte_offset: int) -> int:
        """Convert a UTF-8 byte offset to the configured character unit."""
        if self._ascii:
            return byte_offset
        if byte_offset not in self._offsets:
            prefix = self._bytes[:byte_offset].decode("utf-8")
            if self.offset_unit == "utf16":
                self._offsets[byte_offset] = len(prefix.encode("utf-16-le")) // 2
            else:
                self._offsets[byte_offset] = len(prefix)
        return self._offsets[byte_offset]

    def span(self, node: Node) -> tuple[int, int]:
        return self.offset(node.start_byte), self.offset(node.end_byte)

    def text(self, node: Node) -> str:
        """Exact source text covered by node."""
        return self._bytes[node.start_byte:node.end_byte].decode("utf-8")

    def diagnostic(self, node: Node, message: str) -> Diagnostic:
        start, end = self.span(node)
        return Diagnostic(start=start, end=end, message=message)


def _error_nodes(node: Node) -> Iterator[Node]:
    """Yield ERROR and MISSING nodes, outermost first, in source order."""
    if node.is_error or node.is_missing:
        yield node
        return
    for child in node.children:
        if child.has_error or child.is_missing:
            yield from _error_nodes(child)


def _syntax_error_message(parsed: ParsedScript, node: Node) -> str:
    if node.is_missing:
        return f"Syntax error: missing {node.type!r}"
    excerpt = parsed.text(node).strip()
    if len(excerpt) > _EXCERPT_LIMIT:
        excerpt = excerpt[:_EXCERPT_LIMIT] + "..."
    if not excerpt:
        return "Syntax error: unexpected end of input"
    return f"Syntax error: unexpected {excerpt!r}"


def parse_script(script: str, offset_unit: OffsetUnit = "utf16") -> ParsedScript:
    """Parse script text as a JavaScript program.

    Args:
        script: Script source text.
        offset_unit: Unit used for diagnostic offsets.

    Returns:
        ParsedScript wrapping the syntax tree.

    Raises:
        ScriptSyntaxError: If the text does not parse. The error carries one
            diagnostic per region the parser could not make sense of.
    """
    parser = Parser(JS_LANGUAGE)
    tree = parser.parse(script.encode("utf-8"))
    parsed = ParsedScript(script, tree, offset_unit)

    if parsed.root.has_error:
        diagnostics = [
            parsed.diagnostic(node, _syntax_error_message(parsed, node))
            for node in _error_nodes(parsed.root)
        ]
        if not diagnostics:
            diagnostics = [parsed.diagnostic(parsed.root, "Syntax error")]
        raise ScriptSyntaxError(diagnostics)

    return parsed
