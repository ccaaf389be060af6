"""Exceptions raised at the edges of the validator."""

from .models.result import Diagnostic


class ScriptSyntaxError(ValueError):
    """Raised when a script cannot be parsed at all."""

    def __init__(self, diagnostics: list[Diagnostic]) -> None:
        self.diagnostics = diagnostics
        first = diagnostics[0].message if diagnostics else "Syntax error"
        super().__init__(first)


class BatchFormatError(ValueError):
    """Raised when a batch payload is not valid JSON or has the wrong shape."""
