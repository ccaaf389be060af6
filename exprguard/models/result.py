"""Request and result data models for script validation."""

from pydantic import BaseModel, ConfigDict, Field


class ScriptRequest(BaseModel):
    """One script to check plus the variable expressions it may reference."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    script: str
    allowed_variables: tuple[str, ...] = Field(default=(), alias="allowedVariables")


class Diagnostic(BaseModel):
    """A policy violation located by character offsets into the script."""

    model_config = ConfigDict(frozen=True)

    start: int
    end: int
    message: str


class ValidationResult(BaseModel):
    """Diagnostics for one script. No diagnostics means the script is accepted."""

    diagnostics: list[Diagnostic] = Field(default_factory=list)
    syntax_error: bool = False

    @property
    def accepted(self) -> bool:
        return not self.diagnostics and not self.syntax_error

    @property
    def status(self) -> str:
        if self.syntax_error:
            return "syntax_error"
        return "accepted" if self.accepted else "rejected"

    def to_wire(self) -> list[dict]:
        """Response entry: a list of {start, end, message} records."""
        return [d.model_dump() for d in self.diagnostics]
