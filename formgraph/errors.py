"""Error types and diagnostic reporting for formgraph.

Two kinds of failure are kept apart:

- Configuration errors (an unregistered validator name, a duplicate field in a
  schema, an unknown mutation) are programming mistakes. They are raised as
  subclasses of FormConfigurationError.
- Ordinary misuse at runtime (validating a form that was never built, editing a
  field the form does not declare) never raises. The engine leaves the store
  unchanged and hands a Diagnostic to the configured error reporter.
"""

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, List, Optional

from typing_extensions import Protocol

from formgraph.types import DiagnosticCode, Ident

logger = logging.getLogger(__name__)


class FormConfigurationError(Exception):
    """Raised when forms, validators or mutations are configured incorrectly."""


class UnknownValidatorError(FormConfigurationError):
    """Raised when a field refers to a validator name that is not registered.

    Attributes:
        name: The validator name that could not be resolved
    """

    def __init__(self, name: str, message: Optional[str] = None):
        self.name = name
        super().__init__(message or f"No validator registered under the name '{name}'")


class DuplicateFieldError(FormConfigurationError):
    """Raised when a form schema declares the same field name twice."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Field '{name}' is declared more than once in the form schema")


class UnknownMutationError(FormConfigurationError):
    """Raised when a transaction names a mutation that is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No mutation registered under the name '{name}'")


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem detected while applying a form operation.

    Attributes:
        code: Category of the problem
        message: Human-readable description
        ident: Optional - the form the operation targeted
        field: Optional - the field the operation targeted

    Examples:
        >>> diag = Diagnostic(
        ...     code=DiagnosticCode.FORM_NOT_INITIALIZED,
        ...     message="Unable to validate form",
        ...     ident=Ident("person", 1),
        ... )
        >>> diag.to_dict()["code"]
        'form_not_initialized'
    """
    code: DiagnosticCode
    message: str
    ident: Optional[Ident] = None
    field: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {
            "code": self.code.value if isinstance(self.code, DiagnosticCode) else self.code,
            "message": self.message,
        }
        if self.ident is not None:
            result["ident"] = self.ident.to_dict()
        if self.field is not None:
            result["field"] = self.field
        return result


class ErrorReporter(Protocol):
    """Collaborator receiving non-fatal diagnostics from the engine."""

    def __call__(self, diagnostic: Diagnostic) -> None:
        ...


class LoggingReporter:
    """Reports diagnostics to the standard logging system at ERROR level."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self._log = log or logger

    def __call__(self, diagnostic: Diagnostic) -> None:
        self._log.error(
            "%s: %s (ident=%s, field=%s)",
            diagnostic.code.value,
            diagnostic.message,
            diagnostic.ident,
            diagnostic.field,
        )


@dataclass
class CollectingReporter:
    """Keeps every reported diagnostic in memory. Mostly useful in tests."""
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def __call__(self, diagnostic: Diagnostic) -> None:
        logger.debug("collected diagnostic %s", diagnostic.code.value)
        self.diagnostics.append(diagnostic)

    def codes(self) -> List[DiagnosticCode]:
        return [d.code for d in self.diagnostics]


__all__ = [
    "FormConfigurationError",
    "UnknownValidatorError",
    "DuplicateFieldError",
    "UnknownMutationError",
    "Diagnostic",
    "ErrorReporter",
    "LoggingReporter",
    "CollectingReporter",
]
