"""Engine configuration.

Everything the form operations need besides the store itself travels in an
explicit EngineContext: the validator registry, the placeholder id source, the
error reporter and the table of named mutations. There are no process-wide
registries; two contexts never share state unless they are given the same
objects.

Usage:
    >>> ctx = EngineContext.default()
    >>> "in-range?" in ctx.validators
    True
    >>> "forms/commit-to-entity" in ctx.mutations
    True
"""

from dataclasses import dataclass, field
from typing import Callable, Dict

from formgraph.errors import Diagnostic, ErrorReporter, LoggingReporter, UnknownMutationError
from formgraph.mutations import DEFAULT_MUTATIONS, MutationHandler
from formgraph.types import TempId, UUIDTempIdGenerator
from formgraph.validation import ValidatorRegistry


@dataclass
class EngineContext:
    """Registries and collaborators used by form operations.

    Attributes:
        validators: Named field validators
        tempids: Source of placeholder ids for identity fields
        reporter: Receives non-fatal diagnostics
        mutations: Mutation name -> handler
    """
    validators: ValidatorRegistry = field(default_factory=ValidatorRegistry.with_builtins)
    tempids: Callable[[], TempId] = field(default_factory=UUIDTempIdGenerator)
    reporter: ErrorReporter = field(default_factory=LoggingReporter)
    mutations: Dict[str, MutationHandler] = field(default_factory=lambda: dict(DEFAULT_MUTATIONS))

    @classmethod
    def default(cls) -> "EngineContext":
        return cls()

    def report(self, diagnostic: Diagnostic) -> None:
        self.reporter(diagnostic)

    def register_mutation(self, name: str, handler: MutationHandler) -> None:
        self.mutations[name] = handler

    def mutation(self, name: str) -> MutationHandler:
        """Return the handler registered under name.

        Raises:
            UnknownMutationError: If no handler is registered under name
        """
        try:
            return self.mutations[name]
        except KeyError:
            raise UnknownMutationError(name) from None


__all__ = [
    "EngineContext",
]
