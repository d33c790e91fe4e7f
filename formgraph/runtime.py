"""FormRuntime: transaction executor for form mutations.

The runtime owns the current graph store and applies transactions to it. A
transaction is an ordered list of named mutations; they run one after another
against a working copy, and the runtime's store is replaced only once all of
them have succeeded. Readers therefore never observe half of a transaction.

The runtime also provides the composed entry points forms are normally driven
through:

- reset_from_entity: reset the form, then validate the whole form tree
- commit_to_entity: commit only if the form validates; otherwise run
  validation so the failure becomes visible
- validate_entire_form

Usage:
    >>> from formgraph.schema import FormClass, FormSchema, id_field, text_input
    >>> from formgraph.store import GraphStore
    >>> from formgraph.types import Ident
    >>> person = FormClass("person", FormSchema([id_field("id"), text_input("name")]))
    >>> runtime = FormRuntime(GraphStore({Ident("person", 1): {"id": 1, "name": "Amy"}}))
    >>> runtime.init_form(person, Ident("person", 1))
    >>> runtime.transact([Mutation("forms/update-field",
    ...                            {"form_ident": Ident("person", 1), "field": "name", "value": "Bob"})])
    >>> runtime.commit_to_entity(runtime.store.get(Ident("person", 1)))
    True
    >>> runtime.store.get(Ident("person", 1))["name"]
    'Bob'
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, TextIO
import uuid

from formgraph.config import EngineContext
from formgraph.events import EventEmitter, FormEvent, JsonlJournal
from formgraph.mutations import COMMIT_TO_ENTITY, RESET_FROM_ENTITY, VALIDATE_FORM, RemoteEcho
from formgraph.overlay import form_ident
from formgraph.schema import FormClass
from formgraph.store import GraphStore
from formgraph.types import EventType, Ident
from formgraph.validation import is_valid, validate_fields
from formgraph.walker import init_form

logger = logging.getLogger(__name__)

# Refresh marker asking views of forms to re-read the store
FORM_ROOT = "ui/form-root"

RemoteSink = Callable[[RemoteEcho], None]


@dataclass(frozen=True)
class Mutation:
    """A named mutation and its parameters, as scheduled in a transaction."""
    name: str
    params: Dict[str, Any] = field(default_factory=dict)


class FormRuntime:
    """Applies form transactions to a graph store.

    Attributes:
        context: Engine configuration (validators, reporter, mutations, ...)
        emitter: Receives a FormEvent for each step of every transaction

    Remote writes produced by mutations are handed to remote_sink when one is
    given; delivery is fire-and-forget and a failing sink is only logged.
    Without a sink they are queued until drain_remote() is called.

    When a journal stream is given, every emitted event is also appended to
    it as one line of JSON (see events.read_journal).

    Not thread-safe: transactions are expected to be issued from one thread.
    """

    def __init__(
        self,
        store: Optional[GraphStore] = None,
        context: Optional[EngineContext] = None,
        remote_sink: Optional[RemoteSink] = None,
        emitter: Optional[EventEmitter] = None,
        journal: Optional[TextIO] = None,
    ):
        self.context = context or EngineContext.default()
        self.emitter = emitter or EventEmitter()
        self._store = store if store is not None else GraphStore()
        self._remote_sink = remote_sink
        self._remote_queue: List[RemoteEcho] = []
        if journal is not None:
            self.emitter.on_any(JsonlJournal(journal))

    @property
    def store(self) -> GraphStore:
        return self._store

    def replace_store(self, store: GraphStore) -> None:
        """Swap in a whole new store, e.g. after loading data."""
        self._store = store

    def transact(self, mutations: Sequence[Mutation], refresh: Sequence[str] = ()) -> None:
        """Apply mutations in order as one transaction.

        If any mutation raises, the exception propagates and the store is left
        exactly as it was before the transaction.

        Raises:
            UnknownMutationError: If a mutation name is not registered
        """
        store = self._store
        applied: List[Mutation] = []
        echoes: List[RemoteEcho] = []
        for mutation in mutations:
            handler = self.context.mutation(mutation.name)
            result = handler(self.context, store, **mutation.params)
            store = result.store
            applied.append(mutation)
            if result.remote is not None:
                echoes.append(result.remote)

        self._store = store
        logger.debug("Committed transaction of %d mutation(s)", len(applied))

        for mutation in applied:
            self._emit(EventType.MUTATION_APPLIED, mutation.params.get("form_ident"),
                       {"mutation": mutation.name})
        self._emit(EventType.TRANSACTION_COMMITTED, None,
                   {"mutations": [m.name for m in applied]})
        for echo in echoes:
            self._send_remote(echo)
        for key in refresh:
            self._emit(EventType.REFRESH_REQUESTED, None, {"key": key})

    def init_form(self, form_class: FormClass, ident: Ident) -> None:
        """Build form state for the entity at ident and all of its nested forms."""
        self._store = init_form(self._store, form_class, ident, self.context.tempids)

    def validate_entire_form(self, form: Mapping[str, Any]) -> None:
        """Validate the form tree rooted at form as a transaction."""
        self.transact([Mutation(VALIDATE_FORM, {"form_ident": form_ident(form)})], refresh=[FORM_ROOT])

    def reset_from_entity(self, form: Mapping[str, Any]) -> None:
        """Discard unsaved edits, then re-validate, in one transaction."""
        ident = form_ident(form)
        self.transact(
            [
                Mutation(RESET_FROM_ENTITY, {"form_ident": ident}),
                Mutation(VALIDATE_FORM, {"form_ident": ident}),
            ],
            refresh=[FORM_ROOT],
        )

    def commit_to_entity(self, form: Mapping[str, Any], remote: bool = False) -> bool:
        """Commit the form to its entity if it validates.

        The form is validated locally first. An invalid form is not committed;
        validate-form is transacted instead so the failures show up in the
        store. Returns True if the entity was written.
        """
        ident = form_ident(form)
        if is_valid(validate_fields(self.context.validators, dict(form))):
            before = self._store
            self.transact([Mutation(COMMIT_TO_ENTITY, {"form_ident": ident, "remote": remote})],
                          refresh=[FORM_ROOT])
            # a commit that only reported a diagnostic leaves the store as it was
            return self._store is not before
        logger.debug("Form %s failed validation; not committing", ident)
        self.transact([Mutation(VALIDATE_FORM, {"form_ident": ident})], refresh=[FORM_ROOT])
        return False

    def pending_remote(self) -> List[RemoteEcho]:
        return list(self._remote_queue)

    def drain_remote(self) -> List[RemoteEcho]:
        """Return and forget every queued remote write."""
        drained, self._remote_queue = self._remote_queue, []
        return drained

    def _send_remote(self, echo: RemoteEcho) -> None:
        self._emit(EventType.REMOTE_QUEUED, echo.ident, {"mutation": echo.mutation})
        if self._remote_sink is None:
            self._remote_queue.append(echo)
            return
        try:
            self._remote_sink(echo)
        except Exception:
            logger.exception("Remote sink failed for %s on %s", echo.mutation, echo.ident)

    def _emit(self, event_type: EventType, ident: Optional[Ident], payload: Dict[str, Any]) -> None:
        self.emitter.emit(FormEvent(
            event_id=f"evt_{uuid.uuid4().hex[:16]}",
            type=event_type,
            ts=datetime.now(timezone.utc),
            ident=ident,
            payload=payload,
        ))


__all__ = [
    "FORM_ROOT",
    "Mutation",
    "FormRuntime",
    "RemoteSink",
]
