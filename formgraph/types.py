"""Core type definitions for formgraph.

This module defines the fundamental value types used throughout the engine:
- Ident: Structural key locating one entity in the graph store
- TempId: Placeholder id for entities that have not been persisted yet
- FieldType: Kinds of form fields
- Validity: Per-field validation state
- Cardinality: Arity of a subform relation
- DiagnosticCode: Categories of non-fatal problems reported by the engine
- EventType: Notification types emitted by the transaction runtime
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict
import uuid


class FieldType(str, Enum):
    """Kinds of fields a form schema may declare."""
    IDENTITY = "identity"
    TEXT = "text"
    INTEGER = "integer"
    CHECKBOX = "checkbox"
    DROPDOWN = "dropdown"
    SUBFORM = "subform"


class Validity(str, Enum):
    """Validation state of a single form field.

    Fields start UNCHECKED (identity fields start VALID) and only move to
    VALID or INVALID through validation (see formgraph.validity).
    """
    UNCHECKED = "unchecked"
    VALID = "valid"
    INVALID = "invalid"


class Cardinality(str, Enum):
    """Arity of a subform relation."""
    ONE = "one"
    MANY = "many"


class DiagnosticCode(str, Enum):
    """Categories of non-fatal problems handed to the error reporter."""
    FORM_NOT_INITIALIZED = "form_not_initialized"
    MISSING_ENTITY = "missing_entity"
    UNKNOWN_FIELD = "unknown_field"
    INVALID_VALUE = "invalid_value"


class EventType(str, Enum):
    """Notification types emitted by the transaction runtime."""
    MUTATION_APPLIED = "mutation.applied"
    TRANSACTION_COMMITTED = "transaction.committed"
    REFRESH_REQUESTED = "refresh.requested"
    REMOTE_QUEUED = "remote.queued"


@dataclass(frozen=True)
class Ident:
    """Location of one entity in the graph store.

    Attributes:
        table: Type tag of the entity (e.g., "person")
        id: Identifier of the entity within its table

    Examples:
        >>> Ident("person", 1) == Ident("person", 1)
        True
        >>> Ident("person", 1)
        Ident(table='person', id=1)
    """
    table: str
    id: Any

    def __str__(self) -> str:
        return f"[{self.table} {self.id}]"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        ident_id = self.id.to_dict() if isinstance(self.id, TempId) else self.id
        return {"table": self.table, "id": ident_id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Ident":
        """Create Ident from dict."""
        ident_id = data["id"]
        if isinstance(ident_id, dict) and "tempid" in ident_id:
            ident_id = TempId.from_dict(ident_id)
        return cls(table=data["table"], id=ident_id)


@dataclass(frozen=True)
class TempId:
    """Placeholder id assigned to identity fields of unsaved entities.

    A TempId is expected to be replaced by a real id once the entity has been
    persisted remotely. Forms holding one are always considered dirty.
    """
    token: str

    def __repr__(self) -> str:
        return f"#tempid[{self.token}]"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {"tempid": self.token}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TempId":
        """Create TempId from dict."""
        return cls(token=data["tempid"])


class UUIDTempIdGenerator:
    """Default placeholder id source, unique across the process."""

    def __call__(self) -> TempId:
        return TempId(token=uuid.uuid4().hex)


def is_tempid(value: Any) -> bool:
    """Return True if value is a placeholder id."""
    return isinstance(value, TempId)


__all__ = [
    "FieldType",
    "Validity",
    "Cardinality",
    "DiagnosticCode",
    "EventType",
    "Ident",
    "TempId",
    "UUIDTempIdGenerator",
    "is_tempid",
]
