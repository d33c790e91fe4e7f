"""Per-field validity state machine.

Every form field carries a Validity. The machine is small:

- Fields are created UNCHECKED (identity fields VALID) by the form builder.
- Validation moves any field to VALID or INVALID.
- Nothing moves a field back to UNCHECKED; only rebuilding the form does.

Usage:
    >>> from formgraph.types import Validity
    >>> transition(Validity.UNCHECKED, Validity.INVALID)
    <Validity.INVALID: 'invalid'>
    >>> can_transition(Validity.VALID, Validity.UNCHECKED)
    False
"""

from typing import Dict, Set

from formgraph.types import Validity


class InvalidValidityTransitionError(Exception):
    """Raised when a field's validity would move along a forbidden edge.

    Attributes:
        current: The validity before the attempted transition
        target: The validity that was attempted
    """

    def __init__(self, current: Validity, target: Validity, message: str):
        self.current = current
        self.target = target
        super().__init__(message)


# Maps each validity to the set of validities it can move to
VALID_TRANSITIONS: Dict[Validity, Set[Validity]] = {
    Validity.UNCHECKED: {Validity.VALID, Validity.INVALID},
    Validity.VALID: {Validity.VALID, Validity.INVALID},
    Validity.INVALID: {Validity.VALID, Validity.INVALID},
}


def initial_validity(is_identity: bool) -> Validity:
    """Validity of a freshly built field."""
    return Validity.VALID if is_identity else Validity.UNCHECKED


def can_transition(current: Validity, target: Validity) -> bool:
    return target in VALID_TRANSITIONS.get(current, set())


def transition(current: Validity, target: Validity) -> Validity:
    """Return target if current may move there.

    Raises:
        InvalidValidityTransitionError: If the transition is not allowed
    """
    if not can_transition(current, target):
        raise InvalidValidityTransitionError(
            current=current,
            target=target,
            message=(
                f"Invalid validity transition: cannot move from '{current.value}' to "
                f"'{target.value}'. Valid targets are: "
                f"{', '.join(sorted(v.value for v in VALID_TRANSITIONS[current]))}"
            ),
        )
    return target


def outcome(passed: bool) -> Validity:
    """Validity resulting from a validator outcome."""
    return Validity.VALID if passed else Validity.INVALID


__all__ = [
    "InvalidValidityTransitionError",
    "VALID_TRANSITIONS",
    "initial_validity",
    "can_transition",
    "transition",
    "outcome",
]
