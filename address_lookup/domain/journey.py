"""Journey step sequence as an explicit finite-state machine.

``transition`` is pure: it never touches the keystore or the provider. The
journey service performs the side effects of a step (validation, lookups,
persistence) and then asks the machine where the user goes next.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union


class JourneyState(str, Enum):
    BEGIN = "begin"
    COUNTRY_PICKER = "country-picker"
    LOOKUP = "lookup"
    SELECT = "select"
    EDIT = "edit"
    CONFIRM = "confirm"
    DONE = "done"

    @property
    def is_terminal(self) -> bool:
        return self is JourneyState.DONE


@dataclass(frozen=True, slots=True)
class Begin:
    uk_mode: bool


@dataclass(frozen=True, slots=True)
class CountryPicked:
    is_uk: bool


@dataclass(frozen=True, slots=True)
class LookupCompleted:
    candidate_count: int


@dataclass(frozen=True, slots=True)
class ManualEntryRequested:
    pass


@dataclass(frozen=True, slots=True)
class AddressSelected:
    pass


@dataclass(frozen=True, slots=True)
class AddressEdited:
    pass


@dataclass(frozen=True, slots=True)
class ChangeRequested:
    pass


@dataclass(frozen=True, slots=True)
class SearchAgainRequested:
    pass


@dataclass(frozen=True, slots=True)
class ConfirmRequested:
    has_staged_address: bool


Event = Union[
    Begin,
    CountryPicked,
    LookupCompleted,
    ManualEntryRequested,
    AddressSelected,
    AddressEdited,
    ChangeRequested,
    SearchAgainRequested,
    ConfirmRequested,
]


@dataclass(frozen=True, slots=True)
class Redirect:
    step: JourneyState


@dataclass(frozen=True, slots=True)
class Complete:
    pass


@dataclass(frozen=True, slots=True)
class Reject:
    reason: str


Effect = Union[Redirect, Complete, Reject]


_NON_TERMINAL = frozenset(state for state in JourneyState if not state.is_terminal)

_ALLOWED_FROM: dict[type, frozenset[JourneyState]] = {
    Begin: _NON_TERMINAL,
    CountryPicked: _NON_TERMINAL,
    LookupCompleted: _NON_TERMINAL,
    ManualEntryRequested: _NON_TERMINAL,
    AddressSelected: frozenset(
        {JourneyState.SELECT, JourneyState.EDIT, JourneyState.CONFIRM}
    ),
    AddressEdited: _NON_TERMINAL,
    ChangeRequested: frozenset({JourneyState.CONFIRM, JourneyState.EDIT}),
    SearchAgainRequested: _NON_TERMINAL,
    ConfirmRequested: _NON_TERMINAL,
}


def allows(state: JourneyState, event: Event) -> bool:
    """Whether ``event`` may move the journey on from ``state``."""

    allowed = _ALLOWED_FROM.get(type(event))
    if allowed is None:
        raise TypeError(f"Unknown journey event {event!r}")
    return state in allowed


def transition(state: JourneyState, event: Event) -> tuple[JourneyState, Effect]:
    """Return the next state and the effect the web layer should produce."""

    if state.is_terminal:
        return state, Reject("journey already completed")

    if not allows(state, event):
        return state, Redirect(state)

    target = _target(event)
    if target is JourneyState.DONE:
        return target, Complete()
    return target, Redirect(target)


def _target(event: Event) -> JourneyState:
    if isinstance(event, Begin):
        return JourneyState.LOOKUP if event.uk_mode else JourneyState.COUNTRY_PICKER
    if isinstance(event, CountryPicked):
        return JourneyState.LOOKUP if event.is_uk else JourneyState.EDIT
    if isinstance(event, LookupCompleted):
        return JourneyState.SELECT
    if isinstance(event, (ManualEntryRequested, ChangeRequested)):
        return JourneyState.EDIT
    if isinstance(event, (AddressSelected, AddressEdited)):
        return JourneyState.CONFIRM
    if isinstance(event, SearchAgainRequested):
        return JourneyState.LOOKUP
    if isinstance(event, ConfirmRequested):
        return JourneyState.DONE if event.has_staged_address else JourneyState.LOOKUP
    raise TypeError(f"Unknown journey event {event!r}")
