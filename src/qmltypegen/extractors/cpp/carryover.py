"""Pending override annotations inside a class body.

Some documentation macros modify the declaration that follows them rather
than acting where they appear. The scanner feeds events into
:class:`Carryover`; every legal ``(state, event)`` pair is listed in
``_TRANSITIONS`` and anything else is a parse error.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from qmltypegen.errors import ParseError


class State(enum.Enum):
    NONE = "no pending override"
    TYPE_OVERRIDE = "pending type override"
    BASE_OVERRIDE = "pending base class override"


class Event(enum.Enum):
    TYPE_OVERRIDE = "type override"
    BASE_OVERRIDE = "base class override"
    PROPERTY = "property"
    CLASSIFY = "classification macro"
    END = "end of class"


class Action(enum.Enum):
    PASS = "pass"  # nothing pending, nothing to do
    HOLD = "hold"  # remember the event's value
    KEEP = "keep"  # leave the pending value for a later event
    APPLY = "apply"  # hand the pending value to this event
    APPLY_THEN_HOLD = "apply-then-hold"


_TRANSITIONS: dict[tuple[State, Event], tuple[Action, State]] = {
    (State.NONE, Event.TYPE_OVERRIDE): (Action.HOLD, State.TYPE_OVERRIDE),
    (State.NONE, Event.BASE_OVERRIDE): (Action.HOLD, State.BASE_OVERRIDE),
    (State.NONE, Event.PROPERTY): (Action.PASS, State.NONE),
    (State.NONE, Event.CLASSIFY): (Action.PASS, State.NONE),
    (State.NONE, Event.END): (Action.PASS, State.NONE),
    (State.TYPE_OVERRIDE, Event.PROPERTY): (Action.APPLY, State.NONE),
    (State.TYPE_OVERRIDE, Event.CLASSIFY): (Action.KEEP, State.TYPE_OVERRIDE),
    (State.BASE_OVERRIDE, Event.PROPERTY): (Action.KEEP, State.BASE_OVERRIDE),
    (State.BASE_OVERRIDE, Event.CLASSIFY): (Action.APPLY, State.NONE),
    (State.BASE_OVERRIDE, Event.END): (Action.APPLY, State.NONE),
    (State.BASE_OVERRIDE, Event.TYPE_OVERRIDE): (
        Action.APPLY_THEN_HOLD,
        State.TYPE_OVERRIDE,
    ),
}


@dataclass
class Carryover:
    state: State = State.NONE
    value: str | None = None

    def feed(self, event: Event, value: str | None = None) -> tuple[State, str] | None:
        """Advance on *event*.

        Returns ``(state, value)`` of an override that has to be applied now,
        or None.
        """
        try:
            action, next_state = _TRANSITIONS[(self.state, event)]
        except KeyError:
            raise ParseError(
                f"unexpected {event.value} with {self.state.value} `{self.value}`"
            ) from None

        applied = None
        if action in (Action.APPLY, Action.APPLY_THEN_HOLD):
            applied = (self.state, self.value)
        if action in (Action.HOLD, Action.APPLY_THEN_HOLD):
            self.value = value
        elif action is not Action.KEEP:
            self.value = None
        self.state = next_state
        return applied
