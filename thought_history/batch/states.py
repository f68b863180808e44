"""Lifecycle of a thought-history repository.

    UNINITIALIZED → INITIALIZING → ACTIVE → DRAINING → CLOSED

A failed initialization falls back to UNINITIALIZED; nothing leaves CLOSED.
"""

from __future__ import annotations

import enum
import logging

from thought_history.exceptions import InvalidStateError

logger = logging.getLogger(__name__)


class LifecycleState(enum.StrEnum):
    UNINITIALIZED = "UNINITIALIZED"
    INITIALIZING = "INITIALIZING"
    ACTIVE = "ACTIVE"
    DRAINING = "DRAINING"
    CLOSED = "CLOSED"


_TRANSITIONS: dict[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.UNINITIALIZED: frozenset({LifecycleState.INITIALIZING}),
    LifecycleState.INITIALIZING: frozenset(
        {LifecycleState.ACTIVE, LifecycleState.UNINITIALIZED}
    ),
    LifecycleState.ACTIVE: frozenset({LifecycleState.DRAINING}),
    LifecycleState.DRAINING: frozenset({LifecycleState.CLOSED}),
    LifecycleState.CLOSED: frozenset(),
}


class Lifecycle:
    def __init__(self, name: str) -> None:
        self._name = name
        self._state = LifecycleState.UNINITIALIZED

    @property
    def state(self) -> LifecycleState:
        return self._state

    def transition(self, new_state: LifecycleState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            raise InvalidStateError(
                f"Cannot move {self._name} from {self._state} to {new_state}"
            )
        logger.debug("[%s] %s -> %s", self._name, self._state, new_state)
        self._state = new_state

    def require(self, *allowed: LifecycleState) -> None:
        if self._state not in allowed:
            expected = ", ".join(allowed)
            raise InvalidStateError(
                f"{self._name} is {self._state}; expected one of: {expected}"
            )
