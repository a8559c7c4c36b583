"""Release state machine.

Enforces the VALID_TRANSITIONS table for one coordinator run and records
every transition in order.
"""

from __future__ import annotations

import logging

from opencode_flake.errors import InvalidTransitionError
from opencode_flake.models.release import (
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    ReleaseState,
    ReleaseTransition,
)

logger = logging.getLogger(__name__)


class ReleaseMachine:
    """Tracks the state of a single release attempt."""

    def __init__(self) -> None:
        self._state = ReleaseState.IDLE
        self._history: list[ReleaseTransition] = []

    @property
    def state(self) -> ReleaseState:
        return self._state

    @property
    def history(self) -> list[ReleaseTransition]:
        return list(self._history)

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    def reached(self, state: ReleaseState) -> bool:
        """Whether the run has ever entered *state*."""
        return self._state == state or any(t.to_state == state for t in self._history)

    def can_transition(self, target: ReleaseState) -> bool:
        return target in VALID_TRANSITIONS.get(self._state, set())

    def transition(self, target: ReleaseState, detail: str = "") -> ReleaseTransition:
        """Move to *target*, raising InvalidTransitionError if not allowed."""
        if not self.can_transition(target):
            allowed = sorted(s.value for s in VALID_TRANSITIONS.get(self._state, set()))
            raise InvalidTransitionError(
                f"Cannot transition release from {self._state.value} to {target.value}. "
                f"Allowed: {allowed}"
            )
        record = ReleaseTransition(from_state=self._state, to_state=target, detail=detail)
        self._history.append(record)
        logger.info("Release %s -> %s %s", self._state.value, target.value, detail)
        self._state = target
        return record
