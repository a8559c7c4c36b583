"""Release automation models — decisions, transactions, state machine."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class VersionDecision(BaseModel):
    """Outcome of comparing the pinned version against upstream."""

    model_config = ConfigDict(frozen=True)

    has_update: bool
    current: str
    latest: str
    source: str = "registry"  # "registry" or "manual"


class UpdateTransaction(BaseModel):
    """Ephemeral record of one update attempt; never persisted."""

    model_config = ConfigDict(frozen=True)

    previous_version: str
    candidate_version: str
    branch_name: str
    tag_name: str

    @classmethod
    def begin(
        cls,
        previous_version: str,
        candidate_version: str,
        *,
        timestamp: int | None = None,
    ) -> UpdateTransaction:
        stamp = int(time.time()) if timestamp is None else timestamp
        return cls(
            previous_version=previous_version,
            candidate_version=candidate_version,
            branch_name=f"update-opencode-{candidate_version}-{stamp}",
            tag_name=tag_name_for(candidate_version),
        )

    @property
    def commit_message(self) -> str:
        return f"Update OpenCode to version {self.candidate_version}"


def tag_name_for(version: str) -> str:
    return f"v{version}"


class ReleaseState(str, Enum):
    """States of one release coordinator run."""

    IDLE = "idle"
    BRANCH_CREATED = "branch_created"
    COMMITTED = "committed"
    TAGGED = "tagged"
    MERGE_ATTEMPTED = "merge_attempted"
    MERGED = "merged"
    MERGE_FAILED = "merge_failed"
    RELEASED = "released"
    ABANDONED = "abandoned"


# Terminal states (RELEASED, ABANDONED) have no outgoing transitions.
# MERGE_ATTEMPTED cannot be abandoned directly: it must resolve first.
VALID_TRANSITIONS: dict[ReleaseState, set[ReleaseState]] = {
    ReleaseState.IDLE: {ReleaseState.BRANCH_CREATED, ReleaseState.ABANDONED},
    ReleaseState.BRANCH_CREATED: {ReleaseState.COMMITTED, ReleaseState.ABANDONED},
    ReleaseState.COMMITTED: {ReleaseState.TAGGED, ReleaseState.ABANDONED},
    ReleaseState.TAGGED: {ReleaseState.MERGE_ATTEMPTED, ReleaseState.ABANDONED},
    ReleaseState.MERGE_ATTEMPTED: {ReleaseState.MERGED, ReleaseState.MERGE_FAILED},
    ReleaseState.MERGED: {ReleaseState.RELEASED, ReleaseState.ABANDONED},
    ReleaseState.MERGE_FAILED: {ReleaseState.ABANDONED},
    ReleaseState.RELEASED: set(),
    ReleaseState.ABANDONED: set(),
}

TERMINAL_STATES = frozenset(
    state for state, targets in VALID_TRANSITIONS.items() if not targets
)


class ReleaseTransition(BaseModel):
    """One recorded state change."""

    model_config = ConfigDict(frozen=True)

    from_state: ReleaseState
    to_state: ReleaseState
    detail: str = ""
    at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ReleaseOutcome(BaseModel):
    """Summary of a finished coordinator run."""

    model_config = ConfigDict(frozen=True)

    transaction: UpdateTransaction
    final_state: ReleaseState
    history: list[ReleaseTransition] = []
    branch_deleted: bool = False
    release_url: str | None = None

    @property
    def released(self) -> bool:
        return self.final_state == ReleaseState.RELEASED


class RunReport(BaseModel):
    """What one automation run decided and, if it released, how it ended."""

    model_config = ConfigDict(frozen=True)

    decision: VersionDecision
    outcome: ReleaseOutcome | None = None
