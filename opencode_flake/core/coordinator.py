"""Release coordinator — branch, commit, tag, fast-forward, push, publish.

The run is driven through ReleaseMachine so every step is a guarded
transition.  Any failure abandons the run; cleanup of the update branch
runs on every path, success or failure.

Only a fast-forward merge into trunk is attempted.  If trunk advanced
while the update was being prepared, nothing is pushed or published and
the update branch is preserved on the remote for a human to review.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from opencode_flake.core.git import GitClient
from opencode_flake.core.metadata_updater import MetadataUpdater
from opencode_flake.core.pin_store import PinStore
from opencode_flake.core.publisher import ReleasePublisher, release_body, release_name
from opencode_flake.core.release_machine import ReleaseMachine
from opencode_flake.errors import GitCommandError, MergeRaceError, OpencodeFlakeError
from opencode_flake.models.release import (
    ReleaseOutcome,
    ReleaseState,
    UpdateTransaction,
    tag_name_for,
)

logger = logging.getLogger(__name__)


def tag_current_version(store: PinStore, git: GitClient) -> str:
    """Tag HEAD as ``v<pinned version>`` and return the tag name."""
    version = store.read_version()
    tag = tag_name_for(version)
    git.tag(tag, f"OpenCode {version}")
    logger.info("Created tag %s", tag)
    return tag


class ReleaseCoordinator:
    """Carries one UpdateTransaction from branch creation to release.

    Parameters
    ----------
    git:
        Git client for the working tree holding the pin files.
    updater:
        Writes the new version and hashes on the update branch.
    store:
        Pin store read back when tagging.
    publisher:
        Publishes the release once trunk and the tag are pushed.
    """

    def __init__(
        self,
        git: GitClient,
        updater: MetadataUpdater,
        store: PinStore,
        publisher: ReleasePublisher,
        *,
        remote: str = "origin",
        trunk: str = "master",
        github_repo: str = "AodhanHayter/opencode-flake",
        preserve_failed_branch: bool = True,
    ) -> None:
        self._git = git
        self._updater = updater
        self._store = store
        self._publisher = publisher
        self._remote = remote
        self._trunk = trunk
        self._repo = github_repo
        self._preserve_failed_branch = preserve_failed_branch
        self.last_outcome: ReleaseOutcome | None = None

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, txn: UpdateTransaction) -> ReleaseOutcome:
        """Execute the release; raises on any failure after cleaning up.

        ``last_outcome`` is populated on both success and failure.
        """
        machine = ReleaseMachine()
        release_url: str | None = None
        try:
            release_url = self._advance(machine, txn)
        except Exception as exc:
            if machine.state == ReleaseState.MERGE_ATTEMPTED:
                machine.transition(ReleaseState.MERGE_FAILED, str(exc))
            if not machine.is_terminal:
                machine.transition(ReleaseState.ABANDONED, str(exc))
            raise
        finally:
            branch_deleted = self._cleanup(machine, txn)
            self.last_outcome = ReleaseOutcome(
                transaction=txn,
                final_state=machine.state,
                history=machine.history,
                branch_deleted=branch_deleted,
                release_url=release_url,
            )
        return self.last_outcome

    def _advance(self, machine: ReleaseMachine, txn: UpdateTransaction) -> str | None:
        version = txn.candidate_version

        logger.info("Creating branch: %s", txn.branch_name)
        self._git.create_branch(txn.branch_name)
        machine.transition(ReleaseState.BRANCH_CREATED, txn.branch_name)

        self._updater.update(version)
        self._git.add(self._updater.paths)
        self._git.commit(txn.commit_message)
        machine.transition(ReleaseState.COMMITTED, txn.commit_message)

        tag = tag_current_version(self._store, self._git)
        if tag != txn.tag_name:
            raise OpencodeFlakeError(
                f"Pinned version tagged as {tag}, expected {txn.tag_name}"
            )
        machine.transition(ReleaseState.TAGGED, tag)

        logger.info("Switching to %s and merging %s", self._trunk, txn.branch_name)
        self._git.checkout(self._trunk)
        self._git.pull(self._remote, self._trunk)
        machine.transition(ReleaseState.MERGE_ATTEMPTED, txn.branch_name)

        if not self._git.merge_ff_only(txn.branch_name):
            machine.transition(ReleaseState.MERGE_FAILED, f"{self._trunk} advanced")
            self._preserve_branch(txn)
            raise MergeRaceError(txn.branch_name, self._trunk)
        machine.transition(ReleaseState.MERGED, f"{txn.branch_name} -> {self._trunk}")

        logger.info("Pushing %s and %s", self._trunk, tag)
        self._git.push(self._remote, self._trunk)
        self._git.push(self._remote, tag)

        url = self._publisher.publish(tag, release_name(version), release_body(version, self._repo))
        machine.transition(ReleaseState.RELEASED, url or tag)
        return url

    def _preserve_branch(self, txn: UpdateTransaction) -> None:
        if not self._preserve_failed_branch:
            logger.warning("Update branch %s is not preserved on %s", txn.branch_name, self._remote)
            return
        try:
            self._git.push(self._remote, txn.branch_name)
        except GitCommandError as exc:
            logger.error("Could not preserve branch %s on %s: %s", txn.branch_name, self._remote, exc)
            return
        logger.warning(
            "Branch %s pushed to %s for manual review", txn.branch_name, self._remote
        )

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def _cleanup(self, machine: ReleaseMachine, txn: UpdateTransaction) -> bool:
        """Remove the local update branch; return True if it is gone."""
        if machine.reached(ReleaseState.BRANCH_CREATED) and not machine.reached(ReleaseState.COMMITTED):
            self._try("discard uncommitted pin changes", self._git.discard, self._updater.paths)

        if (
            machine.state == ReleaseState.ABANDONED
            and machine.reached(ReleaseState.TAGGED)
            and not machine.reached(ReleaseState.MERGED)
        ):
            self._try(f"delete local tag {txn.tag_name}", self._git.delete_tag, txn.tag_name)

        self._try(f"checkout {self._trunk}", self._git.checkout, self._trunk)

        try:
            exists = self._git.branch_exists(txn.branch_name)
        except GitCommandError as exc:
            logger.warning("Cleanup step failed (inspect %s): %s", txn.branch_name, exc)
            return False
        if not exists:
            logger.info("Branch %s already deleted or doesn't exist", txn.branch_name)
            return True
        logger.info("Cleaning up branch: %s", txn.branch_name)
        return self._try(f"delete branch {txn.branch_name}", self._git.delete_branch, txn.branch_name)

    @staticmethod
    def _try(action: str, func: Callable[..., object], *args: object) -> bool:
        try:
            func(*args)
        except GitCommandError as exc:
            logger.warning("Cleanup step failed (%s): %s", action, exc)
            return False
        return True
