"""Update orchestrator — one scheduled run of the automation loop.

Wires the registry (version oracle), DriftDetector, MetadataUpdater and
ReleaseCoordinator together:

    oracle -> drift detector -> (if drift) metadata updater -> coordinator
"""

from __future__ import annotations

import logging

from opencode_flake.config import FlakeConfig
from opencode_flake.core.artifact_store import TarballCache
from opencode_flake.core.coordinator import ReleaseCoordinator
from opencode_flake.core.drift import DriftDetector
from opencode_flake.core.git import GitClient
from opencode_flake.core.metadata_updater import MetadataUpdater
from opencode_flake.core.pin_store import PinStore
from opencode_flake.core.publisher import GitHubReleasePublisher, ReleasePublisher
from opencode_flake.core.registry import RegistryClient
from opencode_flake.models.release import RunReport, UpdateTransaction, VersionDecision

logger = logging.getLogger(__name__)


def build_pin_store(config: FlakeConfig) -> PinStore:
    return PinStore(
        config.version_path,
        config.hash_path,
        version_attribute=config.version_attribute,
        hashes_attribute=config.hashes_attribute,
        main_package=config.main_package,
    )


def build_registry(config: FlakeConfig) -> RegistryClient:
    cache = TarballCache(config.cache_path) if config.cache_path else None
    return RegistryClient(
        config.registry_url,
        cache=cache,
        timeout=config.http_timeout_seconds,
    )


class UpdateOrchestrator:
    """Runs the version check and, on drift, the full release.

    Parameters
    ----------
    config:
        Runtime configuration.  Defaults are read from the environment.
    registry, git, publisher:
        Collaborators; built from *config* when omitted.
    """

    def __init__(
        self,
        config: FlakeConfig | None = None,
        *,
        registry: RegistryClient | None = None,
        git: GitClient | None = None,
        publisher: ReleasePublisher | None = None,
    ) -> None:
        self.config = config or FlakeConfig()
        self.registry = registry or build_registry(self.config)
        self.git = git or GitClient(self.config.repo_dir)
        self.publisher = publisher or GitHubReleasePublisher(
            self.config.github_repo,
            self.config.github_token,
            api_url=self.config.github_api_url,
        )
        self.store = build_pin_store(self.config)
        self.detector = DriftDetector(self.registry, self.config.main_package)
        self.updater = MetadataUpdater(self.registry, self.store)
        self.coordinator = ReleaseCoordinator(
            self.git,
            self.updater,
            self.store,
            self.publisher,
            remote=self.config.remote,
            trunk=self.config.trunk_branch,
            github_repo=self.config.github_repo,
            preserve_failed_branch=self.config.preserve_failed_branch,
        )

    def check(self, override: str | None = None) -> VersionDecision:
        """Compare the pinned version with upstream (or *override*)."""
        current = self.store.read_version()
        logger.info("Current version: %s", current)
        return self.detector.detect(current, override)

    def run(self, override: str | None = None, *, timestamp: int | None = None) -> RunReport:
        """Check for drift and release if there is any.

        Raises whatever the coordinator raises; cleanup has already run by
        then and ``coordinator.last_outcome`` describes the failed run.
        """
        decision = self.check(override)
        if not decision.has_update:
            return RunReport(decision=decision)

        if self.config.git_user_name and self.config.git_user_email:
            self.git.configure_identity(self.config.git_user_name, self.config.git_user_email)

        txn = UpdateTransaction.begin(decision.current, decision.latest, timestamp=timestamp)
        outcome = self.coordinator.run(txn)
        return RunReport(decision=decision, outcome=outcome)
