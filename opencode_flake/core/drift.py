"""Drift detection — pinned version vs. the upstream latest.

Comparison is exact string inequality.  No semantic-version ordering is
applied, so a lower or renamed upstream version also counts as an update.
"""

from __future__ import annotations

import logging
from typing import Protocol

from opencode_flake.models.release import VersionDecision

logger = logging.getLogger(__name__)


class VersionOracle(Protocol):
    def latest_version(self, package: str) -> str: ...


class DriftDetector:
    """Decides whether the pinned version should be replaced.

    Parameters
    ----------
    oracle:
        Source of the latest published version.
    package:
        The package whose ``latest`` tag is consulted.
    """

    def __init__(self, oracle: VersionOracle, package: str = "opencode-ai") -> None:
        self._oracle = oracle
        self._package = package

    def detect(self, current: str, override: str | None = None) -> VersionDecision:
        """Compare *current* against the latest version.

        A non-empty *override* is authoritative and the oracle is not queried.
        """
        if override:
            latest = override
            source = "manual"
            logger.info("Using manual version: %s", latest)
        else:
            latest = self._oracle.latest_version(self._package)
            source = "registry"

        has_update = current != latest
        if has_update:
            logger.info("New version available: %s (current: %s)", latest, current)
        else:
            logger.info("Already at latest version: %s", current)

        return VersionDecision(
            has_update=has_update,
            current=current,
            latest=latest,
            source=source,
        )
