"""Metadata updater — re-pins the version and every package hash together."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from opencode_flake.core.hasher import sri_sha256
from opencode_flake.core.pin_store import PinStore
from opencode_flake.models.pins import PinnedRelease

logger = logging.getLogger(__name__)


class TarballSource(Protocol):
    def download_tarball(self, package: str, version: str) -> bytes: ...


class MetadataUpdater:
    """Computes fresh hashes for a target version and writes both pin files.

    Every tarball is downloaded and hashed before anything is written, so a
    failure part-way through leaves the files exactly as they were.
    """

    def __init__(self, source: TarballSource, store: PinStore) -> None:
        self._source = source
        self._store = store

    @property
    def paths(self) -> list[Path]:
        return self._store.paths

    def compute_release(self, version: str) -> PinnedRelease:
        current = self._store.read()
        template = PinnedRelease(version=version, main_package=current.main_package)

        hashes: dict[str, str] = {}
        for package in template.required_packages():
            data = self._source.download_tarball(package, version)
            hashes[package] = sri_sha256(data)
            logger.info("%s@%s -> %s", package, version, hashes[package])

        release = template.model_copy(update={"hashes": hashes})
        release.require_complete()
        return release

    def update(self, version: str) -> PinnedRelease:
        """Pin *version*; return the release that was written."""
        logger.info("Updating OpenCode pins to version %s", version)
        release = self.compute_release(version)
        self._store.write(release)
        return release
