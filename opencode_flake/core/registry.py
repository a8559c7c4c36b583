"""npm registry client — the version oracle and tarball fetcher.

All HTTP traffic to the registry goes through this module.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from opencode_flake.core.artifact_store import TarballCache
from opencode_flake.core.hasher import require_sri
from opencode_flake.errors import RegistryError

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"


class RegistryClient:
    """Queries package metadata and downloads tarballs.

    Parameters
    ----------
    registry_url:
        Base URL of the npm-compatible registry.
    client:
        An ``httpx.Client`` to use.  One is created (and owned) if omitted.
    cache:
        Optional verified-tarball cache consulted by ``fetch_verified``.
    """

    def __init__(
        self,
        registry_url: str = DEFAULT_REGISTRY_URL,
        *,
        client: httpx.Client | None = None,
        cache: TarballCache | None = None,
        timeout: float = 60.0,
    ) -> None:
        self._base = registry_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)
        self._cache = cache

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> RegistryClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Version oracle
    # ------------------------------------------------------------------

    def latest_version(self, package: str) -> str:
        """Return the ``latest`` dist-tag of *package*."""
        url = f"{self._base}/{package}"
        try:
            data = self._get(url).json()
        except ValueError as exc:
            raise RegistryError(f"Invalid JSON from {url}: {exc}") from exc
        if not isinstance(data, dict):
            raise RegistryError(f"Unexpected metadata shape from {url}")
        tags = data.get("dist-tags") or {}
        if not isinstance(tags, dict):
            raise RegistryError(f"Malformed dist-tags for {package} at {url}: {tags!r}")
        latest = tags.get("latest")
        if not isinstance(latest, str) or not latest:
            raise RegistryError(f"No 'latest' dist-tag for {package} at {url}")
        logger.info("Latest version of %s from registry: %s", package, latest)
        return latest

    # ------------------------------------------------------------------
    # Tarballs
    # ------------------------------------------------------------------

    def tarball_url(self, package: str, version: str) -> str:
        return f"{self._base}/{package}/-/{package}-{version}.tgz"

    def download_tarball(self, package: str, version: str) -> bytes:
        """Download a tarball without verification (used to compute pins)."""
        url = self.tarball_url(package, version)
        logger.debug("Downloading %s", url)
        return self._get(url).content

    def fetch_verified(self, package: str, version: str, expected_hash: str) -> bytes:
        """Return tarball bytes that match *expected_hash*.

        Serves from the cache when possible.  A download that does not match
        raises HashMismatchError and is never cached.
        """
        if self._cache is not None:
            cached = self._cache.get(expected_hash)
            if cached is not None:
                return cached

        data = self.download_tarball(package, version)
        require_sri(data, expected_hash, label=f"{package}-{version}.tgz")

        if self._cache is not None:
            self._cache.put(data, expected_hash)
        return data

    # ------------------------------------------------------------------
    # HTTP helper
    # ------------------------------------------------------------------

    def _get(self, url: str) -> httpx.Response:
        try:
            resp = self._client.get(url)
        except httpx.RequestError as exc:
            raise RegistryError(f"Request to {url} failed: {exc}") from exc
        if resp.status_code != 200:
            raise RegistryError(f"GET {url} returned HTTP {resp.status_code}")
        return resp
