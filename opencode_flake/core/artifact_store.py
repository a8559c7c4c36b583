"""Content-addressed tarball cache.

Storage layout: {base_path}/{sha256[0:2]}/{sha256[2:4]}/{sha256}.tgz
Entries are keyed by the pinned hash and re-verified on every read, so a
cache hit is exactly as trustworthy as a fresh download.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from opencode_flake.core.hasher import require_sri, sri_to_hex, verify_sri

logger = logging.getLogger(__name__)


class TarballCache:
    """SHA-256 keyed store of verified npm tarballs.

    Parameters
    ----------
    base_path:
        Root directory for cached tarballs.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)

    @property
    def base_path(self) -> Path:
        return self._base

    def _entry_path(self, sri: str) -> Path:
        digest = sri_to_hex(sri)
        return self._base / digest[:2] / digest[2:4] / f"{digest}.tgz"

    def get(self, sri: str) -> bytes | None:
        """Return cached bytes for *sri*, or None on a miss.

        An entry whose bytes no longer match its address is reported and
        treated as a miss; the next ``put`` overwrites it.
        """
        path = self._entry_path(sri)
        if not path.exists():
            return None
        data = path.read_bytes()
        if not verify_sri(data, sri):
            logger.warning("Cached tarball %s failed integrity check; refetching.", path)
            return None
        logger.debug("Cache hit for %s", sri)
        return data

    def put(self, data: bytes, sri: str) -> Path:
        """Store verified *data* under *sri* and return the entry path."""
        require_sri(data, sri, label=f"cache entry {sri}")
        path = self._entry_path(sri)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".part")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return path

    def exists(self, sri: str) -> bool:
        return self._entry_path(sri).exists()
