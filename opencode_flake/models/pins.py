"""Pinned release model — the version plus its per-package content hashes."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from opencode_flake.errors import MissingHashError
from opencode_flake.models.platforms import PLATFORM_KEYS, PlatformKey


class PinnedRelease(BaseModel):
    """One logical record spanning the version file and the hash file.

    ``hashes`` maps npm package name to an SRI hash (``sha256-<base64>``).
    The main package and every platform package must have an entry before a
    build or commit may proceed.
    """

    model_config = ConfigDict(frozen=True)

    version: str
    hashes: dict[str, str] = {}
    main_package: str = "opencode-ai"

    def hash_for(self, package: str) -> str:
        """Return the pinned hash for *package* or raise MissingHashError."""
        try:
            return self.hashes[package]
        except KeyError:
            raise MissingHashError(f"Hash for {package} not defined") from None

    def hash_for_platform(self, key: PlatformKey) -> str:
        return self.hash_for(key.package_name)

    def required_packages(self) -> list[str]:
        return [self.main_package, *(key.package_name for key in PLATFORM_KEYS)]

    def missing_packages(self) -> list[str]:
        return [name for name in self.required_packages() if name not in self.hashes]

    def require_complete(self) -> None:
        """Raise MissingHashError naming the first package without a hash."""
        missing = self.missing_packages()
        if missing:
            raise MissingHashError(
                f"Hash for {missing[0]} not defined "
                f"({len(missing)} missing: {', '.join(missing)})"
            )
