"""Error taxonomy for opencode-flake.

Every fatal path raises a subclass of ``OpencodeFlakeError`` whose message
names the offending identifier (platform key, package, file path, or
branch).  The CLI turns any of these into a diagnostic and exit code 1.
"""

from __future__ import annotations


class OpencodeFlakeError(RuntimeError):
    """Base class for all opencode-flake failures."""


# ---------------------------------------------------------------------------
# Configuration errors, raised before any network or filesystem mutation
# ---------------------------------------------------------------------------


class ConfigurationError(OpencodeFlakeError):
    """The pinned configuration cannot support the requested operation."""


class UnsupportedPlatformError(ConfigurationError):
    """Raised for a system identifier with no platform key."""


class MissingHashError(ConfigurationError):
    """Raised when the hash table has no entry for a required package."""


class PinFileError(ConfigurationError):
    """Raised when a pinned-metadata file cannot be parsed or rewritten."""


# ---------------------------------------------------------------------------
# Verification errors
# ---------------------------------------------------------------------------


class HashMismatchError(OpencodeFlakeError):
    """Raised when fetched bytes do not match the pinned content hash."""


# ---------------------------------------------------------------------------
# Packaging errors
# ---------------------------------------------------------------------------


class PackagingError(OpencodeFlakeError):
    """Raised when an artifact tree cannot be assembled."""


class BinaryNotFoundError(PackagingError):
    """Raised when the platform binary is absent after extraction."""


# ---------------------------------------------------------------------------
# Coordination errors
# ---------------------------------------------------------------------------


class InvalidTransitionError(OpencodeFlakeError):
    """Raised when a release state transition is not allowed."""


class GitCommandError(OpencodeFlakeError):
    """Raised when a git invocation exits non-zero."""

    def __init__(self, args: list[str], returncode: int, stderr: str) -> None:
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"git {' '.join(args)} failed with exit code {returncode}: "
            f"{stderr.strip() or 'no output'}"
        )


class MergeRaceError(OpencodeFlakeError):
    """Raised when trunk advanced and the fast-forward merge was refused.

    The update branch is left for manual recovery; ``branch_name`` names it.
    """

    def __init__(self, branch_name: str, trunk: str) -> None:
        self.branch_name = branch_name
        self.trunk = trunk
        super().__init__(
            f"Fast-forward merge of {branch_name} into {trunk} failed; "
            f"{trunk} changed during the update. "
            f"Branch {branch_name} holds the update for manual review."
        )


# ---------------------------------------------------------------------------
# External service errors
# ---------------------------------------------------------------------------


class RegistryError(OpencodeFlakeError):
    """Raised when the package registry cannot answer a query."""


class PublishError(OpencodeFlakeError):
    """Raised when the release cannot be published."""
