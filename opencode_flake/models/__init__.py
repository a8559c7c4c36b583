"""opencode-flake data models — all Pydantic v2, all frozen (immutable)."""

from opencode_flake.models.artifacts import BuildResult
from opencode_flake.models.pins import PinnedRelease
from opencode_flake.models.platforms import (
    PLATFORM_KEYS,
    SUPPORTED_SYSTEMS,
    Cpu,
    OperatingSystem,
    PlatformKey,
    platform_for_system,
)
from opencode_flake.models.release import (
    VALID_TRANSITIONS,
    ReleaseOutcome,
    ReleaseState,
    ReleaseTransition,
    RunReport,
    UpdateTransaction,
    VersionDecision,
)

__all__ = [
    # platforms
    "Cpu",
    "OperatingSystem",
    "PlatformKey",
    "PLATFORM_KEYS",
    "SUPPORTED_SYSTEMS",
    "platform_for_system",
    # pins
    "PinnedRelease",
    # release
    "VersionDecision",
    "UpdateTransaction",
    "ReleaseState",
    "ReleaseTransition",
    "ReleaseOutcome",
    "RunReport",
    "VALID_TRANSITIONS",
    # artifacts
    "BuildResult",
]
