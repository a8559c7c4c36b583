"""opencode-flake: packaging and release automation for OpenCode.

  - Version oracle over the npm registry, exact-match drift detection
  - Pinned version + per-platform SRI hashes kept as one record
  - Release coordinator as an explicit state machine (fast-forward only,
    guaranteed branch cleanup)
  - Verified, atomic artifact builds with per-OS installers
"""

__version__ = "0.3.0"
__description__ = "Packaging and release automation for the OpenCode Nix flake"

from opencode_flake.core.orchestrator import UpdateOrchestrator
from opencode_flake.packaging.builder import ArtifactBuilder

__all__ = ["UpdateOrchestrator", "ArtifactBuilder", "__version__"]
