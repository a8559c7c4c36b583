"""``opencode-flake tag-version`` — tag HEAD with the pinned version."""

from __future__ import annotations

from opencode_flake.cli.commands._common import console, fail, load_config
from opencode_flake.core.coordinator import tag_current_version
from opencode_flake.core.git import GitClient
from opencode_flake.core.orchestrator import build_pin_store
from opencode_flake.errors import OpencodeFlakeError


def tag_version_cmd() -> None:
    """Create the ``v<version>`` tag for the version pinned in the working tree."""
    config = load_config()
    try:
        tag = tag_current_version(build_pin_store(config), GitClient(config.repo_dir))
    except OpencodeFlakeError as exc:
        fail(exc)
    console.print(f"[bold green]Tagged[/bold green] {tag}")
