"""Runtime configuration — env-driven.

Reads from a .env file and OPENCODE_FLAKE_* environment variables.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.console import Console
from rich.logging import RichHandler


class FlakeConfig(BaseSettings):
    """Settings for the version check, update, release and build commands.

    Examples
    --------
    Override via environment::

        export OPENCODE_FLAKE_TRUNK_BRANCH=main
        export OPENCODE_FLAKE_LOG_LEVEL=DEBUG
        export OPENCODE_FLAKE_LIBRARY_DIRS='["/usr/lib/x86_64-linux-gnu"]'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="OPENCODE_FLAKE_",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = "INFO"

    # Upstream registry
    registry_url: str = "https://registry.npmjs.org"
    main_package: str = "opencode-ai"
    http_timeout_seconds: float = 60.0

    # Pinned metadata files
    repo_dir: Path = Path(".")
    version_file: Path = Path("flake.nix")
    version_attribute: str = "opencodeVersion"
    hash_file: Path = Path("package.nix")
    hashes_attribute: str = "packageHashes"

    # Git / release
    remote: str = "origin"
    trunk_branch: str = "master"
    git_user_name: str = "github-actions[bot]"
    git_user_email: str = "github-actions[bot]@users.noreply.github.com"
    preserve_failed_branch: bool = True
    github_repo: str = "AodhanHayter/opencode-flake"
    github_api_url: str = "https://api.github.com"
    github_token: str = Field(
        default="",
        validation_alias=AliasChoices("OPENCODE_FLAKE_GITHUB_TOKEN", "GITHUB_TOKEN"),
    )

    # Packaging
    cache_path: Path | None = Path(".opencode-flake/cache")
    out_path: Path = Path("result")
    library_dirs: list[Path] = []

    @property
    def version_path(self) -> Path:
        return self.repo_dir / self.version_file

    @property
    def hash_path(self) -> Path:
        return self.repo_dir / self.hash_file


def configure_logging(level: str = "INFO", console: Console | None = None) -> None:
    """Route stdlib logging through a RichHandler on stderr."""
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
