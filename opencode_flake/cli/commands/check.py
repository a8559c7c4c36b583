"""``opencode-flake check`` — compare the pinned version with upstream.

When ``$GITHUB_OUTPUT`` is set the decision is also written there as
``has-new-version``, ``current-version`` and ``latest-version`` so later
workflow jobs can branch on it.
"""

from __future__ import annotations

import os
from pathlib import Path

import typer

from opencode_flake.cli.commands._common import console, fail, load_config
from opencode_flake.core.drift import DriftDetector
from opencode_flake.core.orchestrator import build_pin_store, build_registry
from opencode_flake.errors import OpencodeFlakeError
from opencode_flake.models.release import VersionDecision


def write_github_output(decision: VersionDecision, path: Path) -> None:
    with path.open("a", encoding="utf-8") as handle:
        handle.write(f"has-new-version={'true' if decision.has_update else 'false'}\n")
        handle.write(f"current-version={decision.current}\n")
        handle.write(f"latest-version={decision.latest}\n")


def check_cmd(
    version: str = typer.Option(
        "",
        "--version",
        help="Treat this version as the latest instead of asking the registry.",
    ),
) -> None:
    """Report whether a newer OpenCode version than the pinned one exists."""
    config = load_config()
    try:
        store = build_pin_store(config)
        current = store.read_version()
        console.print(f"Current version: [bold]{current}[/bold]")
        with build_registry(config) as registry:
            decision = DriftDetector(registry, config.main_package).detect(current, version or None)
    except OpencodeFlakeError as exc:
        fail(exc)

    if decision.has_update:
        console.print(
            f"[bold green]New version available:[/bold green] {decision.latest} "
            f"(current: {decision.current}, source: {decision.source})"
        )
    else:
        console.print(f"[dim]Already at latest version: {decision.current}[/dim]")

    github_output = os.environ.get("GITHUB_OUTPUT")
    if github_output:
        write_github_output(decision, Path(github_output))
