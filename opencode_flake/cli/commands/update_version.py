"""``opencode-flake update-version VERSION`` — re-pin version and hashes."""

from __future__ import annotations

import typer
from rich.table import Table

from opencode_flake.cli.commands._common import console, fail, load_config
from opencode_flake.core.metadata_updater import MetadataUpdater
from opencode_flake.core.orchestrator import build_pin_store, build_registry
from opencode_flake.errors import OpencodeFlakeError


def update_version_cmd(
    version: str = typer.Argument(..., help="The OpenCode version to pin."),
) -> None:
    """Download every package tarball for VERSION and rewrite both pin files."""
    config = load_config()
    store = build_pin_store(config)
    try:
        with build_registry(config) as registry:
            release = MetadataUpdater(registry, store).update(version)
    except OpencodeFlakeError as exc:
        fail(exc)

    table = Table(title=f"OpenCode {release.version}")
    table.add_column("Package", style="cyan")
    table.add_column("Hash", style="green")
    for name, sri in release.hashes.items():
        table.add_row(name, sri)
    console.print(table)
    console.print(f"[bold green]Updated[/bold green] {', '.join(str(p) for p in store.paths)}")
