"""Main Typer application — imports and registers all CLI commands.

Entry point: ``opencode-flake`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer
from rich.table import Table

from opencode_flake.cli.commands._common import console, fail, load_config
from opencode_flake.cli.commands.build import build_cmd
from opencode_flake.cli.commands.check import check_cmd
from opencode_flake.cli.commands.release import release_cmd
from opencode_flake.cli.commands.tag_version import tag_version_cmd
from opencode_flake.cli.commands.update_version import update_version_cmd
from opencode_flake.config import configure_logging
from opencode_flake.errors import OpencodeFlakeError

app = typer.Typer(
    name="opencode-flake",
    help="Packaging and release automation for the OpenCode Nix flake.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def _main(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to OPENCODE_FLAKE_LOG_LEVEL or INFO).",
    ),
) -> None:
    configure_logging(log_level or load_config().log_level)


# Register subcommands
app.command(name="check", help="Check upstream for a newer OpenCode version.")(check_cmd)
app.command(name="update-version", help="Pin a version and its package hashes.")(update_version_cmd)
app.command(name="tag-version", help="Tag HEAD with the pinned version.")(tag_version_cmd)
app.command(name="release", help="Run the update-and-release loop once.")(release_cmd)
app.command(name="build", help="Package the pinned OpenCode release.")(build_cmd)


@app.command(name="platforms", help="List supported platforms and pinned hashes.")
def platforms_cmd() -> None:
    """Show every supported system with its package and pinned hash."""
    from opencode_flake.core.orchestrator import build_pin_store
    from opencode_flake.models.platforms import SUPPORTED_SYSTEMS

    config = load_config()
    try:
        release = build_pin_store(config).read()
    except OpencodeFlakeError as exc:
        fail(exc)

    table = Table(title=f"OpenCode {release.version}")
    table.add_column("System", style="cyan")
    table.add_column("Platform")
    table.add_column("Package", style="green")
    table.add_column("Hash")

    for system, key in SUPPORTED_SYSTEMS.items():
        sri = release.hashes.get(key.package_name)
        table.add_row(system, str(key), key.package_name, sri or "[red]missing[/red]")
    console.print(table)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
