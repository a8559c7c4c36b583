"""``opencode-flake build`` — package the pinned release for one system."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.panel import Panel

from opencode_flake.cli.commands._common import console, fail, load_config
from opencode_flake.core.orchestrator import build_pin_store, build_registry
from opencode_flake.errors import OpencodeFlakeError
from opencode_flake.models.platforms import current_system
from opencode_flake.packaging.builder import ArtifactBuilder


def build_cmd(
    system: str = typer.Option(
        "",
        "--system",
        "-s",
        help="Nix system identifier, e.g. x86_64-linux. Defaults to this host.",
    ),
    out: Path = typer.Option(
        None,
        "--out",
        "-o",
        help="Output directory. Replaced atomically on success.",
    ),
) -> None:
    """Fetch, verify and install the pinned OpenCode binary."""
    config = load_config()
    try:
        target = system or current_system()
        release = build_pin_store(config).read()
        with build_registry(config) as registry:
            builder = ArtifactBuilder(registry, library_dirs=config.library_dirs)
            result = builder.build(release, target, out or config.out_path)
    except OpencodeFlakeError as exc:
        fail(exc)

    lines = [
        "[bold green]Build complete![/bold green]",
        "",
        f"[bold]Version:[/bold]   {result.version}",
        f"[bold]System:[/bold]    {result.system}",
        f"[bold]Installer:[/bold] {result.installer}",
        f"[bold]Launcher:[/bold]  {result.launcher_path}",
    ]
    if result.resolved_libraries:
        lines.append(f"[bold]Libraries:[/bold] {', '.join(result.resolved_libraries)}")
    console.print(Panel("\n".join(lines), title="[bold]OpenCode[/bold]", border_style="green", padding=(1, 2)))
