"""``opencode-flake release`` — one run of the update-and-release loop.

Checks for drift; if there is any, re-pins on an update branch, commits,
tags, fast-forwards trunk, pushes and publishes the GitHub release.  The
update branch is always removed locally before the command exits.
"""

from __future__ import annotations

import typer
from rich.panel import Panel
from rich.table import Table

from opencode_flake.cli.commands._common import console, fail, load_config
from opencode_flake.core.orchestrator import UpdateOrchestrator
from opencode_flake.errors import MergeRaceError, OpencodeFlakeError
from opencode_flake.models.release import ReleaseOutcome


def _print_history(outcome: ReleaseOutcome) -> None:
    table = Table(title=f"Release {outcome.transaction.tag_name}")
    table.add_column("From", style="dim")
    table.add_column("To", style="cyan")
    table.add_column("Detail")
    for record in outcome.history:
        table.add_row(record.from_state.value, record.to_state.value, record.detail)
    console.print(table)


def release_cmd(
    version: str = typer.Option(
        "",
        "--version",
        help="Release this version instead of the registry's latest.",
    ),
) -> None:
    """Update the pinned OpenCode version and cut a release if upstream moved."""
    config = load_config()
    orchestrator = UpdateOrchestrator(config)
    try:
        report = orchestrator.run(version or None)
    except MergeRaceError as exc:
        if orchestrator.coordinator.last_outcome is not None:
            _print_history(orchestrator.coordinator.last_outcome)
        console.print(
            Panel(
                "\n".join([
                    "[bold red]Merge failed[/bold red] - the update was prepared but "
                    "could not be fast-forwarded.",
                    "",
                    f"[bold]Branch:[/bold] {exc.branch_name}",
                    "",
                    f"[dim]{exc.trunk} changed during this run (another workflow or a",
                    "manual commit). Review the branch and merge it by hand.[/dim]",
                ]),
                title="[bold]Manual intervention required[/bold]",
                border_style="red",
                padding=(1, 2),
            )
        )
        raise typer.Exit(code=1)
    except OpencodeFlakeError as exc:
        if orchestrator.coordinator.last_outcome is not None:
            _print_history(orchestrator.coordinator.last_outcome)
        fail(exc)

    if report.outcome is None:
        console.print(f"[dim]Already at latest version: {report.decision.current}[/dim]")
        return

    _print_history(report.outcome)
    console.print(
        Panel(
            "\n".join([
                "[bold green]Release complete![/bold green]",
                "",
                f"[bold]Version:[/bold] {report.decision.current} -> {report.decision.latest}",
                f"[bold]Tag:[/bold]     {report.outcome.transaction.tag_name}",
                f"[bold]URL:[/bold]     {report.outcome.release_url or '-'}",
            ]),
            title="[bold]OpenCode Flake[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
