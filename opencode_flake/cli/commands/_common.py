"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import NoReturn

import typer
from rich.console import Console

from opencode_flake.config import FlakeConfig
from opencode_flake.errors import OpencodeFlakeError

console = Console()


def load_config() -> FlakeConfig:
    return FlakeConfig()


def fail(exc: OpencodeFlakeError) -> NoReturn:
    """Print *exc* as a diagnostic and exit with code 1."""
    console.print(f"[bold red]{type(exc).__name__}:[/bold red] {exc}")
    raise typer.Exit(code=1)
