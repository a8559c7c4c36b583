"""opencode-flake CLI — Typer-based command-line interface.

Provides the ``opencode-flake`` command with subcommands for checking
upstream, re-pinning, tagging, releasing and building.

All output uses Rich for formatted terminal display.
"""
