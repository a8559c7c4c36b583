"""Packaging result models."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class BuildResult(BaseModel):
    """Describes an assembled artifact tree."""

    model_config = ConfigDict(frozen=True)

    system: str
    version: str
    root: Path
    binary_path: Path
    launcher_path: Path
    installer: str
    resolved_libraries: list[str] = []
