"""Directory convention of an assembled OpenCode tree.

    <root>/bin/opencode                                   launcher or symlink
    <root>/lib/node_modules/opencode-ai/                  generic package
    <root>/lib/node_modules/opencode-<os>-<cpu>/bin/opencode
    <root>/lib/runtime/                                   curated libraries (linux)
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from opencode_flake.models.platforms import BINARY_NAME


class PackageLayout(BaseModel):
    model_config = ConfigDict(frozen=True)

    root: Path
    main_package: str
    platform_package: str
    binary_name: str = BINARY_NAME

    @property
    def node_modules(self) -> Path:
        return self.root / "lib" / "node_modules"

    @property
    def main_dir(self) -> Path:
        return self.node_modules / self.main_package

    @property
    def platform_dir(self) -> Path:
        return self.node_modules / self.platform_package

    @property
    def binary_path(self) -> Path:
        return self.platform_dir / "bin" / self.binary_name

    @property
    def bin_dir(self) -> Path:
        return self.root / "bin"

    @property
    def launcher_path(self) -> Path:
        return self.bin_dir / self.binary_name

    @property
    def runtime_lib_dir(self) -> Path:
        return self.root / "lib" / "runtime"

    def relocated(self, root: Path) -> PackageLayout:
        """The same layout rooted at *root*."""
        return self.model_copy(update={"root": root})
