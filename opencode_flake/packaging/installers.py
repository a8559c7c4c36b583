"""Platform installers — how the extracted binary becomes runnable.

Two variants, chosen once per build from the platform's operating system:

* IsolatedRuntimeInstaller (linux): links a curated library set into the
  tree and writes a launcher that runs the binary against it.
* LinkedBinaryInstaller (darwin): symlinks the binary onto ``bin/`` and
  optionally adds library directories to its Mach-O rpath.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from opencode_flake.errors import PackagingError
from opencode_flake.models.platforms import OperatingSystem, PlatformKey
from opencode_flake.packaging.layout import PackageLayout

logger = logging.getLogger(__name__)

# Runtime libraries the OpenCode binary links against on linux.
DEFAULT_RUNTIME_LIBRARIES: tuple[str, ...] = (
    "libstdc++.so.6",
    "libgcc_s.so.1",
    "libz.so.1",
    "libssl.so.3",
    "libcrypto.so.3",
    "libcurl.so.4",
    "libncursesw.so.6",
    "liblzma.so.5",
)

_LAUNCHER_TEMPLATE = """\
#!/usr/bin/env bash
# OpenCode launcher generated by opencode-flake.
set -e
here="$(dirname "$(readlink -f "${BASH_SOURCE[0]}")")"
root="$(cd "$here/.." && pwd)"
export OPENCODE_ROOT="$root"
export PATH="$root/lib/node_modules/@PLATFORM_PACKAGE@/bin:$PATH"
export LD_LIBRARY_PATH="$root/lib/runtime${LD_LIBRARY_PATH:+:$LD_LIBRARY_PATH}"
exec "$root/lib/node_modules/@PLATFORM_PACKAGE@/bin/@BINARY@" "$@"
"""


class InstallResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    launcher_path: Path
    resolved_libraries: list[str] = []


class PlatformInstaller(Protocol):
    name: str

    def install(self, layout: PackageLayout) -> InstallResult: ...


def make_executable(path: Path) -> None:
    mode = path.stat().st_mode
    path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


class IsolatedRuntimeInstaller:
    """Self-contained launcher resolving libraries from a curated set.

    Parameters
    ----------
    library_dirs:
        Directories searched, in order, for each curated library.
    libraries:
        Sonames to resolve.  Unresolved names are reported, not fatal: the
        system loader remains the fallback.
    """

    name = "isolated-runtime"

    def __init__(
        self,
        library_dirs: Sequence[Path] = (),
        libraries: Sequence[str] = DEFAULT_RUNTIME_LIBRARIES,
    ) -> None:
        self._library_dirs = [Path(d) for d in library_dirs]
        self._libraries = list(libraries)

    def resolve_libraries(self) -> dict[str, Path]:
        resolved: dict[str, Path] = {}
        for soname in self._libraries:
            for directory in self._library_dirs:
                candidate = directory / soname
                if candidate.exists():
                    resolved[soname] = candidate.resolve()
                    break
        return resolved

    def install(self, layout: PackageLayout) -> InstallResult:
        runtime_dir = layout.runtime_lib_dir
        runtime_dir.mkdir(parents=True, exist_ok=True)

        resolved = self.resolve_libraries()
        for soname, target in resolved.items():
            (runtime_dir / soname).symlink_to(target)

        missing = [s for s in self._libraries if s not in resolved]
        if missing:
            logger.warning(
                "Runtime libraries not found in %s: %s",
                [str(d) for d in self._library_dirs] or "(no library dirs)",
                ", ".join(missing),
            )

        layout.bin_dir.mkdir(parents=True, exist_ok=True)
        launcher = layout.launcher_path
        launcher.write_text(
            _LAUNCHER_TEMPLATE.replace("@PLATFORM_PACKAGE@", layout.platform_package)
            .replace("@BINARY@", layout.binary_name),
            encoding="utf-8",
        )
        make_executable(launcher)
        logger.info("Wrote launcher %s (%d libraries linked)", launcher, len(resolved))
        return InstallResult(launcher_path=launcher, resolved_libraries=sorted(resolved))


class LinkedBinaryInstaller:
    """Direct symlink to the binary plus an optional library-path patch.

    The binary is a Mach-O executable, so the patch adds one ``LC_RPATH``
    entry per library directory with ``install_name_tool -add_rpath``.

    Parameters
    ----------
    library_dirs:
        If non-empty, each directory is added to the binary's rpath.
    patcher:
        Executable used for the rpath patch.
    """

    name = "linked-binary"

    def __init__(self, library_dirs: Sequence[Path] = (), patcher: str = "install_name_tool") -> None:
        self._library_dirs = [Path(d) for d in library_dirs]
        self._patcher = patcher

    def install(self, layout: PackageLayout) -> InstallResult:
        layout.bin_dir.mkdir(parents=True, exist_ok=True)
        link = layout.launcher_path
        link.symlink_to(os.path.relpath(layout.binary_path, layout.bin_dir))

        if self._library_dirs:
            self._patch(layout.binary_path)
        return InstallResult(launcher_path=link)

    def patch_command(self, tool: str, binary: Path) -> list[str]:
        command = [tool]
        for directory in self._library_dirs:
            command += ["-add_rpath", str(directory)]
        command.append(str(binary))
        return command

    def _patch(self, binary: Path) -> None:
        tool = shutil.which(self._patcher)
        if tool is None:
            raise PackagingError(f"{self._patcher} not found on PATH; cannot patch {binary}")
        result = subprocess.run(
            self.patch_command(tool, binary),
            capture_output=True,
            text=True,
        )
        if result.returncode != 0:
            raise PackagingError(
                f"{self._patcher} failed on {binary}: {result.stderr.strip() or result.returncode}"
            )
        logger.info(
            "Added rpath entries %s to %s",
            ", ".join(str(d) for d in self._library_dirs),
            binary,
        )


INSTALLERS: dict[OperatingSystem, type[IsolatedRuntimeInstaller] | type[LinkedBinaryInstaller]] = {
    OperatingSystem.LINUX: IsolatedRuntimeInstaller,
    OperatingSystem.DARWIN: LinkedBinaryInstaller,
}


def select_installer(key: PlatformKey, library_dirs: Sequence[Path] = ()) -> PlatformInstaller:
    """Pick the installer variant for *key*'s operating system."""
    return INSTALLERS[key.os](library_dirs=library_dirs)
