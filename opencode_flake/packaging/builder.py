"""Artifact builder — turns a pinned release into an installed tree.

Steps, in order:
1. Resolve the platform key and both pinned hashes.  Configuration errors
   surface here, before any download or filesystem write.
2. Fetch both tarballs; each must match its pinned hash.
3. Extract into a fresh staging directory beside the output path.
4. Require the platform binary and mark it executable.
5. Run the platform installer.
6. Swap the staging tree into place.  On failure the staging tree is
   removed and the previous output, if any, is left untouched.
"""

from __future__ import annotations

import io
import logging
import os
import shutil
import tarfile
import tempfile
import uuid
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from opencode_flake.errors import BinaryNotFoundError, PackagingError
from opencode_flake.models.artifacts import BuildResult
from opencode_flake.models.pins import PinnedRelease
from opencode_flake.models.platforms import platform_for_system
from opencode_flake.packaging.installers import make_executable, select_installer
from opencode_flake.packaging.layout import PackageLayout

logger = logging.getLogger(__name__)

NPM_PACKAGE_DIR = "package"


class TarballFetcher(Protocol):
    def fetch_verified(self, package: str, version: str, expected_hash: str) -> bytes: ...


class ArtifactBuilder:
    """Builds the OpenCode tree for one system.

    Parameters
    ----------
    fetcher:
        Source of hash-verified tarballs (normally a RegistryClient).
    library_dirs:
        Passed to the selected platform installer.
    """

    def __init__(self, fetcher: TarballFetcher, *, library_dirs: Sequence[Path] = ()) -> None:
        self._fetcher = fetcher
        self._library_dirs = list(library_dirs)

    def build(self, release: PinnedRelease, system: str, out_dir: Path) -> BuildResult:
        key = platform_for_system(system)
        main_hash = release.hash_for(release.main_package)
        platform_hash = release.hash_for_platform(key)
        installer = select_installer(key, self._library_dirs)

        logger.info("Building OpenCode %s for %s (%s)", release.version, system, installer.name)
        main_tgz = self._fetcher.fetch_verified(release.main_package, release.version, main_hash)
        platform_tgz = self._fetcher.fetch_verified(key.package_name, release.version, platform_hash)

        out_dir = Path(out_dir).absolute()
        out_dir.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{out_dir.name}.", suffix=".staging", dir=out_dir.parent))
        staging.chmod(0o755)
        layout = PackageLayout(
            root=staging,
            main_package=release.main_package,
            platform_package=key.package_name,
        )

        try:
            _extract_package(main_tgz, layout.main_dir, label=release.main_package)
            _extract_package(platform_tgz, layout.platform_dir, label=key.package_name)

            if not layout.binary_path.is_file():
                expected = layout.relocated(out_dir).binary_path
                raise BinaryNotFoundError(f"OpenCode binary not found at expected location: {expected}")
            make_executable(layout.binary_path)

            installed = installer.install(layout)
            _swap_into_place(staging, out_dir)
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        final = layout.relocated(out_dir)
        logger.info("OpenCode %s installed at %s", release.version, out_dir)
        return BuildResult(
            system=system,
            version=release.version,
            root=out_dir,
            binary_path=final.binary_path,
            launcher_path=final.launcher_path,
            installer=installer.name,
            resolved_libraries=installed.resolved_libraries,
        )


def _extract_package(data: bytes, dest: Path, *, label: str) -> None:
    """Extract an npm tarball's ``package/`` directory to exactly *dest*."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.TemporaryDirectory(dir=dest.parent, prefix=".unpack-") as scratch:
        try:
            with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as archive:
                archive.extractall(scratch, filter="data")
        except (tarfile.TarError, OSError) as exc:
            raise PackagingError(f"Cannot unpack {label}: {exc}") from exc

        unpacked = Path(scratch) / NPM_PACKAGE_DIR
        if not unpacked.is_dir():
            raise PackagingError(f"{label} tarball has no {NPM_PACKAGE_DIR}/ directory")
        shutil.move(str(unpacked), str(dest))


def _swap_into_place(staging: Path, out_dir: Path) -> None:
    """Replace *out_dir* with *staging* without merging their contents."""
    backup: Path | None = None
    if out_dir.exists() or out_dir.is_symlink():
        backup = out_dir.with_name(f".{out_dir.name}.old-{uuid.uuid4().hex[:8]}")
        os.replace(out_dir, backup)
    try:
        os.replace(staging, out_dir)
    except OSError:
        if backup is not None:
            os.replace(backup, out_dir)
        raise
    if backup is not None:
        if backup.is_dir() and not backup.is_symlink():
            shutil.rmtree(backup)
        else:
            backup.unlink()
