"""Tests for the platform installer variants."""

from __future__ import annotations

import os
import shutil
from pathlib import Path

import pytest

from opencode_flake.errors import PackagingError
from opencode_flake.models.platforms import SUPPORTED_SYSTEMS
from opencode_flake.packaging.installers import (
    DEFAULT_RUNTIME_LIBRARIES,
    IsolatedRuntimeInstaller,
    LinkedBinaryInstaller,
    select_installer,
)
from opencode_flake.packaging.layout import PackageLayout


@pytest.fixture
def layout(tmp_path: Path) -> PackageLayout:
    layout = PackageLayout(
        root=tmp_path / "tree",
        main_package="opencode-ai",
        platform_package="opencode-linux-x64",
    )
    layout.binary_path.parent.mkdir(parents=True)
    layout.binary_path.write_bytes(b"ELF")
    return layout


class TestSelectInstaller:
    @pytest.mark.parametrize(
        ("system", "name"),
        [
            ("x86_64-linux", "isolated-runtime"),
            ("aarch64-linux", "isolated-runtime"),
            ("x86_64-darwin", "linked-binary"),
            ("aarch64-darwin", "linked-binary"),
        ],
    )
    def test_variant_follows_os(self, system: str, name: str):
        assert select_installer(SUPPORTED_SYSTEMS[system]).name == name


class TestIsolatedRuntimeInstaller:
    def test_curated_set(self):
        assert "libstdc++.so.6" in DEFAULT_RUNTIME_LIBRARIES
        assert len(set(DEFAULT_RUNTIME_LIBRARIES)) == len(DEFAULT_RUNTIME_LIBRARIES)

    def test_first_directory_wins(self, tmp_path: Path):
        first, second = tmp_path / "a", tmp_path / "b"
        for directory in (first, second):
            directory.mkdir()
            (directory / "libz.so.1").write_bytes(directory.name.encode())

        installer = IsolatedRuntimeInstaller([first, second], libraries=["libz.so.1"])
        assert installer.resolve_libraries() == {"libz.so.1": (first / "libz.so.1").resolve()}

    def test_missing_libraries_are_reported(self, layout: PackageLayout, caplog):
        installer = IsolatedRuntimeInstaller([], libraries=["libnothere.so.1"])
        with caplog.at_level("WARNING"):
            result = installer.install(layout)
        assert result.resolved_libraries == []
        assert "libnothere.so.1" in caplog.text

    def test_launcher_substitutions(self, layout: PackageLayout):
        result = IsolatedRuntimeInstaller().install(layout)
        text = result.launcher_path.read_text()
        assert "@PLATFORM_PACKAGE@" not in text and "@BINARY@" not in text
        assert 'exec "$root/lib/node_modules/opencode-linux-x64/bin/opencode" "$@"' in text
        assert os.access(result.launcher_path, os.X_OK)


class TestLinkedBinaryInstaller:
    def test_symlink_without_patch(self, layout: PackageLayout):
        result = LinkedBinaryInstaller().install(layout)
        assert result.launcher_path.is_symlink()
        assert result.launcher_path.read_bytes() == b"ELF"

    def test_missing_patcher(self, layout: PackageLayout, tmp_path: Path):
        installer = LinkedBinaryInstaller([tmp_path], patcher="no-such-patcher-binary")
        with pytest.raises(PackagingError, match="no-such-patcher-binary not found"):
            installer.install(layout)

    @pytest.mark.skipif(shutil.which("false") is None, reason="false(1) not available")
    def test_patcher_failure(self, layout: PackageLayout, tmp_path: Path):
        installer = LinkedBinaryInstaller([tmp_path], patcher="false")
        with pytest.raises(PackagingError, match="false failed"):
            installer.install(layout)

    def test_darwin_uses_mach_o_rpath_tool(self):
        installer = select_installer(SUPPORTED_SYSTEMS["aarch64-darwin"], [Path("/opt/lib")])
        assert isinstance(installer, LinkedBinaryInstaller)
        assert installer._patcher == "install_name_tool"

    def test_patch_command_adds_one_rpath_per_directory(self, tmp_path: Path):
        installer = LinkedBinaryInstaller([Path("/opt/a"), Path("/opt/b")])
        binary = tmp_path / "opencode"
        assert installer.patch_command("install_name_tool", binary) == [
            "install_name_tool",
            "-add_rpath",
            "/opt/a",
            "-add_rpath",
            "/opt/b",
            str(binary),
        ]

    @pytest.mark.skipif(shutil.which("sh") is None, reason="sh not available")
    def test_patcher_receives_binary(self, layout: PackageLayout, tmp_path: Path):
        record = tmp_path / "args.txt"
        patcher = tmp_path / "fake-install-name-tool"
        patcher.write_text(f'#!/bin/sh\nprintf "%s\\n" "$@" > "{record}"\n')
        patcher.chmod(0o755)

        LinkedBinaryInstaller([Path("/opt/lib")], patcher=str(patcher)).install(layout)

        assert record.read_text().splitlines() == ["-add_rpath", "/opt/lib", str(layout.binary_path)]
