"""Shared test fixtures for opencode-flake."""

from __future__ import annotations

import io
import tarfile
from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from opencode_flake.core.hasher import sri_sha256
from opencode_flake.core.pin_store import PinStore
from opencode_flake.core.registry import RegistryClient
from opencode_flake.errors import GitCommandError
from opencode_flake.models.pins import PinnedRelease
from opencode_flake.models.platforms import platform_package_names

MAIN_PACKAGE = "opencode-ai"
ALL_PACKAGES = [MAIN_PACKAGE, *platform_package_names()]

FLAKE_NIX = """\
{
  description = "OpenCode - terminal AI assistant";

  inputs.nixpkgs.url = "github:NixOS/nixpkgs/nixos-unstable";

  outputs = { self, nixpkgs, ... }:
    let
      opencodeVersion = "@VERSION@";
    in
    { };
}
"""

PACKAGE_NIX = """\
{ pkgs, system, version }:

let
  packageHashes = {
@ENTRIES@  };
in
null
"""


def render_package_nix(hashes: dict[str, str]) -> str:
    entries = "".join(f'    "{name}" = "{sri}";\n' for name, sri in hashes.items())
    return PACKAGE_NIX.replace("@ENTRIES@", entries)


def make_npm_tarball(files: dict[str, bytes]) -> bytes:
    """Build an npm-style .tgz with every file under ``package/``."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, content in files.items():
            info = tarfile.TarInfo(f"package/{name}")
            info.size = len(content)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(content))
    return buf.getvalue()


def package_files(package: str, version: str) -> dict[str, bytes]:
    manifest = f'{{"name": "{package}", "version": "{version}"}}'.encode()
    if package == MAIN_PACKAGE:
        return {"package.json": manifest, "bin/opencode": b"#!/usr/bin/env node\n"}
    return {"package.json": manifest, "bin/opencode": f"ELF {package} {version}".encode()}


# ---------------------------------------------------------------------------
# Fake npm registry (served through httpx.MockTransport)
# ---------------------------------------------------------------------------


class FakeNpmRegistry:
    base_url = "https://registry.test"

    def __init__(self) -> None:
        self.tarballs: dict[tuple[str, str], bytes] = {}
        self.latest: dict[str, str] = {}
        self.failing: set[str] = set()
        self.requests: list[str] = []

    def publish(self, version: str, *, latest: bool = True) -> None:
        for package in ALL_PACKAGES:
            self.tarballs[(package, version)] = make_npm_tarball(package_files(package, version))
        if latest:
            self.latest[MAIN_PACKAGE] = version

    def hashes(self, version: str) -> dict[str, str]:
        return {pkg: sri_sha256(self.tarballs[(pkg, version)]) for pkg in ALL_PACKAGES}

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append(path)
        parts = path.strip("/").split("/")
        if len(parts) == 1:
            latest = self.latest.get(parts[0])
            if latest is None:
                return httpx.Response(404, json={"error": "Not found"})
            return httpx.Response(200, json={"name": parts[0], "dist-tags": {"latest": latest}})
        if len(parts) == 3 and parts[1] == "-":
            package, filename = parts[0], parts[2]
            version = filename[len(package) + 1 : -len(".tgz")]
            if package in self.failing:
                return httpx.Response(500)
            data = self.tarballs.get((package, version))
            if data is None:
                return httpx.Response(404)
            return httpx.Response(200, content=data)
        return httpx.Response(404)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def npm_registry() -> FakeNpmRegistry:
    """A registry with 0.1.0 and 0.2.0 published; 0.2.0 is latest."""
    registry = FakeNpmRegistry()
    registry.publish("0.1.0", latest=False)
    registry.publish("0.2.0")
    return registry


@pytest.fixture
def registry_client(npm_registry: FakeNpmRegistry) -> RegistryClient:
    return RegistryClient(npm_registry.base_url, client=npm_registry.client())


@pytest.fixture
def make_release(npm_registry: FakeNpmRegistry) -> Callable[..., PinnedRelease]:
    """Factory: a PinnedRelease whose hashes match the fake registry."""

    def _factory(version: str = "0.1.0", drop: tuple[str, ...] = ()) -> PinnedRelease:
        hashes = {k: v for k, v in npm_registry.hashes(version).items() if k not in drop}
        return PinnedRelease(version=version, hashes=hashes)

    return _factory


# ---------------------------------------------------------------------------
# Pinned-metadata files
# ---------------------------------------------------------------------------


@pytest.fixture
def pin_files(tmp_path: Path, npm_registry: FakeNpmRegistry) -> tuple[Path, Path]:
    """flake.nix / package.nix pinned at 0.1.0 with matching hashes."""
    flake = tmp_path / "flake.nix"
    package = tmp_path / "package.nix"
    flake.write_text(FLAKE_NIX.replace("@VERSION@", "0.1.0"))
    package.write_text(render_package_nix(npm_registry.hashes("0.1.0")))
    return flake, package


@pytest.fixture
def pin_store(pin_files: tuple[Path, Path]) -> PinStore:
    return PinStore(*pin_files)


# ---------------------------------------------------------------------------
# Git and publisher doubles
# ---------------------------------------------------------------------------


class FakeGit:
    """In-memory stand-in for GitClient recording every call."""

    def __init__(self, trunk: str = "master") -> None:
        self.trunk = trunk
        self.current = trunk
        self.branches: set[str] = {trunk}
        self.tags: set[str] = set()
        self.pushes: list[tuple[str, str]] = []
        self.calls: list[tuple[str, ...]] = []
        self.merge_succeeds = True
        self.fail_on: dict[str, Exception] = {}

    def _record(self, name: str, *args: str) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise self.fail_on[name]

    def configure_identity(self, name: str, email: str) -> None:
        self._record("configure_identity", name, email)

    def branch_exists(self, name: str) -> bool:
        return name in self.branches

    def create_branch(self, name: str) -> None:
        self._record("create_branch", name)
        self.branches.add(name)
        self.current = name

    def checkout(self, ref: str) -> None:
        self._record("checkout", ref)
        self.current = ref

    def add(self, paths) -> None:
        self._record("add", *(str(p) for p in paths))

    def commit(self, message: str) -> None:
        self._record("commit", message)

    def discard(self, paths) -> None:
        self._record("discard", *(str(p) for p in paths))

    def delete_branch(self, name: str) -> None:
        self._record("delete_branch", name)
        if name not in self.branches:
            raise GitCommandError(["branch", "-D", name], 1, f"branch '{name}' not found")
        self.branches.discard(name)

    def tag(self, name: str, message: str) -> None:
        self._record("tag", name)
        self.tags.add(name)

    def delete_tag(self, name: str) -> None:
        self._record("delete_tag", name)
        self.tags.discard(name)

    def pull(self, remote: str, branch: str) -> None:
        self._record("pull", remote, branch)

    def merge_ff_only(self, branch: str) -> bool:
        self._record("merge_ff_only", branch)
        return self.merge_succeeds

    def push(self, remote: str, ref: str) -> None:
        self._record("push", remote, ref)
        self.pushes.append((remote, ref))

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


class FakePublisher:
    def __init__(self, url: str = "https://github.test/releases/1") -> None:
        self.url = url
        self.published: list[tuple[str, str, str]] = []

    def publish(self, tag: str, name: str, body: str) -> str | None:
        self.published.append((tag, name, body))
        return self.url


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def fake_publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture
def npm_tarball() -> Callable[[dict[str, bytes]], bytes]:
    """Factory fixture: build an npm-style tarball from a file mapping."""
    return make_npm_tarball
