"""Tests for FlakeConfig environment handling."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from opencode_flake.config import FlakeConfig, configure_logging


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("OPENCODE_FLAKE_GITHUB_TOKEN", raising=False)


class TestFlakeConfig:
    def test_defaults(self):
        config = FlakeConfig()
        assert config.registry_url == "https://registry.npmjs.org"
        assert config.main_package == "opencode-ai"
        assert config.trunk_branch == "master"
        assert config.version_path == Path("flake.nix")
        assert config.hash_path == Path("package.nix")
        assert config.github_token == ""
        assert config.preserve_failed_branch is True

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.setenv("OPENCODE_FLAKE_TRUNK_BRANCH", "main")
        monkeypatch.setenv("OPENCODE_FLAKE_REPO_DIR", str(tmp_path))
        config = FlakeConfig()
        assert config.trunk_branch == "main"
        assert config.version_path == tmp_path / "flake.nix"

    def test_plain_github_token(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GITHUB_TOKEN", "ghs_plain")
        assert FlakeConfig().github_token == "ghs_plain"

    def test_prefixed_token_wins(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("OPENCODE_FLAKE_GITHUB_TOKEN", "ghs_prefixed")
        monkeypatch.setenv("GITHUB_TOKEN", "ghs_plain")
        assert FlakeConfig().github_token == "ghs_prefixed"

    def test_library_dirs_from_json(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("OPENCODE_FLAKE_LIBRARY_DIRS", '["/opt/lib", "/usr/lib"]')
        assert FlakeConfig().library_dirs == [Path("/opt/lib"), Path("/usr/lib")]

    def test_dotenv_file(self, tmp_path: Path):
        (tmp_path / ".env").write_text("OPENCODE_FLAKE_HASH_FILE=nix/hashes.nix\n")
        assert FlakeConfig().hash_path == Path("nix/hashes.nix")

    def test_keyword_overrides(self, tmp_path: Path):
        config = FlakeConfig(repo_dir=tmp_path, cache_path=None)
        assert config.cache_path is None
        assert config.hash_path == tmp_path / "package.nix"


class TestConfigureLogging:
    def test_sets_root_level(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging("debug")
            assert root.level == logging.DEBUG
            assert [type(h).__name__ for h in root.handlers] == ["RichHandler"]
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
