"""Thin git wrapper used by the release coordinator.

Every git invocation in the project goes through ``GitClient.run``; a
non-zero exit raises GitCommandError unless the caller asked to inspect the
result itself.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path

from opencode_flake.errors import GitCommandError

logger = logging.getLogger(__name__)


class GitClient:
    """Runs git commands inside one working tree.

    Parameters
    ----------
    repo_dir:
        The working tree to operate on.
    git_binary:
        Name or path of the git executable.
    """

    def __init__(self, repo_dir: Path = Path("."), git_binary: str = "git") -> None:
        self._repo = Path(repo_dir)
        self._git = git_binary

    @property
    def repo_dir(self) -> Path:
        return self._repo

    def pathspecs(self, paths: Sequence[Path]) -> list[str]:
        """Express *paths* relative to the working tree git runs in.

        Callers hold paths relative to the process cwd (or absolute), while
        git resolves pathspecs against ``repo_dir``.
        """
        root = self._repo.resolve()
        specs: list[str] = []
        for path in paths:
            resolved = Path(path).resolve()
            try:
                specs.append(resolved.relative_to(root).as_posix())
            except ValueError:
                specs.append(str(resolved))
        return specs

    def run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        logger.debug("git %s", " ".join(args))
        try:
            result = subprocess.run(
                [self._git, *args],
                cwd=self._repo,
                capture_output=True,
                text=True,
            )
        except OSError as exc:
            raise GitCommandError(list(args), -1, str(exc)) from exc
        if check and result.returncode != 0:
            raise GitCommandError(list(args), result.returncode, result.stderr)
        return result

    # ------------------------------------------------------------------
    # Identity and refs
    # ------------------------------------------------------------------

    def configure_identity(self, name: str, email: str) -> None:
        self.run("config", "user.name", name)
        self.run("config", "user.email", email)

    def current_branch(self) -> str:
        return self.run("rev-parse", "--abbrev-ref", "HEAD").stdout.strip()

    def head_sha(self) -> str:
        return self.run("rev-parse", "HEAD").stdout.strip()

    def branch_exists(self, name: str) -> bool:
        result = self.run("rev-parse", "--verify", "--quiet", f"refs/heads/{name}", check=False)
        return result.returncode == 0

    def tag_exists(self, name: str) -> bool:
        result = self.run("rev-parse", "--verify", "--quiet", f"refs/tags/{name}", check=False)
        return result.returncode == 0

    # ------------------------------------------------------------------
    # Branches and commits
    # ------------------------------------------------------------------

    def create_branch(self, name: str) -> None:
        self.run("checkout", "-b", name)

    def checkout(self, ref: str) -> None:
        self.run("checkout", ref)

    def add(self, paths: Sequence[Path]) -> None:
        self.run("add", "--", *self.pathspecs(paths))

    def commit(self, message: str) -> None:
        self.run("commit", "-m", message)

    def discard(self, paths: Sequence[Path]) -> None:
        """Restore *paths* to their HEAD content."""
        self.run("checkout", "HEAD", "--", *self.pathspecs(paths))

    def delete_branch(self, name: str) -> None:
        self.run("branch", "-D", name)

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def tag(self, name: str, message: str) -> None:
        self.run("tag", "-a", name, "-m", message)

    def delete_tag(self, name: str) -> None:
        self.run("tag", "-d", name)

    # ------------------------------------------------------------------
    # Remote interaction
    # ------------------------------------------------------------------

    def pull(self, remote: str, branch: str) -> None:
        self.run("pull", "--ff-only", remote, branch)

    def merge_ff_only(self, branch: str) -> bool:
        """Fast-forward the current branch to *branch*; False if refused."""
        result = self.run("merge", "--ff-only", branch, check=False)
        if result.returncode != 0:
            logger.warning("Fast-forward merge of %s refused: %s", branch, result.stderr.strip())
            return False
        return True

    def push(self, remote: str, ref: str) -> None:
        self.run("push", remote, ref)
