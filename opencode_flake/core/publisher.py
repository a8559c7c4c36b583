"""Release publication — GitHub releases via the REST API."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from opencode_flake.errors import PublishError

logger = logging.getLogger(__name__)


class ReleasePublisher(Protocol):
    def publish(self, tag: str, name: str, body: str) -> str | None: ...


def release_name(version: str) -> str:
    return f"OpenCode Flake {version}"


def release_body(version: str, repo: str) -> str:
    """Markdown body for the release page of *version*."""
    return "\n".join([
        f"OpenCode Flake version {version}",
        "",
        f"This release packages [OpenCode](https://github.com/sst/opencode) v{version} as a Nix flake.",
        "",
        "## Installation",
        "",
        "```bash",
        "# Run OpenCode directly",
        f"nix run github:{repo}",
        "",
        "# Or install to your profile",
        f"nix profile install github:{repo}",
        "```",
        "",
        "## Using in a flake",
        "",
        "```nix",
        "{",
        f'  inputs.opencode-flake.url = "github:{repo}";',
        "",
        "  outputs = { self, nixpkgs, opencode-flake, ... }: {",
        "    packages.x86_64-linux.opencode = opencode-flake.packages.x86_64-linux.default;",
        "  };",
        "}",
        "```",
        "",
    ])


class GitHubReleasePublisher:
    """Creates a published (non-draft) release for an already-pushed tag.

    Parameters
    ----------
    repo:
        ``owner/name`` of the GitHub repository.
    token:
        Token with ``contents: write``.
    client:
        Optional ``httpx.Client``; one is created (and owned) if omitted.
    """

    def __init__(
        self,
        repo: str,
        token: str,
        *,
        api_url: str = "https://api.github.com",
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._repo = repo
        self._token = token
        self._api = api_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def publish(self, tag: str, name: str, body: str) -> str | None:
        """Create the release; return its HTML URL."""
        if not self._token:
            raise PublishError("No GitHub token configured; cannot publish release")

        headers: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self._token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        payload: dict[str, Any] = {
            "tag_name": tag,
            "name": name,
            "body": body,
            "draft": False,
            "prerelease": False,
        }
        url = f"{self._api}/repos/{self._repo}/releases"
        try:
            resp = self._client.post(url, json=payload, headers=headers)
        except httpx.RequestError as exc:
            raise PublishError(f"Release request for {tag} failed: {exc}") from exc

        if resp.status_code not in (200, 201):
            raise PublishError(
                f"GitHub rejected release {tag}: HTTP {resp.status_code} {resp.text[:200]}"
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise PublishError(f"Invalid JSON in release response for {tag}: {exc}") from exc
        if not isinstance(data, dict):
            raise PublishError(f"Unexpected release response shape for {tag}")
        html_url = data.get("html_url")
        logger.info("Published release %s %s", tag, html_url or "")
        return html_url
