"""Pinned-metadata store — the version file and the hash file as one record.

The version file carries ``<version_attribute> = "<version>"`` and the hash
file an attribute set ``<hashes_attribute> = { "<pkg>" = "<sri>"; ... };``.
Reads parse both; writes render both in memory first and then swap them in
with ``os.replace`` so a failure never leaves one file updated alone.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path

from opencode_flake.errors import PinFileError
from opencode_flake.models.pins import PinnedRelease

logger = logging.getLogger(__name__)

_ENTRY_RE = re.compile(r'"(?P<name>[^"]+)"\s*=\s*"(?P<value>[^"]*)"\s*;')


class PinStore:
    """Read and read-modify-write access to the pinned release.

    Parameters
    ----------
    version_path:
        File holding the pinned version string.
    hash_path:
        File holding the per-package hash table.  May be the same file.
    """

    def __init__(
        self,
        version_path: Path,
        hash_path: Path,
        *,
        version_attribute: str = "opencodeVersion",
        hashes_attribute: str = "packageHashes",
        main_package: str = "opencode-ai",
    ) -> None:
        self.version_path = Path(version_path)
        self.hash_path = Path(hash_path)
        self._main_package = main_package
        self._version_re = re.compile(
            rf'(?P<head>\b{re.escape(version_attribute)}\s*=\s*")(?P<value>[^"]*)(?P<tail>")'
        )
        self._block_re = re.compile(
            rf"(?P<head>\b{re.escape(hashes_attribute)}\s*=\s*\{{)(?P<body>.*?)(?P<tail>\}}\s*;)",
            re.DOTALL,
        )

    @property
    def paths(self) -> list[Path]:
        """The distinct files backing this store."""
        if self._same_file():
            return [self.version_path]
        return [self.version_path, self.hash_path]

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def read_version(self) -> str:
        text = self._read(self.version_path)
        match = self._version_re.search(text)
        if match is None:
            raise PinFileError(f"No pinned version found in {self.version_path}")
        return match.group("value")

    def read_hashes(self) -> dict[str, str]:
        text = self._read(self.hash_path)
        match = self._block_re.search(text)
        if match is None:
            raise PinFileError(f"No hash table found in {self.hash_path}")
        return {m.group("name"): m.group("value") for m in _ENTRY_RE.finditer(match.group("body"))}

    def read(self) -> PinnedRelease:
        return PinnedRelease(
            version=self.read_version(),
            hashes=self.read_hashes(),
            main_package=self._main_package,
        )

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def write(self, release: PinnedRelease) -> list[Path]:
        """Rewrite both files for *release*; return the files changed."""
        originals = {path: self._read(path) for path in self.paths}

        version_key, hash_key = self.paths[0], self.paths[-1]
        rendered = dict(originals)
        rendered[version_key] = self._render_version(rendered[version_key], release.version)
        rendered[hash_key] = self._render_hashes(rendered[hash_key], release.hashes)

        changed = [path for path in self.paths if rendered[path] != originals[path]]
        _replace_together({path: rendered[path] for path in changed}, originals)
        logger.info(
            "Pinned %s with %d hashes in %s",
            release.version,
            len(release.hashes),
            ", ".join(str(p) for p in self.paths),
        )
        return changed

    def _render_version(self, text: str, version: str) -> str:
        match = self._version_re.search(text)
        if match is None:
            raise PinFileError(f"No pinned version found in {self.version_path}")
        return text[: match.start("value")] + version + text[match.end("value"):]

    def _render_hashes(self, text: str, hashes: dict[str, str]) -> str:
        match = self._block_re.search(text)
        if match is None:
            raise PinFileError(f"No hash table found in {self.hash_path}")
        body = match.group("body")

        closing = body[body.rfind("\n") + 1:] if "\n" in body else ""
        if closing.strip():
            closing = ""
        indent_match = re.search(r'^([ \t]*)"', body, re.MULTILINE)
        indent = indent_match.group(1) if indent_match else closing + "  "

        existing = [m.group("name") for m in _ENTRY_RE.finditer(body)]
        order = [name for name in existing if name in hashes]
        order += [name for name in hashes if name not in order]

        lines = "".join(f'{indent}"{name}" = "{hashes[name]}";\n' for name in order)
        new_body = "\n" + lines + closing
        return text[: match.start("body")] + new_body + text[match.end("body"):]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _same_file(self) -> bool:
        return self.version_path.resolve() == self.hash_path.resolve()

    @staticmethod
    def _read(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise PinFileError(f"Pinned-metadata file not found: {path}") from None
        except UnicodeDecodeError as exc:
            raise PinFileError(f"Pinned-metadata file {path} is not valid UTF-8: {exc}") from exc


def _replace_together(contents: dict[Path, str], originals: dict[Path, str]) -> None:
    """Swap every file in *contents* in, or none of them.

    All new texts are staged as temp files beside their targets first.  If
    a later replace fails, files already replaced get their original text
    back before the error propagates.
    """
    staged: dict[Path, str] = {}
    try:
        for path, text in contents.items():
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            staged[path] = tmp_name

        replaced: list[Path] = []
        try:
            for path, tmp_name in staged.items():
                os.replace(tmp_name, path)
                replaced.append(path)
        except OSError:
            for path in replaced:
                path.write_text(originals[path], encoding="utf-8")
            raise
    finally:
        for tmp_name in staged.values():
            Path(tmp_name).unlink(missing_ok=True)
