"""Content hashing helpers for tarball verification and cache addressing.

Pinned hashes use the Subresource Integrity form Nix expects:
``sha256-<base64 digest>``.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac

from opencode_flake.errors import HashMismatchError, PinFileError

SRI_PREFIX = "sha256-"


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def sri_sha256(data: bytes) -> str:
    """Return the ``sha256-<base64>`` SRI hash of raw bytes."""
    digest = hashlib.sha256(data).digest()
    return SRI_PREFIX + base64.b64encode(digest).decode("ascii")


def sri_to_hex(sri: str) -> str:
    """Convert an SRI sha256 hash to its hex digest.

    Raises PinFileError if *sri* is not a well-formed sha256 SRI string.
    """
    if not sri.startswith(SRI_PREFIX):
        raise PinFileError(f"Not a sha256 SRI hash: {sri!r}")
    try:
        raw = base64.b64decode(sri[len(SRI_PREFIX):], validate=True)
    except binascii.Error as exc:
        raise PinFileError(f"Malformed SRI hash {sri!r}: {exc}") from exc
    if len(raw) != hashlib.sha256().digest_size:
        raise PinFileError(f"SRI hash {sri!r} is not a sha256 digest")
    return raw.hex()


def verify_sri(data: bytes, expected: str) -> bool:
    """Return True if *data* hashes to the SRI hash *expected*."""
    return hmac.compare_digest(sri_sha256(data), expected)


def require_sri(data: bytes, expected: str, *, label: str) -> None:
    """Fail closed: raise HashMismatchError unless *data* matches *expected*."""
    actual = sri_sha256(data)
    if not hmac.compare_digest(actual, expected):
        raise HashMismatchError(
            f"Hash mismatch for {label}: expected {expected}, got {actual}"
        )
