"""Content hashing helpers for downloaded resources.

Digests in signature files look like ``MD5Sum:0a1b...`` or ``SHA256:...``;
comparison is made on the prefix-stripped, lowercased hex value.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from acp.models.resources import ResourceRecord, VerificationOutcome

_CHUNK_SIZE = 1024 * 1024


class UnsupportedDigestError(ValueError):
    """Raised when a digest names an algorithm hashlib does not provide."""


def normalize_digest(digest: str) -> str:
    """Strip any ``algorithm:`` prefix and lowercase the hex value."""
    return digest.rpartition(":")[2].strip().lower()


def file_digest(path: Path, algorithm: str = "md5") -> str:
    """Return the hex digest of a file's content, read in chunks."""
    try:
        h = hashlib.new(algorithm)
    except ValueError as exc:
        raise UnsupportedDigestError(f"Unsupported digest algorithm: {algorithm}") from exc
    with Path(path).open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def verify_file(path: Path | None, record: ResourceRecord) -> VerificationOutcome:
    """Check a downloaded file against the record's digest.

    A record without a digest is NOT_CHECKED.  A record with a digest whose
    file is missing, or whose algorithm is unknown, FAILS.
    """
    if record.digest is None:
        return VerificationOutcome.NOT_CHECKED
    if path is None or not Path(path).is_file():
        return VerificationOutcome.FAIL
    try:
        actual = file_digest(path, record.algorithm or "md5")
    except UnsupportedDigestError:
        return VerificationOutcome.FAIL
    if actual == normalize_digest(record.digest):
        return VerificationOutcome.PASS
    return VerificationOutcome.FAIL
