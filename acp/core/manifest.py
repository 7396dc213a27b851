"""Signature file reading and writing.

A signature file is the captured ``apt ... --print-uris`` output for one
host, one resource per line::

    'http://deb.debian.org/debian/pool/main/c/curl/curl_7.88.1_amd64.deb' curl_7.88.1_amd64.deb 315084 MD5Sum:5c1f...

Fields are ``URI FILENAME [EXTRA...] [DIGEST]``.  The URI may still carry
apt's single quotes.  A trailing ``algorithm:hex`` field is the digest; a
purely numeric third field is the size.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from acp.models.archives import HostArchive
from acp.models.resources import ResourceRecord, SignatureFile

logger = logging.getLogger(__name__)


class ManifestError(RuntimeError):
    """Raised when a signature file cannot be read or is inconsistent."""


def parse_line(line: str) -> ResourceRecord | None:
    """Parse one manifest line; ``None`` for blank or malformed lines."""
    fields = line.split()
    if len(fields) < 2:
        return None

    uri = fields[0].strip("'\"")
    filename = fields[1].strip("'\"")
    rest = fields[2:]

    digest: str | None = None
    if rest and ":" in rest[-1]:
        digest = rest.pop()

    size: int | None = None
    if rest and rest[0].isdigit():
        size = int(rest.pop(0))

    return ResourceRecord(uri=uri, filename=filename, size=size, extra=rest, digest=digest)


def parse_records(text: str, source: str = "<signature>") -> list[ResourceRecord]:
    records: list[ResourceRecord] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        record = parse_line(line)
        if record is None:
            logger.warning("%s:%d: skipping malformed line %r", source, lineno, line)
            continue
        records.append(record)
    return records


def read_signature(member: HostArchive) -> SignatureFile:
    """Load the signature file a ``HostArchive`` points at.

    Raises
    ------
    ManifestError
        If the file is unreadable or repeats a target filename.
    """
    try:
        text = member.path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise ManifestError(f"Cannot read {member.path}: {exc}") from exc

    records = parse_records(text, source=member.path.name)
    try:
        return SignatureFile(
            host=member.host, routine=member.routine, path=member.path, records=records
        )
    except ValidationError as exc:
        raise ManifestError(str(exc)) from exc


def format_record(record: ResourceRecord) -> str:
    """Render a record back into manifest line form."""
    fields = [f"'{record.uri}'", record.filename]
    if record.size is not None:
        fields.append(str(record.size))
    fields.extend(record.extra)
    if record.digest is not None:
        fields.append(record.digest)
    return " ".join(fields)


def write_signature(path: Path, records: list[ResourceRecord]) -> Path:
    path = Path(path)
    path.write_text(
        "".join(f"{format_record(r)}\n" for r in records), encoding="utf-8"
    )
    return path
