"""Resource manifest models: what each host needs fetched."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator

from acp.models.phases import Routine

# apt's checksum field names -> hashlib algorithm names.
DIGEST_ALGORITHMS: dict[str, str] = {
    "md5sum": "md5",
    "md5": "md5",
    "sha1": "sha1",
    "sha256": "sha256",
    "sha512": "sha512",
}


class ResourceRecord(BaseModel):
    """One line of a signature file.

    ``digest`` keeps the raw ``algorithm:hex`` form; a missing digest means
    no verification is performed for this resource.
    """

    model_config = ConfigDict(frozen=True)

    uri: str
    filename: str
    size: int | None = None
    extra: list[str] = []
    digest: str | None = None

    @property
    def algorithm(self) -> str | None:
        """hashlib name for the digest; md5 when the prefix is absent."""
        if self.digest is None:
            return None
        prefix, sep, _ = self.digest.partition(":")
        if not sep:
            return "md5"
        return DIGEST_ALGORITHMS.get(prefix.strip().lower(), prefix.strip().lower())

    @property
    def hexdigest(self) -> str | None:
        """The digest value with any algorithm prefix stripped, lowercased."""
        if self.digest is None:
            return None
        return self.digest.rpartition(":")[2].strip().lower()


class SignatureFile(BaseModel):
    """All resources one host needs, in manifest order."""

    model_config = ConfigDict(frozen=True)

    host: str
    routine: Routine
    path: Path
    records: list[ResourceRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def _filenames_unique(self) -> SignatureFile:
        seen: set[str] = set()
        dupes: list[str] = []
        for record in self.records:
            if record.filename in seen:
                dupes.append(record.filename)
            seen.add(record.filename)
        if dupes:
            raise ValueError(
                f"duplicate target filenames in {self.path.name}: {', '.join(dupes)}"
            )
        return self


class VerificationOutcome(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    NOT_CHECKED = "not_checked"


class DownloadedResource(BaseModel):
    """A record bound to local bytes (or to the error that prevented them)."""

    model_config = ConfigDict(frozen=True)

    record: ResourceRecord
    path: Path | None = None
    outcome: VerificationOutcome = VerificationOutcome.NOT_CHECKED
    error: str | None = None

    @property
    def downloaded(self) -> bool:
        return self.path is not None and self.error is None
