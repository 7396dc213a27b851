"""Per-host results and phase reports.

Each host is an independent unit of work yielding a tagged ``HostResult``;
the phase aggregates them into a ``PhaseReport`` instead of suppressing
failures.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from acp.models.archives import TransportArchive
from acp.models.phases import Phase, Routine
from acp.models.resources import ResourceRecord


class HostStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


class HostResult(BaseModel):
    """Outcome of one host's unit of work."""

    model_config = ConfigDict(frozen=True)

    host: str
    status: HostStatus
    reason: str | None = None
    artifact: Path | None = None

    @classmethod
    def ok(cls, host: str, artifact: Path | None = None) -> HostResult:
        return cls(host=host, status=HostStatus.OK, artifact=artifact)

    @classmethod
    def skipped(cls, host: str, reason: str) -> HostResult:
        return cls(host=host, status=HostStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, host: str, reason: str) -> HostResult:
        return cls(host=host, status=HostStatus.FAILED, reason=reason)


class ChecksumReport(BaseModel):
    """Digest verification summary for a GET run (informational only)."""

    model_config = ConfigDict(frozen=True)

    checked: int = 0
    mismatches: list[ResourceRecord] = Field(default_factory=list)
    download_failures: list[ResourceRecord] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.mismatches

    def merge(self, other: ChecksumReport) -> ChecksumReport:
        return ChecksumReport(
            checked=self.checked + other.checked,
            mismatches=[*self.mismatches, *other.mismatches],
            download_failures=[*self.download_failures, *other.download_failures],
        )


class PhaseReport(BaseModel):
    """Everything a phase produced, returned to the caller."""

    model_config = ConfigDict(frozen=True)

    routine: Routine
    phase: Phase
    results: list[HostResult] = Field(default_factory=list)
    archive: TransportArchive | None = None
    checksum: ChecksumReport | None = None
    epilogue: str = ""

    @property
    def failed_hosts(self) -> list[str]:
        return [r.host for r in self.results if r.status == HostStatus.FAILED]

    @property
    def skipped_hosts(self) -> list[str]:
        return [r.host for r in self.results if r.status == HostStatus.SKIPPED]

    @property
    def ok(self) -> bool:
        """True when every host succeeded."""
        return all(r.status == HostStatus.OK for r in self.results)
