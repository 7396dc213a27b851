"""acp data models. All Pydantic v2 and frozen."""

from acp.models.archives import (
    ArchiveKind,
    HostArchive,
    TransportArchive,
    member_name,
)
from acp.models.phases import Phase, Routine
from acp.models.reports import ChecksumReport, HostResult, HostStatus, PhaseReport
from acp.models.resources import (
    DIGEST_ALGORITHMS,
    DownloadedResource,
    ResourceRecord,
    SignatureFile,
    VerificationOutcome,
)

__all__ = [
    # phases
    "Routine",
    "Phase",
    # resources
    "DIGEST_ALGORITHMS",
    "ResourceRecord",
    "SignatureFile",
    "VerificationOutcome",
    "DownloadedResource",
    # archives
    "ArchiveKind",
    "HostArchive",
    "TransportArchive",
    "member_name",
    # reports
    "HostStatus",
    "HostResult",
    "ChecksumReport",
    "PhaseReport",
]
