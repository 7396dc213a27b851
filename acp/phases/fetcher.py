"""GET — download every listed resource on the online side.

Consumes the FIND transport archive:
    - Unpack the signature files.
    - For each signature file, download every resource into a per-host
      download directory and, where the record carries a digest, verify it.
      Mismatches are accumulated and reported, never fatal.
    - Pack each host's download directory into ``<routine>-<host>.tar``,
      even when some downloads failed; a partial archive still lets the
      host install what did arrive.
    - Pack all per-host archives into one aggregate transport archive named
      after the input archive, for the trip back to the offline side.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path, PurePosixPath
from typing import ClassVar
from urllib.parse import urlsplit

from acp.config import AcpConfig
from acp.core.archive import pack, pack_directory, reset_directory, unpack
from acp.core.downloader import DownloadError, Downloader
from acp.core.hasher import verify_file
from acp.core.manifest import ManifestError, read_signature
from acp.models.archives import ArchiveKind, HostArchive, TransportArchive
from acp.models.phases import Phase, Routine
from acp.models.reports import ChecksumReport, HostResult, HostStatus, PhaseReport
from acp.models.resources import (
    DownloadedResource,
    ResourceRecord,
    VerificationOutcome,
)
from acp.phases.base import BasePhase

logger = logging.getLogger(__name__)


class ResourceFetcher(BasePhase):
    """GET phase: signature archive -> aggregate archive of per-host tars.

    Parameters
    ----------
    archive_path:
        The transport archive produced by FIND.
    downloader:
        Optional pre-built ``Downloader``; one is created (and closed) per
        run from the config when omitted.
    """

    phase: ClassVar[Phase] = Phase.GET

    def __init__(
        self,
        routine: Routine,
        config: AcpConfig,
        archive_path: Path,
        downloader: Downloader | None = None,
    ) -> None:
        super().__init__(routine, config)
        self.archive_path = Path(archive_path)
        self.downloader = downloader
        self._checksums: dict[str, ChecksumReport] = {}
        self._lock = threading.Lock()

    @property
    def signature_dir(self) -> Path:
        return self.staging_dir / "signatures"

    @property
    def packed_dir(self) -> Path:
        return self.staging_dir / "packed"

    def download_dir(self, member: HostArchive) -> Path:
        return self.staging_dir / "download" / member.stem

    def output_path(self) -> Path:
        """Aggregate archive keeps the input's base name (and timestamp)."""
        base = self.archive_path.name.split(".", 1)[0]
        return self.config.output_dir / f"{base}.tar"

    # ------------------------------------------------------------------
    # Core logic
    # ------------------------------------------------------------------

    def execute(self) -> PhaseReport:
        extracted = unpack(self.archive_path, self.signature_dir)
        members = self._signature_members(extracted)
        logger.info("Processing %d signature file(s)", len(members))

        self._checksums = {}
        owned = self.downloader is None
        if owned:
            self.downloader = Downloader(self.config.download_timeout_seconds)
        try:
            results = self.map_hosts(members, lambda m: m.host, self.fetch_host)
        finally:
            if owned:
                self.downloader.close()
                self.downloader = None

        packed = [
            HostArchive.from_member(r.artifact, routine=self.routine)
            for r in results
            if r.status == HostStatus.OK and r.artifact is not None
        ]
        dest = self.output_path()
        logger.info("Archiving %d per-host archive(s) into %s", len(packed), dest)
        pack([p.path for p in packed], dest)

        checksum = ChecksumReport()
        for member in members:
            checksum = checksum.merge(self._checksums.get(member.host, ChecksumReport()))

        return PhaseReport(
            routine=self.routine,
            phase=self.phase,
            results=results,
            archive=TransportArchive(
                path=dest, routine=self.routine, phase=self.phase, members=packed
            ),
            checksum=checksum,
        )

    def _signature_members(self, extracted: list[Path]) -> list[HostArchive]:
        members: list[HostArchive] = []
        for path in extracted:
            try:
                member = HostArchive.from_member(path, routine=self.routine)
            except ValueError:
                logger.warning("Ignoring unexpected archive member %s", path.name)
                continue
            if member.kind is not ArchiveKind.SIGNATURE:
                logger.warning("Ignoring non-signature member %s", path.name)
                continue
            if member.routine is not self.routine:
                logger.warning(
                    "%s belongs to the %s routine, not %s; ignoring",
                    path.name, member.routine.value, self.routine.value,
                )
                continue
            members.append(member)
        return members

    def fetch_host(self, member: HostArchive) -> HostResult:
        """Download, verify and pack one host's resources."""
        try:
            signature = read_signature(member)
        except ManifestError as exc:
            logger.error("%s: %s", member.host, exc)
            return HostResult.failed(member.host, f"bad signature file: {exc}")

        download_dir = reset_directory(self.download_dir(member))
        downloads = [
            self.fetch_resource(record, download_dir) for record in signature.records
        ]

        report = ChecksumReport(
            checked=sum(1 for d in downloads if d.outcome is not VerificationOutcome.NOT_CHECKED),
            mismatches=[d.record for d in downloads if d.outcome is VerificationOutcome.FAIL],
            download_failures=[d.record for d in downloads if not d.downloaded],
        )
        with self._lock:
            self._checksums[member.host] = report
        self._log_checksums(member.host, report)

        payload = member.with_kind(
            ArchiveKind.PAYLOAD,
            self.packed_dir / f"{member.stem}.{ArchiveKind.PAYLOAD.value}",
        )
        pack_directory(download_dir, payload.path)
        return HostResult.ok(member.host, artifact=payload.path)

    def fetch_resource(self, record: ResourceRecord, download_dir: Path) -> DownloadedResource:
        dest = download_dir / self.target_filename(record)
        try:
            path: Path | None = self.downloader.fetch(record.uri, dest)
            error = None
        except DownloadError as exc:
            logger.warning("Download failed: %s", exc)
            path, error = None, str(exc)

        outcome = VerificationOutcome.NOT_CHECKED
        if self.routine is Routine.UPGRADE and record.digest is not None:
            outcome = verify_file(path, record)
        return DownloadedResource(record=record, path=path, outcome=outcome, error=error)

    def target_filename(self, record: ResourceRecord) -> str:
        """Local name for a resource.

        Metadata lists arrive compressed under an uncompressed apt name; the
        URI's suffix (``.xz``, ``.gz``, ...) is appended so the installer
        knows to decompress them.
        """
        name = PurePosixPath(record.filename).name
        if self.routine is Routine.UPDATE:
            suffix = PurePosixPath(urlsplit(record.uri).path).suffix
            if suffix and not name.endswith(suffix):
                name += suffix
        return name

    @staticmethod
    def _log_checksums(host: str, report: ChecksumReport) -> None:
        if report.mismatches:
            logger.warning(
                "%s: mismatched checksums (%d): %s",
                host,
                len(report.mismatches),
                ", ".join(r.filename for r in report.mismatches),
            )
        elif report.checked:
            logger.info("%s: checksum verification result: PASS", host)

    # ------------------------------------------------------------------
    # Epilogue
    # ------------------------------------------------------------------

    def epilogue(self, report: PhaseReport) -> str:
        name = report.archive.path.name if report.archive else self.output_path().name
        return (
            "Next steps:\n"
            f"    Copy the {name} file, from the location mentioned\n"
            "    above, to the offline system and run:\n"
            "\n"
            f"        $ acp --{self.routine.value} --install path/to/{name}\n"
        )
