"""INSTALL — apply the downloaded resources on every offline host.

Consumes the GET transport archive.  For each per-host archive:
    - Take the target host from ``HostArchive.host``.
    - Transfer the archive to the host's remote temp directory.
    - In one interactive ssh session, run the routine's apply script:
        update  : replace /var/lib/apt/lists with the archive's contents.
        upgrade : install the .deb files, then autoremove and autoclean.

A failed transfer or remote command is recorded against that host and the
loop moves on; the batch is never aborted.  The failures are returned on
the report so the caller can decide what to do about them.
"""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import ClassVar

from acp.config import AcpConfig
from acp.core.archive import unpack
from acp.core.commands import install_command
from acp.core.remote import RemoteExecutor, SshExecutor
from acp.models.archives import ArchiveKind, HostArchive, TransportArchive
from acp.models.phases import Phase, Routine
from acp.models.reports import HostResult, PhaseReport
from acp.phases.base import BasePhase

logger = logging.getLogger(__name__)


class RemoteInstaller(BasePhase):
    """INSTALL phase: aggregate archive -> applied state on each host."""

    phase: ClassVar[Phase] = Phase.INSTALL

    def __init__(
        self,
        routine: Routine,
        config: AcpConfig,
        archive_path: Path,
        executor: RemoteExecutor | None = None,
    ) -> None:
        super().__init__(routine, config)
        self.archive_path = Path(archive_path)
        self.executor: RemoteExecutor = executor or SshExecutor(
            config.user, config.ssh_options
        )

    # ------------------------------------------------------------------
    # Core logic
    # ------------------------------------------------------------------

    def execute(self) -> PhaseReport:
        extracted = unpack(self.archive_path, self.staging_dir)
        members: list[HostArchive] = []
        for path in extracted:
            try:
                member = HostArchive.from_member(path, routine=self.routine)
            except ValueError:
                logger.warning("Ignoring unexpected archive member %s", path.name)
                continue
            if member.kind is not ArchiveKind.PAYLOAD or member.routine is not self.routine:
                logger.warning("Ignoring %s: not a %s payload", path.name, self.routine.value)
                continue
            members.append(member)

        logger.info("Installing %s files on %d host(s)", self.routine.value, len(members))
        results = self.map_hosts(members, lambda m: m.host, self.install_host)

        return PhaseReport(
            routine=self.routine,
            phase=self.phase,
            results=results,
            archive=TransportArchive(
                path=self.archive_path,
                routine=self.routine,
                phase=self.phase,
                members=members,
            ),
        )

    def install_host(self, member: HostArchive) -> HostResult:
        host = member.host
        remote_archive = posixpath.join(self.config.remote_tmp_dir, member.member_name)
        logger.info(" - for: %s", host.upper())

        transfer = self.executor.transfer_out(host, member.path, remote_archive)
        if not transfer.ok:
            logger.error("%s: transfer of %s failed: %s", host, member.member_name, transfer.error)
            return HostResult.failed(host, f"transfer failed: {transfer.error}")

        command = install_command(self.routine, remote_archive, self.config)
        result = self.executor.execute(host, command, interactive=True)
        if not result.ok:
            logger.error("%s: %s install failed: %s", host, self.routine.value, result.error)
            return HostResult.failed(host, f"remote install failed: {result.error}")

        return HostResult.ok(host, artifact=member.path)

    # ------------------------------------------------------------------
    # Epilogue
    # ------------------------------------------------------------------

    def epilogue(self, report: PhaseReport) -> str:
        if self.routine is Routine.UPDATE:
            return (
                "The apt directory has been updated.\n"
                "\n"
                "This was the equivalent of running 'apt update' on each target\n"
                "host. Next, the packages due for upgrade can be upgraded.\n"
                "\n"
                "Next steps:\n"
                "    From the offline system, collect the packages due for upgrade\n"
                "    and the URLs they can be downloaded from, for each target host:\n"
                "\n"
                "        $ acp --upgrade --find\n"
            )
        return "All system updates complete.\n"
