"""FIND — collect a signature file from every offline host.

For each configured host, in topology order:
    - Probe liveness; an unreachable host is skipped without any remote
      command being attempted.
    - Run ``apt ... --print-uris`` remotely, redirected into
      ``<remote_tmp>/<routine>-<host>.sig``.
    - Pull the file back into the local staging directory.

Every retrieved signature file is then packed into one dated transport
archive in the output directory, ready to be carried to the online side.
"""

from __future__ import annotations

import logging
import posixpath
from datetime import datetime
from typing import ClassVar

from acp.config import AcpConfig
from acp.core.archive import pack
from acp.core.commands import find_command
from acp.core.liveness import LivenessProbe, PingProbe
from acp.core.remote import RemoteExecutor, SshExecutor
from acp.models.archives import ArchiveKind, HostArchive, TransportArchive, member_name
from acp.models.phases import Phase, Routine
from acp.models.reports import HostResult, HostStatus, PhaseReport
from acp.phases.base import BasePhase

logger = logging.getLogger(__name__)


class SignatureCollector(BasePhase):
    """FIND phase: host signatures -> ``<routine>_<timestamp>.tar``."""

    phase: ClassVar[Phase] = Phase.FIND

    def __init__(
        self,
        routine: Routine,
        config: AcpConfig,
        executor: RemoteExecutor | None = None,
        probe: LivenessProbe | None = None,
    ) -> None:
        super().__init__(routine, config)
        self.executor: RemoteExecutor = executor or SshExecutor(
            config.user, config.ssh_options
        )
        self.probe: LivenessProbe = probe or PingProbe(config.ping_timeout_seconds)

    def archive_name(self, now: datetime | None = None) -> str:
        stamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S")
        return f"{self.routine.value}_{stamp}.tar"

    # ------------------------------------------------------------------
    # Core logic
    # ------------------------------------------------------------------

    def execute(self) -> PhaseReport:
        hosts = list(self.config.hosts)
        if not hosts:
            logger.warning("No hosts configured; the archive will be empty.")

        results = self.map_hosts(hosts, lambda h: h, self.collect)

        members = [
            HostArchive(
                host=r.host, routine=self.routine, kind=ArchiveKind.SIGNATURE, path=r.artifact
            )
            for r in results
            if r.status == HostStatus.OK and r.artifact is not None
        ]

        dest = self.config.output_dir / self.archive_name()
        logger.info("Archiving %d signature file(s) into %s", len(members), dest)
        pack([m.path for m in members], dest)

        return PhaseReport(
            routine=self.routine,
            phase=self.phase,
            results=results,
            archive=TransportArchive(
                path=dest, routine=self.routine, phase=self.phase, members=members
            ),
        )

    def collect(self, host: str) -> HostResult:
        """Produce and retrieve one host's signature file."""
        if not self.probe.is_alive(host):
            logger.warning("Node (%s) is down, not collecting.", host)
            return HostResult.skipped(host, "host unreachable")

        name = member_name(self.routine, host, ArchiveKind.SIGNATURE)
        remote_sig = posixpath.join(self.config.remote_tmp_dir, name)

        logger.info("Collecting %s information for %s", self.routine.value, host)
        result = self.executor.execute(host, find_command(self.routine, remote_sig))
        if not result.ok:
            logger.error("%s: the %s command failed: %s", host, self.routine.value, result.error)
            return HostResult.failed(host, f"remote command failed: {result.error}")

        local = self.staging_dir / name
        transfer = self.executor.transfer_in(host, remote_sig, local)
        if not transfer.ok or not local.is_file():
            logger.error("%s: could not retrieve %s: %s", host, remote_sig, transfer.error)
            return HostResult.failed(host, f"transfer failed: {transfer.error}")

        return HostResult.ok(host, artifact=local)

    # ------------------------------------------------------------------
    # Epilogue
    # ------------------------------------------------------------------

    def epilogue(self, report: PhaseReport) -> str:
        name = report.archive.path.name if report.archive else f"{self.routine.value}_<datetime>.tar"
        return (
            "Next steps:\n"
            f"    Copy the {name} file, from the location mentioned\n"
            "    above, to the online environment and run:\n"
            "\n"
            f"        $ acp --{self.routine.value} --get path/to/{name}\n"
        )
