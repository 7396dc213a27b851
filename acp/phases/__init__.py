"""acp phases: FIND (collector), GET (fetcher), INSTALL (installer)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from acp.config import AcpConfig
from acp.models.phases import Phase, Routine
from acp.phases.base import BasePhase, PhaseExecutionError
from acp.phases.collector import SignatureCollector
from acp.phases.fetcher import ResourceFetcher
from acp.phases.installer import RemoteInstaller

PHASES: dict[Phase, type[BasePhase]] = {
    Phase.FIND: SignatureCollector,
    Phase.GET: ResourceFetcher,
    Phase.INSTALL: RemoteInstaller,
}


def build_phase(
    routine: Routine,
    phase: Phase,
    config: AcpConfig,
    archive_path: Path | None = None,
    **backends: Any,
) -> BasePhase:
    """Instantiate the phase for one (routine, phase) pair.

    *archive_path* is required for GET and INSTALL and rejected for FIND.
    *backends* (``executor``, ``probe``, ``downloader``) are passed through.
    """
    cls = PHASES[Phase(phase)]
    if cls is SignatureCollector:
        if archive_path is not None:
            raise ValueError("The find phase does not take an input archive.")
        return cls(routine, config, **backends)
    if archive_path is None:
        raise ValueError(f"The {Phase(phase).value} phase requires an input archive.")
    return cls(routine, config, archive_path, **backends)


__all__ = [
    "BasePhase",
    "PHASES",
    "PhaseExecutionError",
    "RemoteInstaller",
    "ResourceFetcher",
    "SignatureCollector",
    "build_phase",
]
