"""Core building blocks: remote execution, liveness, archives, manifests, downloads."""

from acp.core.archive import ArchivePackError, ArchiveUnpackError
from acp.core.downloader import DownloadError, Downloader
from acp.core.liveness import LivenessProbe, PingProbe, probe_all
from acp.core.manifest import ManifestError, read_signature
from acp.core.remote import CommandResult, RemoteExecutor, SshExecutor

__all__ = [
    "ArchivePackError",
    "ArchiveUnpackError",
    "CommandResult",
    "DownloadError",
    "Downloader",
    "LivenessProbe",
    "ManifestError",
    "PingProbe",
    "RemoteExecutor",
    "SshExecutor",
    "probe_all",
    "read_signature",
]
