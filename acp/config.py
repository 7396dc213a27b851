"""Runtime configuration — env-driven host topology and directory layout.

Centralized config using pydantic-settings. Reads from a .env file and
ACP_* environment variables. A single ``AcpConfig`` value is passed to
every phase; nothing else carries configuration state.
"""

from __future__ import annotations

import getpass
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "root"


class AcpConfig(BaseSettings):
    """Host topology, remote identity and filesystem locations.

    All settings can be overridden via ACP_* environment variables
    or a .env file in the working directory.

    Examples
    --------
    Override via environment::

        export ACP_HOSTS='["node01", "node02", "node03"]'
        export ACP_WORKERS='["node02", "node03"]'
        export ACP_USER=admin

    Or via .env file::

        ACP_HOSTS=["node01", "node02"]
        ACP_OUTPUT_DIR=/media/usb
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ACP_",
        env_file_encoding="utf-8",
        frozen=True,
    )

    # Topology
    hosts: list[str] = Field(default_factory=list)
    workers: list[str] = Field(default_factory=list)
    user: str = Field(default_factory=_default_user)

    # Local directories
    scratch_root: Path = Path("/tmp/acp")
    output_dir: Path = Field(default_factory=lambda: Path.home() / "Desktop")

    # Remote directories
    remote_tmp_dir: str = "/tmp"
    remote_install_dir: str = "/tmp/acpinstall"
    apt_lists_dir: str = "/var/lib/apt/lists"

    # Transport
    ssh_options: list[str] = Field(default_factory=list)
    ping_timeout_seconds: int = 1
    download_timeout_seconds: float = 60.0
    max_workers: int = 1

    # Observability
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _workers_within_hosts(self) -> AcpConfig:
        unknown = [w for w in self.workers if w not in self.hosts]
        if unknown:
            raise ValueError(
                f"workers must be a subset of hosts; unknown: {', '.join(unknown)}"
            )
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        return self

    def staging_dir(self, name: str) -> Path:
        """Return the scratch directory for one phase, e.g. ``update-get``."""
        return self.scratch_root / name
