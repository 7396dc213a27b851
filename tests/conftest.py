"""Shared test fixtures for acp."""

from __future__ import annotations

import hashlib
import os
import tarfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from acp.config import AcpConfig
from acp.core.archive import pack, pack_directory
from acp.core.downloader import Downloader
from acp.core.manifest import write_signature
from acp.core.remote import CommandResult
from acp.models.archives import ArchiveKind, member_name
from acp.models.phases import Routine
from acp.models.resources import ResourceRecord


# ---------------------------------------------------------------------------
# Fake backends
# ---------------------------------------------------------------------------


class FakeExecutor:
    """In-memory RemoteExecutor.

    ``signatures`` maps host -> signature text served by ``transfer_in``.
    Hosts in ``fail_execute`` / ``fail_transfer`` get a non-zero result.
    Every call is recorded in ``calls`` as ``(method, host, detail)``.
    """

    def __init__(
        self,
        signatures: dict[str, str] | None = None,
        fail_execute: set[str] | None = None,
        fail_transfer: set[str] | None = None,
    ) -> None:
        self.signatures = signatures or {}
        self.fail_execute = fail_execute or set()
        self.fail_transfer = fail_transfer or set()
        self.calls: list[tuple[str, str, Any]] = []
        self.received: dict[str, bytes] = {}
        self.interactive: dict[str, bool] = {}

    def _result(self, host: str, failed: bool, argv: list[str]) -> CommandResult:
        return CommandResult(
            host=host,
            argv=argv,
            returncode=1 if failed else 0,
            stderr="boom" if failed else "",
        )

    def execute(self, host: str, command: str, *, interactive: bool = False) -> CommandResult:
        self.calls.append(("execute", host, command))
        self.interactive[host] = interactive
        return self._result(host, host in self.fail_execute, ["ssh", host, command])

    def transfer_out(self, host: str, local_path: Path, remote_path: str) -> CommandResult:
        self.calls.append(("transfer_out", host, remote_path))
        if host not in self.fail_transfer:
            self.received[host] = Path(local_path).read_bytes()
        return self._result(host, host in self.fail_transfer, ["scp", str(local_path)])

    def transfer_in(self, host: str, remote_path: str, local_path: Path) -> CommandResult:
        self.calls.append(("transfer_in", host, remote_path))
        failed = host in self.fail_transfer
        if not failed:
            Path(local_path).write_text(self.signatures.get(host, ""), encoding="utf-8")
        return self._result(host, failed, ["scp", remote_path])

    def hosts_called(self, method: str) -> list[str]:
        return [host for name, host, _ in self.calls if name == method]


class FakeProbe:
    """LivenessProbe with a fixed set of down hosts; records every probe."""

    def __init__(self, down: set[str] | None = None) -> None:
        self.down = down or set()
        self.probed: list[str] = []

    def is_alive(self, host: str) -> bool:
        self.probed.append(host)
        return host not in self.down


def mock_downloader(resources: dict[str, bytes]) -> Downloader:
    """Downloader backed by httpx.MockTransport; unknown URLs return 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = resources.get(str(request.url))
        if body is None:
            return httpx.Response(404, content=b"not found")
        return httpx.Response(200, content=body)

    return Downloader(timeout=5.0, transport=httpx.MockTransport(handler))


def md5_of(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ACP_* variables and any .env file from leaking into tests."""
    for name in list(os.environ):
        if name.startswith("ACP_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def make_config(tmp_dir: Path) -> Callable[..., AcpConfig]:
    """Factory fixture: an AcpConfig rooted in the temp directory."""

    def _factory(**overrides: Any) -> AcpConfig:
        defaults: dict[str, Any] = {
            "hosts": ["host1", "host2"],
            "user": "tester",
            "scratch_root": tmp_dir / "scratch",
            "output_dir": tmp_dir / "out",
        }
        defaults.update(overrides)
        return AcpConfig(**defaults)

    return _factory


@pytest.fixture
def config(make_config: Callable[..., AcpConfig]) -> AcpConfig:
    return make_config()


@pytest.fixture
def make_executor() -> type[FakeExecutor]:
    return FakeExecutor


@pytest.fixture
def make_probe() -> type[FakeProbe]:
    return FakeProbe


@pytest.fixture
def make_downloader() -> Callable[[dict[str, bytes]], Downloader]:
    return mock_downloader


@pytest.fixture
def md5() -> Callable[[bytes], str]:
    return md5_of


@pytest.fixture
def make_find_archive(tmp_dir: Path) -> Callable[..., Path]:
    """Factory fixture: a FIND transport archive from ``{host: [records]}``.

    Members are packed in the mapping's order.
    """

    def _factory(
        routine: Routine,
        signatures: dict[str, list[ResourceRecord]],
        name: str | None = None,
    ) -> Path:
        src = tmp_dir / "find-src"
        src.mkdir(parents=True, exist_ok=True)
        paths = [
            write_signature(src / member_name(routine, host, ArchiveKind.SIGNATURE), records)
            for host, records in signatures.items()
        ]
        return pack(paths, tmp_dir / "carry" / (name or f"{routine.value}_20240102030405.tar"))

    return _factory


@pytest.fixture
def make_get_archive(tmp_dir: Path) -> Callable[..., Path]:
    """Factory fixture: a GET transport archive from ``{host: {filename: bytes}}``."""

    def _factory(routine: Routine, payloads: dict[str, dict[str, bytes]]) -> Path:
        per_host: list[Path] = []
        for host, files in payloads.items():
            src = tmp_dir / "get-src" / host
            src.mkdir(parents=True, exist_ok=True)
            for filename, data in files.items():
                (src / filename).write_bytes(data)
            per_host.append(
                pack_directory(
                    src, tmp_dir / "get-packed" / member_name(routine, host, ArchiveKind.PAYLOAD)
                )
            )
        return pack(per_host, tmp_dir / "carry" / f"{routine.value}_20240102030405.tar")

    return _factory


def _tar_members(archive: Path) -> list[str]:
    with tarfile.open(archive, "r:*") as tf:
        return [m.name for m in tf.getmembers() if m.isfile()]


@pytest.fixture
def tar_members() -> Callable[[Path], list[str]]:
    """Names of the regular-file members of a tar, in archive order."""
    return _tar_members
