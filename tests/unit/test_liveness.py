"""Tests for host reachability probing."""

from __future__ import annotations

import subprocess

from acp.core import liveness
from acp.core.liveness import LivenessProbe, PingProbe, probe_all


class TestPingProbe:
    def test_satisfies_protocol(self):
        assert isinstance(PingProbe(), LivenessProbe)

    def test_up(self, monkeypatch):
        seen = []

        def _run(argv, **kwargs):
            seen.append(argv)
            return subprocess.CompletedProcess(argv, 0)

        monkeypatch.setattr(liveness.subprocess, "run", _run)
        assert PingProbe(timeout_seconds=2).is_alive("node1") is True
        assert seen == [["ping", "-c1", "-W2", "node1"]]

    def test_down(self, monkeypatch):
        monkeypatch.setattr(
            liveness.subprocess, "run", lambda argv, **kw: subprocess.CompletedProcess(argv, 1)
        )
        assert PingProbe().is_alive("node1") is False

    def test_timeout_is_down(self, monkeypatch):
        def _run(argv, **kwargs):
            raise subprocess.TimeoutExpired(argv, kwargs.get("timeout"))

        monkeypatch.setattr(liveness.subprocess, "run", _run)
        assert PingProbe().is_alive("node1") is False

    def test_missing_ping_is_down(self, monkeypatch):
        def _run(argv, **kwargs):
            raise FileNotFoundError("ping")

        monkeypatch.setattr(liveness.subprocess, "run", _run)
        assert PingProbe().is_alive("node1") is False


class TestProbeAll:
    def test_order_and_values(self, make_probe):
        probe = make_probe(down={"b"})
        status = probe_all(["c", "b", "a"], probe)
        assert list(status) == ["c", "b", "a"]
        assert status == {"c": True, "b": False, "a": True}
        assert probe.probed == ["c", "b", "a"]
