"""Tests for AcpConfig — env-driven topology and directory layout."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from acp.config import AcpConfig


class TestAcpConfig:
    def test_defaults(self):
        config = AcpConfig()
        assert config.hosts == []
        assert config.workers == []
        assert config.scratch_root == Path("/tmp/acp")
        assert config.output_dir == Path.home() / "Desktop"
        assert config.remote_tmp_dir == "/tmp"
        assert config.remote_install_dir == "/tmp/acpinstall"
        assert config.apt_lists_dir == "/var/lib/apt/lists"
        assert config.max_workers == 1
        assert config.log_level == "INFO"

    def test_user_defaults_to_a_login_name(self):
        assert AcpConfig().user

    def test_staging_dir_is_under_scratch_root(self, tmp_dir):
        config = AcpConfig(scratch_root=tmp_dir)
        assert config.staging_dir("update-get") == tmp_dir / "update-get"

    def test_frozen(self):
        config = AcpConfig()
        with pytest.raises(ValidationError):
            config.user = "someone-else"


class TestAcpConfigValidation:
    def test_workers_must_be_subset_of_hosts(self):
        with pytest.raises(ValidationError, match="subset of hosts"):
            AcpConfig(hosts=["a", "b"], workers=["c"])

    def test_workers_subset_accepted(self):
        config = AcpConfig(hosts=["a", "b", "c"], workers=["b", "c"])
        assert config.workers == ["b", "c"]

    def test_max_workers_must_be_positive(self):
        with pytest.raises(ValidationError, match="max_workers"):
            AcpConfig(max_workers=0)


class TestAcpConfigEnvironment:
    def test_hosts_from_env(self, monkeypatch):
        monkeypatch.setenv("ACP_HOSTS", '["node01", "node02"]')
        monkeypatch.setenv("ACP_WORKERS", '["node02"]')
        config = AcpConfig()
        assert config.hosts == ["node01", "node02"]
        assert config.workers == ["node02"]

    def test_scalar_overrides_from_env(self, monkeypatch, tmp_dir):
        monkeypatch.setenv("ACP_USER", "admin")
        monkeypatch.setenv("ACP_OUTPUT_DIR", str(tmp_dir / "usb"))
        monkeypatch.setenv("ACP_MAX_WORKERS", "4")
        config = AcpConfig()
        assert config.user == "admin"
        assert config.output_dir == tmp_dir / "usb"
        assert config.max_workers == 4

    def test_dotenv_file(self, tmp_dir):
        (tmp_dir / ".env").write_text('ACP_HOSTS=["from-dotenv"]\n', encoding="utf-8")
        assert AcpConfig().hosts == ["from-dotenv"]

    def test_explicit_arguments_win_over_env(self, monkeypatch):
        monkeypatch.setenv("ACP_USER", "admin")
        assert AcpConfig(user="operator").user == "operator"
