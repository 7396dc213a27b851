"""Tests for the remote apt/dpkg command lines."""

from __future__ import annotations

import os
import shutil
import subprocess

import pytest

from acp.core.archive import pack
from acp.core.commands import (
    find_command,
    install_command,
    update_install_command,
    upgrade_install_command,
)
from acp.models.phases import Routine


class TestFindCommand:
    def test_update(self):
        cmd = find_command(Routine.UPDATE, "/tmp/update-h.sig")
        assert cmd.startswith("apt update --print-uris")
        assert cmd.endswith("> /tmp/update-h.sig")
        assert "apt upgrade" not in cmd

    def test_upgrade_includes_fix_broken(self):
        cmd = find_command(Routine.UPGRADE, "/tmp/upgrade-h.sig")
        assert "apt upgrade --print-uris" in cmd
        assert "apt install -f --print-uris" in cmd
        assert cmd.endswith(">> /tmp/upgrade-h.sig")

    def test_path_is_quoted(self):
        cmd = find_command(Routine.UPDATE, "/tmp/with space/update-h.sig")
        assert "'/tmp/with space/update-h.sig'" in cmd


class TestInstallCommands:
    def test_update_replaces_lists(self, config):
        cmd = update_install_command("/tmp/update-h.tar", config)
        steps = cmd.split(" && ")
        assert steps[0] == "cd /var/lib/apt/lists"
        assert "-delete" in steps[1]
        assert "tar -xf /tmp/update-h.tar -C /var/lib/apt/lists" in steps[2]
        assert "xz -d" in steps[3]
        assert "rm -f" in steps[3]

    def test_upgrade_installs_twice_then_cleans(self, config):
        cmd = upgrade_install_command("/tmp/upgrade-h.tar", config)
        assert cmd.count("sudo dpkg -i /tmp/acpinstall/*.deb") == 2
        assert "tar -xf /tmp/upgrade-h.tar -C /tmp/acpinstall" in cmd
        assert cmd.index("dpkg -i") < cmd.index("apt autoremove -y") < cmd.index("apt autoclean")

    def test_directories_come_from_config(self, make_config):
        config = make_config(apt_lists_dir="/srv/lists", remote_install_dir="/srv/work")
        assert "cd /srv/lists" in update_install_command("/tmp/u.tar", config)
        assert "/srv/work/*.deb" in upgrade_install_command("/tmp/u.tar", config)

    def test_dispatch(self, config):
        assert install_command(Routine.UPDATE, "/tmp/a.tar", config) == update_install_command("/tmp/a.tar", config)
        assert install_command(Routine.UPGRADE, "/tmp/a.tar", config) == upgrade_install_command("/tmp/a.tar", config)


# ---------------------------------------------------------------------------
# Test: the upgrade script under a real shell
# ---------------------------------------------------------------------------

_FAKE_TOOLS = {
    "sudo": '#!/bin/sh\nexec "$@"\n',
    "dpkg": '#!/bin/sh\necho "dpkg $*" >> "$CALL_LOG"\nexit "${DPKG_RC:-0}"\n',
    "apt": '#!/bin/sh\necho "apt $*" >> "$CALL_LOG"\n',
}


@pytest.mark.skipif(
    shutil.which("sh") is None or shutil.which("tar") is None,
    reason="needs a POSIX shell and tar",
)
class TestUpgradeScript:
    """Run the generated command with stand-ins for sudo, dpkg and apt."""

    @pytest.fixture
    def run_script(self, make_config, tmp_dir):
        bin_dir = tmp_dir / "bin"
        bin_dir.mkdir()
        for name, body in _FAKE_TOOLS.items():
            tool = bin_dir / name
            tool.write_text(body, encoding="utf-8")
            tool.chmod(0o755)
        log = tmp_dir / "calls.log"
        config = make_config(remote_install_dir=str(tmp_dir / "acpinstall"))

        def _run(debs: dict[str, bytes], dpkg_rc: int = 0):
            src = tmp_dir / "payload"
            src.mkdir(exist_ok=True)
            paths = []
            for name, data in debs.items():
                (src / name).write_bytes(data)
                paths.append(src / name)
            archive = pack(paths, tmp_dir / "upgrade-host1.tar")
            env = dict(
                os.environ,
                PATH=f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}",
                CALL_LOG=str(log),
                DPKG_RC=str(dpkg_rc),
            )
            proc = subprocess.run(
                ["sh", "-c", upgrade_install_command(str(archive), config)],
                env=env,
                capture_output=True,
                text=True,
                check=False,
            )
            calls = log.read_text(encoding="utf-8").splitlines() if log.exists() else []
            return proc, calls

        return _run

    def test_empty_payload_skips_dpkg_and_still_cleans(self, run_script):
        proc, calls = run_script({})
        assert proc.returncode == 0
        assert "No packages to install." in proc.stdout
        assert not any(c.startswith("dpkg") for c in calls)
        assert calls == ["apt autoremove -y", "apt autoclean"]

    def test_debs_installed_twice(self, run_script):
        proc, calls = run_script({"a.deb": b"A", "b.deb": b"B"})
        assert proc.returncode == 0
        dpkg_calls = [c for c in calls if c.startswith("dpkg")]
        assert len(dpkg_calls) == 2
        assert all("a.deb" in c and "b.deb" in c for c in dpkg_calls)
        assert calls[-2:] == ["apt autoremove -y", "apt autoclean"]

    def test_dpkg_failure_is_reported_after_cleanup(self, run_script):
        proc, calls = run_script({"a.deb": b"A"}, dpkg_rc=1)
        assert proc.returncode == 1
        assert calls[-2:] == ["apt autoremove -y", "apt autoclean"]
