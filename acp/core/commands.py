"""Remote apt/dpkg command lines for each routine.

These are the only places the package manager is invoked.  Every command
is a single shell string run through the remote login shell, with paths
quoted.
"""

from __future__ import annotations

import shlex

from acp.config import AcpConfig
from acp.models.phases import Routine


def _q(value: str) -> str:
    return shlex.quote(value)


def find_command(routine: Routine, remote_sig: str) -> str:
    """Write the routine's pending-resource list into *remote_sig*.

    ``--print-uris`` makes apt list what it would download without touching
    anything.  For upgrade, ``apt install -f`` is appended so resources
    needed to repair broken dependencies are collected too.
    """
    sig = _q(remote_sig)
    if routine is Routine.UPDATE:
        return f"apt update --print-uris 2> /dev/null | grep http | tr -d \"'\" > {sig}"
    return (
        f"apt upgrade --print-uris 2> /dev/null | grep \"^'http\" | tr -d \"'\" > {sig}; "
        f"apt install -f --print-uris 2> /dev/null | grep \"^'http\" | tr -d \"'\" >> {sig}"
    )


def update_install_command(remote_archive: str, config: AcpConfig) -> str:
    """Replace the apt lists directory with the archive's contents.

    Compressed members are decompressed in place and the compressed
    originals removed; apt's reader chokes on leftovers (``lzma_read``
    errors).
    """
    lists = _q(config.apt_lists_dir)
    archive = _q(remote_archive)
    return " && ".join([
        f"cd {lists}",
        f"sudo find {lists} -maxdepth 1 -type f -delete",
        f"sudo tar -xf {archive} -C {lists} --transform 's,^.*/,,'",
        "{ sudo xz -df ./*.xz 2> /dev/null; sudo gzip -df ./*.gz 2> /dev/null; "
        "sudo rm -f ./*.xz ./*.gz; true; }",
    ])


def upgrade_install_command(remote_archive: str, config: AcpConfig) -> str:
    """Install every ``.deb`` in the archive, then tidy up.

    ``dpkg -i`` runs twice: the first pass may leave packages unconfigured
    because of ordering between them, the second usually settles them.
    This is a heuristic, not a guarantee; only the second pass's status is
    checked, and it becomes the exit status of the whole command.

    A payload without any ``.deb`` (nothing pending on that host) skips
    dpkg entirely.  ``apt autoremove`` and ``apt autoclean`` always run once
    the archive is extracted; their own status is not reported.
    """
    work = _q(config.remote_install_dir)
    archive = _q(remote_archive)
    debs = f"{work}/*.deb"
    prepare = " && ".join([
        f"mkdir -p {work}",
        f"rm -f {work}/*",
        f"tar -xf {archive} -C {work}",
    ])
    install = (
        f"if ls {debs} > /dev/null 2>&1; then "
        f"sudo dpkg -i {debs}; sudo dpkg -i {debs}; rc=$?; "
        "else echo 'No packages to install.'; rc=0; fi"
    )
    cleanup = "sudo apt autoremove -y; sudo apt autoclean"
    return f"{prepare} && {{ {install}; {cleanup}; exit $rc; }}"


def install_command(routine: Routine, remote_archive: str, config: AcpConfig) -> str:
    if routine is Routine.UPDATE:
        return update_install_command(remote_archive, config)
    return upgrade_install_command(remote_archive, config)
