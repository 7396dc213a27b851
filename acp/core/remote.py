"""Remote command execution and file transfer over ssh/scp.

Defines the ``RemoteExecutor`` Protocol that the phases talk to, along with
the default ``SshExecutor`` which shells out to the OpenSSH client tools.

Callers must check liveness first; the executor performs no reachability
check and never retries.  Every failure, including a missing ``ssh``
binary, comes back as a ``CommandResult`` with ``ok == False`` so that one
host's failure cannot interrupt the others.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class CommandResult(BaseModel):
    """Outcome of one remote command or transfer."""

    model_config = ConfigDict(frozen=True)

    host: str
    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return self.stdout

    @property
    def error(self) -> str:
        """Best available description of a failure."""
        return self.stderr.strip() or f"exit status {self.returncode}"


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class RemoteExecutor(Protocol):
    """Protocol for remote execution backends.

    Any object with these three methods satisfies the protocol; the tests
    use an in-memory fake.
    """

    def execute(
        self, host: str, command: str, *, interactive: bool = False
    ) -> CommandResult:
        """Run *command* through the remote login shell on *host*."""
        ...

    def transfer_out(self, host: str, local_path: Path, remote_path: str) -> CommandResult:
        """Copy a local file to *remote_path* on *host*."""
        ...

    def transfer_in(self, host: str, remote_path: str, local_path: Path) -> CommandResult:
        """Copy *remote_path* on *host* to a local path."""
        ...


# ---------------------------------------------------------------------------
# OpenSSH implementation
# ---------------------------------------------------------------------------


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


class SshExecutor:
    """Runs commands with ``ssh`` and copies files with ``scp``.

    Parameters
    ----------
    user:
        Remote login identity; keys/agents are assumed to be provisioned.
    options:
        Extra options passed to both ``ssh`` and ``scp`` (e.g.
        ``["-o", "ConnectTimeout=5"]``).
    """

    def __init__(self, user: str, options: Sequence[str] = ()) -> None:
        self.user = user
        self.options = list(options)

    def _target(self, host: str) -> str:
        return f"{self.user}@{host}" if self.user else host

    def execute(
        self, host: str, command: str, *, interactive: bool = False
    ) -> CommandResult:
        """Run a remote command.

        With ``interactive=True`` a tty is allocated and the terminal is
        inherited, so the operator can answer ``sudo`` password prompts;
        output is not captured in that mode.
        """
        argv = ["ssh", *(["-t"] if interactive else []), *self.options,
                self._target(host), command]
        return self._run(host, argv, capture=not interactive)

    def transfer_out(self, host: str, local_path: Path, remote_path: str) -> CommandResult:
        argv = ["scp", "-q", *self.options, str(local_path),
                f"{self._target(host)}:{remote_path}"]
        return self._run(host, argv)

    def transfer_in(self, host: str, remote_path: str, local_path: Path) -> CommandResult:
        argv = ["scp", "-q", *self.options,
                f"{self._target(host)}:{remote_path}", str(local_path)]
        return self._run(host, argv)

    def _run(self, host: str, argv: list[str], *, capture: bool = True) -> CommandResult:
        logger.info("CMD %s", _fmt_argv(argv))
        try:
            p = subprocess.run(
                argv,
                text=True,
                stdout=subprocess.PIPE if capture else None,
                stderr=subprocess.PIPE if capture else None,
                check=False,
            )
        except OSError as exc:
            logger.error("%s: cannot run %s: %s", host, argv[0], exc)
            return CommandResult(host=host, argv=argv, returncode=127, stderr=str(exc))

        if p.stdout:
            logger.debug("STDOUT %s", p.stdout.strip())
        if p.stderr:
            logger.debug("STDERR %s", p.stderr.strip())
        if p.returncode != 0:
            logger.warning("%s: %s exited with status %d", host, argv[0], p.returncode)

        return CommandResult(
            host=host,
            argv=argv,
            returncode=p.returncode,
            stdout=p.stdout or "",
            stderr=p.stderr or "",
        )
