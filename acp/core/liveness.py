"""Host reachability probing.

The phases only consume a boolean; ``PingProbe`` is the default backend and
any object with ``is_alive(host) -> bool`` can replace it.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class LivenessProbe(Protocol):
    """Protocol for reachability checks."""

    def is_alive(self, host: str) -> bool:
        """Return ``True`` if *host* answers, ``False`` otherwise."""
        ...


class PingProbe:
    """Single ICMP echo with a short deadline (fail fast)."""

    def __init__(self, timeout_seconds: int = 1) -> None:
        self.timeout_seconds = timeout_seconds

    def is_alive(self, host: str) -> bool:
        argv = ["ping", "-c1", f"-W{self.timeout_seconds}", host]
        try:
            p = subprocess.run(
                argv,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self.timeout_seconds + 2,
                check=False,
            )
        except (subprocess.SubprocessError, OSError) as exc:
            logger.debug("ping %s failed to run: %s", host, exc)
            return False
        return p.returncode == 0


def probe_all(hosts: Iterable[str], probe: LivenessProbe) -> dict[str, bool]:
    """Probe every host in order; ``{host: alive}``."""
    status: dict[str, bool] = {}
    for host in hosts:
        status[host] = probe.is_alive(host)
        logger.info("%s -- %s", host, "up" if status[host] else "down")
    return status
