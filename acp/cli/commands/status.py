"""``acp status`` — report which nodes are reachable."""

from __future__ import annotations

import typer
from rich.console import Console

from acp.config import AcpConfig
from acp.core.liveness import PingProbe, probe_all
from acp.monitor.renderer import ReportRenderer

console = Console()


def status_cmd(
    ctx: typer.Context,
    workers: bool = typer.Option(
        False,
        "--workers",
        "-w",
        help="Only probe the worker nodes.",
    ),
) -> None:
    """Show up/down for every configured node (or the worker subset).

    Exits with status 1 if any probed node is down.
    """
    config: AcpConfig = ctx.obj
    hosts = config.workers if workers else config.hosts
    title = "Status of all worker nodes:" if workers else "Status of all nodes:"

    status = probe_all(hosts, PingProbe(config.ping_timeout_seconds))
    ReportRenderer(console=console).print_liveness(status, title=title)

    if not all(status.values()):
        raise typer.Exit(code=1)
