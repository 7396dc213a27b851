"""Rich terminal renderer for phase reports.

Turns ``PhaseReport`` into Rich output: per-host status lines, the
checksum PASS/FAIL summary, the hand-off archive location and the epilogue.

Color scheme
------------
- green  : OK / up / PASS
- yellow : SKIPPED
- red    : FAILED / down / FAIL
"""

from __future__ import annotations

from collections.abc import Mapping

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from acp.models.phases import Phase, Routine
from acp.models.reports import ChecksumReport, HostStatus, PhaseReport

_STATUS_ICONS: dict[HostStatus, str] = {
    HostStatus.OK: "[green]Complete.[/green]",
    HostStatus.SKIPPED: "[yellow]SKIPPED[/yellow]",
    HostStatus.FAILED: "[bold red]FAILED[/bold red]",
}


class ReportRenderer:
    """Renders phase reports as Rich terminal output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Liveness
    # ------------------------------------------------------------------

    def print_liveness(self, status: Mapping[str, bool], title: str = "Status of all nodes:") -> None:
        self.console.print()
        self.console.print(f"[cyan]{title}[/cyan]")
        for host, alive in status.items():
            state = "[green]up[/green]" if alive else "[red]down[/red]"
            self.console.print(f"{escape(host)} -- {state}")

    # ------------------------------------------------------------------
    # Phase report
    # ------------------------------------------------------------------

    def render_hosts(self, report: PhaseReport) -> Table:
        table = Table(
            title=f"{report.routine.value}/{report.phase.value}",
            show_header=True,
            header_style="bold cyan",
        )
        table.add_column("Host", style="bold")
        table.add_column("Result", justify="center")
        table.add_column("Details")
        for result in report.results:
            table.add_row(
                escape(result.host),
                _STATUS_ICONS.get(result.status, result.status.value),
                escape(result.reason) if result.reason else "[dim]-[/dim]",
            )
        return table

    def print_checksums(self, checksum: ChecksumReport, *, verdict: bool = True) -> None:
        """Failed downloads, then (with *verdict*) the PASS/FAIL summary."""
        if checksum.download_failures:
            self.console.print(f"\nFailed downloads ({len(checksum.download_failures)}):")
            for record in checksum.download_failures:
                self.console.print(f" - {escape(record.filename)}")
        if not verdict:
            return
        if checksum.passed:
            self.console.print("\n[green]Checksum verification result: PASS[/green]")
            return
        self.console.print(f"\nMismatched checksums ({len(checksum.mismatches)}):")
        for record in checksum.mismatches:
            self.console.print(f" - {escape(record.filename)}")
        self.console.print("\nChecksum verification result: [bold red]FAIL[/bold red]")

    def print_report(self, report: PhaseReport) -> None:
        """Print everything the operator needs after a phase."""
        self.console.print()
        if report.results:
            self.console.print(self.render_hosts(report))
        else:
            self.console.print("[dim]No hosts were processed.[/dim]")

        if report.checksum is not None:
            self.print_checksums(report.checksum, verdict=report.routine is Routine.UPGRADE)

        if report.archive is not None and report.phase is not Phase.INSTALL:
            self.console.print()
            self.console.print(
                Panel(
                    f"[green]{escape(str(report.archive.path))}[/green]",
                    title="[bold]Ready for transport[/bold]",
                    border_style="green",
                )
            )

        if report.epilogue:
            self.console.print()
            self.console.print(report.epilogue, highlight=False, markup=False)
