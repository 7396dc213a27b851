"""``acp --update|--upgrade --find|--get PATH|--install PATH`` — run one phase.

Builds the phase for the selected (routine, phase) pair, runs it, prints
the report and maps the outcome onto the process exit status.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from acp.config import AcpConfig
from acp.core.archive import ArchivePackError, ArchiveUnpackError
from acp.models.phases import Phase, Routine
from acp.models.reports import PhaseReport
from acp.monitor.renderer import ReportRenderer
from acp.phases import PhaseExecutionError, build_phase

console = Console()


def run_phase(
    routine: Routine,
    phase: Phase,
    config: AcpConfig,
    archive_path: Path | None = None,
    *,
    strict: bool = False,
) -> PhaseReport:
    """Run one phase and exit non-zero on fatal errors.

    With *strict*, any failed or skipped host, or a checksum FAIL, also
    makes the exit status 1; by default those are only reported.
    """
    if archive_path is not None and not archive_path.is_file():
        console.print(f"[bold red]Archive not found:[/bold red] {archive_path}")
        raise typer.Exit(code=1)

    console.print(f"\n[bold cyan]Running {routine.value}/{phase.value} ...[/bold cyan]")
    try:
        report = build_phase(routine, phase, config, archive_path).run()
    except (ArchivePackError, ArchiveUnpackError, PhaseExecutionError) as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)

    ReportRenderer(console=console).print_report(report)

    if strict:
        checksum_failed = report.checksum is not None and not report.checksum.passed
        if not report.ok or checksum_failed:
            raise typer.Exit(code=1)
    return report
