"""Main Typer application.

Entry point: ``acp`` (configured via pyproject.toml console_scripts).

    acp ROUTINE TASK [OPTIONS]
    acp status [--workers]

Exactly one routine (``--update`` or ``--upgrade``) and one task
(``--find``, ``--get PATH`` or ``--install PATH``) per invocation.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from acp import __description__
from acp.cli.commands.run import run_phase
from acp.cli.commands.status import status_cmd
from acp.config import AcpConfig
from acp.models.phases import Phase, Routine

err_console = Console(stderr=True)

_EPILOG = """\
The update routine refreshes the offline apt metadata; the upgrade routine
then downloads and installs the pending packages. FIND and INSTALL run on
the offline side, GET on an internet-connected machine.

\b
  1) acp --update --find
  2) acp --update --get path/to/update_<datetime>.tar
  3) acp --update --install path/to/update_<datetime>.tar
  4) acp --upgrade --find
  5) acp --upgrade --get path/to/upgrade_<datetime>.tar
  6) acp --upgrade --install path/to/upgrade_<datetime>.tar
"""

app = typer.Typer(
    name="acp",
    help=f"{__description__}.",
    epilog=_EPILOG,
    no_args_is_help=True,
    rich_markup_mode=None,
    add_completion=False,
)

app.command(name="status", help="Show which nodes are reachable.")(status_cmd)


def configure_logging(level: str) -> None:
    """Route all log records through a Rich handler on stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _usage_error(message: str) -> None:
    err_console.print(f"[bold red][ERROR]:[/bold red] {message} See 'acp --help'.")
    raise typer.Exit(code=1)


def _build_config(**overrides: object) -> AcpConfig:
    try:
        return AcpConfig(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as exc:
        err_console.print(f"[bold red]Invalid configuration:[/bold red]\n{exc}")
        raise typer.Exit(code=1)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    update: bool = typer.Option(False, "--update", help="Routine: refresh the apt metadata."),
    upgrade: bool = typer.Option(False, "--upgrade", help="Routine: download and install upgrades."),
    find: bool = typer.Option(False, "--find", "-f", help="Task: find the URIs to download (offline)."),
    get: Optional[Path] = typer.Option(
        None, "--get", "-g", metavar="PATH", help="Task: download from a find archive (online)."
    ),
    install: Optional[Path] = typer.Option(
        None, "--install", "-i", metavar="PATH", help="Task: install from a get archive (offline)."
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Exit 1 if any host failed or was skipped, or checksums failed."
    ),
    hosts: Optional[List[str]] = typer.Option(
        None, "--host", "-H", help="Target host; repeat for several. Overrides ACP_HOSTS."
    ),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Remote login user."),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", help="Where transport archives are delivered."
    ),
    scratch_root: Optional[Path] = typer.Option(
        None, "--scratch-root", help="Root of the local staging directories."
    ),
    max_workers: Optional[int] = typer.Option(
        None, "--max-workers", help="Hosts processed concurrently."
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    config = _build_config(
        hosts=hosts or None,
        user=user,
        output_dir=output_dir,
        scratch_root=scratch_root,
        max_workers=max_workers,
        log_level=log_level,
    )
    configure_logging(config.log_level)
    ctx.obj = config

    if ctx.invoked_subcommand is not None:
        return

    if update + upgrade != 1:
        _usage_error("Exactly one of --update or --upgrade must be supplied.")
    tasks = [(Phase.FIND, None)] if find else []
    if get is not None:
        tasks.append((Phase.GET, get))
    if install is not None:
        tasks.append((Phase.INSTALL, install))
    if len(tasks) != 1:
        _usage_error("Exactly one of --find, --get PATH or --install PATH must be supplied.")

    routine = Routine.UPDATE if update else Routine.UPGRADE
    phase, archive_path = tasks[0]
    run_phase(routine, phase, config, archive_path, strict=strict)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
