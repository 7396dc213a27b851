"""Abstract base phase with an enforced lifecycle.

Every concrete phase inherits from BasePhase and implements ``execute()``
and ``epilogue()``.  The ``run()`` wrapper is **not overridable**; it
enforces the canonical ordering:

    prepare (clear staging) -> execute -> summarise -> epilogue

so that every phase starts from an empty staging directory and always
returns a ``PhaseReport``.
"""

from __future__ import annotations

import abc
import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import ClassVar, TypeVar, final

from acp.config import AcpConfig
from acp.core.archive import ArchivePackError, ArchiveUnpackError, reset_directory
from acp.models.phases import Phase, Routine
from acp.models.reports import HostResult, PhaseReport

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PhaseExecutionError(RuntimeError):
    """Raised when a phase fails for a reason other than archive I/O."""


class BasePhase(abc.ABC):
    """Abstract base for the FIND, GET and INSTALL phases.

    Subclasses **must** set ``phase`` and implement:
        * ``execute()``: the phase's core logic, returning a PhaseReport.
        * ``epilogue(report)``: operator instructions for the next step.

    Subclasses **must not** override ``run()``.
    """

    phase: ClassVar[Phase]

    def __init__(self, routine: Routine, config: AcpConfig) -> None:
        self.routine = Routine(routine)
        self.config = config

    @property
    def display_name(self) -> str:
        return f"{self.routine.value}/{self.phase.value}"

    @property
    def staging_dir(self) -> Path:
        """Local scratch directory owned by this phase, e.g. ``/tmp/acp/update-get``."""
        return self.config.staging_dir(f"{self.routine.value}-{self.phase.value}")

    # ------------------------------------------------------------------
    # Abstract interface
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def execute(self) -> PhaseReport:
        ...

    @abc.abstractmethod
    def epilogue(self, report: PhaseReport) -> str:
        ...

    # ------------------------------------------------------------------
    # Lifecycle (not overridable)
    # ------------------------------------------------------------------

    @final
    def run(self) -> PhaseReport:
        """Execute the full phase lifecycle.  **Do not override.**

        Archive errors propagate unchanged, since without a usable
        transport archive there is nothing to hand to the next phase.
        Anything else unexpected is wrapped in ``PhaseExecutionError``.
        """
        logger.info("%s: preparing %s", self.display_name, self.staging_dir)
        try:
            self.prepare()
            report = self.execute()
        except (ArchivePackError, ArchiveUnpackError) as exc:
            logger.error("%s aborted: %s", self.display_name, exc)
            raise
        except Exception as exc:
            logger.error("%s failed: %s", self.display_name, exc)
            raise PhaseExecutionError(
                f"Phase {self.display_name} failed: {exc}"
            ) from exc

        logger.info(
            "%s complete: %d ok, %d skipped, %d failed",
            self.display_name,
            len(report.results) - len(report.skipped_hosts) - len(report.failed_hosts),
            len(report.skipped_hosts),
            len(report.failed_hosts),
        )
        return report.model_copy(update={"epilogue": self.epilogue(report)})

    def prepare(self) -> None:
        """Clear this phase's staging directory from any earlier run."""
        reset_directory(self.staging_dir)

    # ------------------------------------------------------------------
    # Per-host work
    # ------------------------------------------------------------------

    @final
    def map_hosts(
        self,
        items: Sequence[T],
        host_of: Callable[[T], str],
        work: Callable[[T], HostResult],
    ) -> list[HostResult]:
        """Run *work* for every item, one independent task per host.

        Results come back in the order of *items* whatever the pool size.
        An exception inside one task becomes a FAILED result for that host
        and never cancels the others.
        """

        def _guarded(item: T) -> HostResult:
            host = host_of(item)
            try:
                return work(item)
            except Exception as exc:
                logger.exception("%s: unexpected error", host)
                return HostResult.failed(host, f"unexpected error: {exc}")

        if self.config.max_workers <= 1 or len(items) <= 1:
            return [_guarded(item) for item in items]

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
            return list(pool.map(_guarded, items))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.display_name!r}>"
