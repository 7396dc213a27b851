"""Archive models — host identity travels as an explicit field.

Member names inside a transport archive follow ``<routine>-<host>.<ext>``.
The name is parsed exactly once, in ``HostArchive.from_member``; every later
step reads ``HostArchive.host`` instead of re-deriving it from a string.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from acp.models.phases import Phase, Routine


class ArchiveKind(str, Enum):
    """Extension of a per-host member."""

    SIGNATURE = "sig"  # FIND output: one signature file per host
    PAYLOAD = "tar"  # GET output: one tar of downloads per host


class HostArchive(BaseModel):
    """A per-host file bound to the host it was produced for."""

    model_config = ConfigDict(frozen=True)

    host: str
    routine: Routine
    kind: ArchiveKind
    path: Path
    source_stem: str | None = None  # name the member arrived under, if not canonical

    @property
    def member_name(self) -> str:
        return f"{self.stem}.{self.kind.value}"

    @property
    def stem(self) -> str:
        return self.source_stem or f"{self.routine.value}-{self.host}"

    def with_kind(self, kind: ArchiveKind, path: Path) -> HostArchive:
        """Same host and routine, repacked as *kind* at *path*."""
        return self.model_copy(update={"kind": kind, "path": path})

    @classmethod
    def from_member(
        cls, path: Path, routine: Routine | None = None
    ) -> HostArchive:
        """Recover the host a member was produced for from its file name.

        The known ``<routine>-`` prefix is stripped, so hyphenated host names
        survive.  Without a recognised prefix the substring after the last
        ``-`` is taken, which requires *routine* to be supplied; the original
        stem is kept so a repacked member keeps its name.

        Raises
        ------
        ValueError
            If the name has no known extension or no host can be derived.
        """
        name = Path(path).name
        kind = next(
            (k for k in ArchiveKind if name.endswith(f".{k.value}")), None
        )
        if kind is None:
            raise ValueError(f"Not a per-host member: {name}")
        stem = name[: -(len(kind.value) + 1)]

        for candidate in Routine:
            prefix = f"{candidate.value}-"
            if stem.startswith(prefix) and len(stem) > len(prefix):
                return cls(
                    host=stem[len(prefix):], routine=candidate, kind=kind, path=path
                )

        host = stem.rpartition("-")[2]
        if routine is None or not host:
            raise ValueError(f"Cannot derive a host name from {name}")
        return cls(
            host=host, routine=routine, kind=kind, path=path, source_stem=stem
        )


def member_name(routine: Routine, host: str, kind: ArchiveKind) -> str:
    """``<routine>-<host>.<ext>``."""
    return f"{routine.value}-{host}.{kind.value}"


class TransportArchive(BaseModel):
    """The tar the operator carries across the air gap."""

    model_config = ConfigDict(frozen=True)

    path: Path
    routine: Routine
    phase: Phase
    members: list[HostArchive] = Field(default_factory=list)

    @property
    def hosts(self) -> list[str]:
        return [m.host for m in self.members]
