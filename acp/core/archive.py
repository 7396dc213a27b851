"""Tar packing and unpacking for transport and per-host archives.

All archives are flat: members are stored under their base name only, and
unpacking writes every regular file directly into the destination
directory.  Nested paths in an incoming archive are flattened, which also
means no member can be written outside the destination.
"""

from __future__ import annotations

import logging
import shutil
import tarfile
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


class ArchivePackError(RuntimeError):
    """Raised when a transport or per-host archive cannot be written."""


class ArchiveUnpackError(RuntimeError):
    """Raised when an archive cannot be read."""


def reset_directory(path: Path) -> Path:
    """Remove *path* and everything below it, then recreate it empty."""
    path = Path(path)
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def pack(files: Iterable[Path], dest: Path) -> Path:
    """Write *files* into a new uncompressed tar at *dest*, flat.

    The archive is written next to *dest* and moved into place once
    complete, so a failed pack never leaves a truncated archive behind.
    """
    dest = Path(dest)
    part = dest.with_name(dest.name + ".part")
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with tarfile.open(part, "w") as tf:
            for path in files:
                path = Path(path)
                tf.add(path, arcname=path.name, recursive=False)
                logger.debug("packed %s into %s", path.name, dest.name)
        part.replace(dest)
    except (OSError, tarfile.TarError) as exc:
        part.unlink(missing_ok=True)
        raise ArchivePackError(f"Cannot create archive {dest}: {exc}") from exc
    return dest


def pack_directory(source: Path, dest: Path) -> Path:
    """Pack every regular file directly inside *source*, in name order."""
    source = Path(source)
    files = sorted(p for p in source.iterdir() if p.is_file()) if source.is_dir() else []
    return pack(files, dest)


def unpack(archive: Path, dest: Path) -> list[Path]:
    """Extract regular-file members of *archive* into *dest*.

    Returns the extracted paths in archive order.  Links, devices and
    directories are ignored.
    """
    archive = Path(archive)
    dest = Path(dest)
    extracted: list[Path] = []
    try:
        dest.mkdir(parents=True, exist_ok=True)
        with tarfile.open(archive, "r:*") as tf:
            for member in tf:
                if not member.isfile():
                    continue
                name = Path(member.name).name
                if name in ("", ".", ".."):
                    continue
                target = dest / name
                if target in extracted:
                    logger.warning("%s: duplicate member %s overwritten", archive.name, name)
                    extracted.remove(target)
                source = tf.extractfile(member)
                if source is None:
                    continue
                with source, target.open("wb") as out:
                    shutil.copyfileobj(source, out)
                extracted.append(target)
    except (OSError, tarfile.TarError) as exc:
        raise ArchiveUnpackError(f"Cannot unpack {archive}: {exc}") from exc
    return extracted

