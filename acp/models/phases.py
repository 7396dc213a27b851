"""Routine and phase enumerations; one (routine, phase) pair per invocation."""

from __future__ import annotations

from enum import Enum


class Routine(str, Enum):
    """Top-level pipeline variant."""

    UPDATE = "update"  # refresh /var/lib/apt/lists
    UPGRADE = "upgrade"  # download and install pending packages


class Phase(str, Enum):
    """Step within a routine.  FIND and INSTALL run offline, GET online."""

    FIND = "find"
    GET = "get"
    INSTALL = "install"

