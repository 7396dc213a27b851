"""acp CLI — Typer-based command-line interface.

Provides the ``acp`` command: one (routine, task) pair per invocation plus
an ``acp status`` liveness report.  All output uses Rich.
"""
