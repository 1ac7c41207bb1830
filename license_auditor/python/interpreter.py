"""Selection of the Python interpreter used for environment introspection."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import structlog

from license_auditor.constants import INTERPRETER_CHECK_TIMEOUT
from license_auditor.exceptions import InterpreterNotFoundError
from license_auditor.python.commands import run_command

log = structlog.get_logger("license_auditor.python")


def local_venv_interpreter(cwd: Path) -> Path:
    """Location of the interpreter inside a project-local ``.venv``."""
    if sys.platform == "win32":
        return cwd / ".venv" / "Scripts" / "python.exe"
    return cwd / ".venv" / "bin" / "python"


def interpreter_candidates(cwd: Path, python: Optional[str] = None) -> list[str]:
    """List interpreter candidates in priority order.

    The explicit override comes first, then a local ``.venv`` interpreter
    if it exists, then ``python3`` and ``python`` from PATH.
    """
    candidates: list[str] = []
    if python:
        candidates.append(python)

    venv_python = local_venv_interpreter(cwd)
    if venv_python.exists():
        candidates.append(str(venv_python))

    candidates.extend(["python3", "python"])
    return candidates


def resolve_python_interpreter(cwd: Path, python: Optional[str] = None) -> str:
    """Return the first candidate that answers ``--version``.

    Args:
        cwd: Project root.
        python: Explicit interpreter path, tried first.

    Returns:
        The selected interpreter command.

    Raises:
        InterpreterNotFoundError: If no candidate can be run.
    """
    for candidate in interpreter_candidates(cwd, python):
        result = run_command(
            candidate, ["--version"], cwd=cwd, timeout=INTERPRETER_CHECK_TIMEOUT
        )
        if result.ok:
            log.debug("python.interpreter_selected", interpreter=candidate)
            return candidate
        log.debug("python.interpreter_rejected", interpreter=candidate, error=result.error)

    raise InterpreterNotFoundError(
        "Python interpreter was not found. "
        "Provide --python <path> or install python3/python."
    )
