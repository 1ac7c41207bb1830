"""Run external commands with a timeout and a structured result."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger("license_auditor.python")


class CommandResult(BaseModel):
    """Outcome of an external command; failures never raise."""

    model_config = {"extra": "forbid"}

    ok: bool = Field(description="True if the command exited with status 0")
    stdout: str = ""
    stderr: str = ""
    returncode: Optional[int] = None
    error: Optional[str] = Field(
        default=None, description="Why the command failed, if it did"
    )


def describe_command(command: str, args: list[str]) -> str:
    """Render a command line for messages."""
    return " ".join([command, *args])


def run_command(
    command: str,
    args: list[str],
    cwd: Path,
    timeout: float = 15.0,
) -> CommandResult:
    """Run a command synchronously, capturing its output.

    The child is killed when the timeout expires. A missing executable,
    a timeout and a non-zero exit status all produce ``ok=False`` with a
    descriptive ``error``.

    Args:
        command: Executable name or path.
        args: Command arguments.
        cwd: Working directory.
        timeout: Timeout in seconds.

    Returns:
        CommandResult describing the outcome.
    """
    command_line = describe_command(command, args)
    try:
        completed = subprocess.run(
            [command, *args],
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        log.debug("command.timeout", command=command_line, timeout=timeout)
        return CommandResult(
            ok=False,
            stdout=_as_text(e.stdout),
            stderr=_as_text(e.stderr),
            error=f"Command timed out: {command_line}",
        )
    except OSError as e:
        log.debug("command.failed_to_start", command=command_line, error=str(e))
        return CommandResult(ok=False, error=f"Failed to run command: {command_line} ({e})")

    if completed.returncode != 0:
        log.debug(
            "command.nonzero_exit",
            command=command_line,
            returncode=completed.returncode,
        )
        return CommandResult(
            ok=False,
            stdout=completed.stdout,
            stderr=completed.stderr,
            returncode=completed.returncode,
            error=f"Command failed ({completed.returncode}): {command_line}",
        )

    return CommandResult(
        ok=True,
        stdout=completed.stdout,
        stderr=completed.stderr,
        returncode=completed.returncode,
    )


def _as_text(value: object) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value if isinstance(value, str) else ""
