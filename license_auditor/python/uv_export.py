"""uv.lock export and parsing of its pinned-requirement output."""

from __future__ import annotations

import re
from pathlib import Path
from typing import NamedTuple

import structlog

from license_auditor.constants import UV_EXPORT_TIMEOUT, UV_LOCK_FILE
from license_auditor.models.package import ParsedRequirement
from license_auditor.python.commands import run_command
from license_auditor.python.requirements import (
    match_pinned_requirement,
    normalize_package_name,
    strip_comment,
)

log = structlog.get_logger("license_auditor.python")

_INLINE_HASH_RE = re.compile(r"\s+--hash=\S+")


class UvExportResult(NamedTuple):
    """Pinned dependencies from uv plus any warnings."""

    dependencies: list[ParsedRequirement]
    warnings: list[str]


def fold_continuation_lines(output: str) -> list[str]:
    """Join backslash-continued lines into single logical lines.

    A blank line also terminates a pending logical line.
    """
    folded: list[str] = []
    buffer = ""

    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line:
            if buffer:
                folded.append(buffer.strip())
                buffer = ""
            continue

        continued = line.endswith("\\")
        segment = line[:-1].rstrip() if continued else line
        buffer = f"{buffer} {segment}" if buffer else segment

        if not continued:
            folded.append(buffer.strip())
            buffer = ""

    if buffer:
        folded.append(buffer.strip())

    return folded


def _is_directive(line: str) -> bool:
    return line.startswith("--") and not line.startswith("--hash=")


def parse_uv_export_requirements(output: str, cwd: Path) -> UvExportResult:
    """Parse ``uv export --format requirements.txt`` output.

    Comments, ``--`` directives and ``--hash=`` fragments are dropped.
    Remaining lines must be exact pins; anything else produces a warning
    without aborting.

    Args:
        output: Captured stdout of uv export.
        cwd: Project root; pins are attributed to its uv.lock.

    Returns:
        UvExportResult with pins deduplicated by normalized name and version.
    """
    source_file = str(cwd / UV_LOCK_FILE)
    dependencies: list[ParsedRequirement] = []
    warnings: list[str] = []
    seen: set[str] = set()

    for logical_line in fold_continuation_lines(output):
        line = strip_comment(logical_line).strip()
        if not line or _is_directive(line) or line.startswith("--hash="):
            continue

        pinned = match_pinned_requirement(_INLINE_HASH_RE.sub("", line).strip())
        if pinned is None:
            warnings.append(f"Unsupported uv export requirement line: {line}")
            continue

        raw_name, version = pinned
        requirement = ParsedRequirement(
            raw_name=raw_name,
            normalized_name=normalize_package_name(raw_name),
            version=version,
            source_file=source_file,
        )
        if requirement.key in seen:
            continue
        seen.add(requirement.key)
        dependencies.append(requirement)

    return UvExportResult(dependencies=dependencies, warnings=warnings)


def export_uv_lock(cwd: Path, production: bool = False) -> UvExportResult:
    """Export uv.lock through ``uv export`` and parse the result.

    A failed export is returned as a warning, never raised.

    Args:
        cwd: Project root containing uv.lock.
        production: Pass ``--no-dev`` to exclude dev dependencies.

    Returns:
        UvExportResult; empty dependencies with a warning on failure.
    """
    args = ["export", "--frozen", "--format", "requirements.txt"]
    if production:
        args.append("--no-dev")

    result = run_command("uv", args, cwd=cwd, timeout=UV_EXPORT_TIMEOUT)
    if not result.ok:
        log.debug("uv.export_failed", error=result.error)
        return UvExportResult(
            dependencies=[],
            warnings=[
                " ".join(
                    [
                        "uv.lock detected but uv export failed.",
                        result.error or "Failed to run uv export for uv.lock",
                        "Install uv or pass --requirements / --python to select "
                        "another source.",
                    ]
                )
            ],
        )

    return parse_uv_export_requirements(result.stdout, cwd)
