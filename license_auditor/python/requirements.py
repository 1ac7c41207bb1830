"""Pinned requirements-file parsing with ``-r`` include support."""

from __future__ import annotations

import os
import re
from collections.abc import Iterator
from pathlib import Path
from typing import NamedTuple, Optional

import structlog
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from license_auditor.constants import REQUIREMENTS_DIR, REQUIREMENTS_FILE
from license_auditor.models.package import ParsedRequirement, UnsupportedRequirement

log = structlog.get_logger("license_auditor.python")

# name[extras]==version with an optional environment marker
PINNED_REQUIREMENT_RE = re.compile(
    r"^([A-Za-z0-9_.-]+)(\[[A-Za-z0-9_,.-]+\])?==([^\s;]+)(?:\s*;.*)?$"
)

INCLUDE_RE = re.compile(r"^(?:-r|--requirement)(?:\s+|=)(.+)$", re.IGNORECASE)

_LEADING_NAME_RE = re.compile(r"^([A-Za-z0-9][A-Za-z0-9_.-]*)")


class RequirementsParseResult(NamedTuple):
    """Pinned requirements, warnings and lines that are not exact pins."""

    requirements: list[ParsedRequirement]
    warnings: list[str]
    unsupported_requirements: list[UnsupportedRequirement]


def normalize_package_name(name: str) -> str:
    """Normalize a package name per PEP 503.

    Lower-cases and collapses runs of ``.``, ``_`` and ``-`` into one ``-``.
    """
    return str(canonicalize_name(name))


def strip_comment(line: str) -> str:
    """Remove everything from the first ``#`` on."""
    return line.split("#", 1)[0]


def match_pinned_requirement(line: str) -> Optional[tuple[str, str]]:
    """Match an exact ``name==version`` pin.

    Returns:
        Tuple of (name, version), or None if the line is not an exact pin.
    """
    match = PINNED_REQUIREMENT_RE.match(line)
    if not match:
        return None
    return match.group(1), match.group(3)


def guess_package_name(line: str) -> Optional[str]:
    """Best-effort package name for a requirement that is not a pin."""
    try:
        return Requirement(line).name
    except InvalidRequirement:
        match = _LEADING_NAME_RE.match(line)
        return match.group(1) if match else None


def discover_requirements_files(cwd: Path) -> list[Path]:
    """Find the root requirements.txt and any ``requirements/*.txt`` files."""
    files: list[Path] = []

    root_requirements = cwd / REQUIREMENTS_FILE
    if root_requirements.is_file():
        files.append(root_requirements)

    requirements_dir = cwd / REQUIREMENTS_DIR
    if requirements_dir.is_dir():
        files.extend(
            sorted(
                entry
                for entry in requirements_dir.iterdir()
                if entry.is_file() and entry.name.lower().endswith(".txt")
            )
        )

    return files


def _relative(cwd: Path, path: Path) -> str:
    try:
        return os.path.relpath(path, cwd)
    except ValueError:
        return str(path)


class RequirementsParser:
    """Parses requirements files, following includes at most once per file."""

    def __init__(self, cwd: Path) -> None:
        self._cwd = cwd
        self._parsed: dict[str, ParsedRequirement] = {}
        self._warnings: list[str] = []
        self._unsupported: list[UnsupportedRequirement] = []
        self._visited: set[Path] = set()

    def parse(self, files: list[Path]) -> RequirementsParseResult:
        """Parse the given files and everything they include.

        Includes are processed in place, as if the included file's lines
        were pasted at the ``-r`` line. A file already visited is skipped,
        which makes cyclic includes safe.

        Args:
            files: Requirements files, absolute or relative to cwd.

        Returns:
            RequirementsParseResult with deduplicated pins.
        """
        for file in files:
            path = file if file.is_absolute() else self._cwd / file
            self._walk(path)

        return RequirementsParseResult(
            requirements=list(self._parsed.values()),
            warnings=list(self._warnings),
            unsupported_requirements=list(self._unsupported),
        )

    def _open(self, path: Path) -> Optional[Iterator[str]]:
        resolved = path.resolve()
        if resolved in self._visited:
            return None
        self._visited.add(resolved)

        try:
            content = path.read_text(encoding="utf-8")
        except OSError:
            self._warnings.append(f"Requirements include not found: {path}")
            return None

        return iter(content.splitlines())

    def _walk(self, root: Path) -> None:
        lines = self._open(root)
        if lines is None:
            return

        stack: list[tuple[Path, Iterator[str]]] = [(root, lines)]
        while stack:
            file_path, file_lines = stack[-1]
            raw_line = next(file_lines, None)
            if raw_line is None:
                stack.pop()
                continue

            line = strip_comment(raw_line).strip()
            if not line:
                continue

            include = INCLUDE_RE.match(line)
            if include:
                target = Path(include.group(1).strip())
                if not target.is_absolute():
                    target = file_path.parent / target
                included = self._open(target)
                if included is not None:
                    stack.append((target, included))
                continue

            self._record_line(line, file_path)

    def _record_line(self, line: str, file_path: Path) -> None:
        pinned = match_pinned_requirement(line)
        if pinned is None:
            self._warnings.append(
                f"Unsupported requirement spec in {_relative(self._cwd, file_path)}: {line}"
            )
            self._unsupported.append(
                UnsupportedRequirement(
                    raw_line=line,
                    source_file=str(file_path),
                    package_name=guess_package_name(line),
                )
            )
            return

        raw_name, version = pinned
        requirement = ParsedRequirement(
            raw_name=raw_name,
            normalized_name=normalize_package_name(raw_name),
            version=version,
            source_file=str(file_path),
        )
        self._parsed.setdefault(requirement.key, requirement)


def parse_requirements_files(cwd: Path, files: list[Path]) -> RequirementsParseResult:
    """Parse requirements files relative to cwd.

    Args:
        cwd: Project root.
        files: Requirements files to parse.

    Returns:
        RequirementsParseResult with pins, warnings and unsupported lines.
    """
    result = RequirementsParser(cwd).parse(files)
    log.debug(
        "requirements.parsed",
        files=len(files),
        pinned=len(result.requirements),
        unsupported=len(result.unsupported_requirements),
    )
    return result
