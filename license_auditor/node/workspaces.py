"""Workspace discovery from package.json and pnpm-workspace.yaml."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import structlog

from license_auditor.constants import (
    PACKAGE_JSON,
    PNPM_WORKSPACE_FILE,
    WORKSPACE_WALK_SKIP_DIRS,
)
from license_auditor.exceptions import ManifestError
from license_auditor.node.patterns import match_workspace_pattern, normalize_pattern

log = structlog.get_logger("license_auditor.node")


def read_package_json(path: Path) -> dict[str, Any]:
    """Read and parse a package.json file.

    Args:
        path: Path to the package.json file.

    Returns:
        Parsed manifest. Non-object JSON yields an empty dict.

    Raises:
        ManifestError: If the file cannot be read or is not valid JSON.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ManifestError(f"Cannot read '{path}': {e}") from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON in '{path}': {e}") from e

    if not isinstance(data, dict):
        return {}
    return data


def extract_workspace_patterns(package_json: dict[str, Any]) -> list[str]:
    """Extract workspace globs from a root manifest.

    ``workspaces`` may be a list of patterns or an object with a
    ``packages`` list (Yarn classic style).
    """
    workspaces = package_json.get("workspaces")
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages")
    if not isinstance(workspaces, list):
        return []
    return [w for w in workspaces if isinstance(w, str) and w.strip()]


def read_pnpm_workspace_patterns(project_root: Path) -> list[str]:
    """Read the ``packages:`` block of pnpm-workspace.yaml.

    Only the flat list form is recognized. The block ends at the first
    line that is not a ``-`` list item.

    Args:
        project_root: Project root directory.

    Returns:
        Patterns with surrounding quotes removed. Empty if the file is missing.
    """
    workspace_file = project_root / PNPM_WORKSPACE_FILE
    try:
        content = workspace_file.read_text(encoding="utf-8")
    except OSError:
        return []

    patterns: list[str] = []
    in_packages = False

    for line in content.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue

        if trimmed == "packages:":
            in_packages = True
            continue

        if not in_packages:
            continue

        if not trimmed.startswith("-"):
            in_packages = False
            continue

        raw = trimmed[1:].strip()
        if raw[:1] in ("'", '"'):
            raw = raw[1:]
        if raw[-1:] in ("'", '"'):
            raw = raw[:-1]
        raw = raw.strip()
        if raw:
            patterns.append(raw)

    return patterns


def collect_package_directories(project_root: Path) -> list[Path]:
    """Find every directory below the root that contains a package.json.

    Dependency caches and VCS directories are skipped.
    """
    directories: list[Path] = []

    for current, dirnames, _ in os.walk(project_root):
        dirnames[:] = sorted(d for d in dirnames if d not in WORKSPACE_WALK_SKIP_DIRS)
        current_path = Path(current)
        for name in dirnames:
            candidate = current_path / name
            if (candidate / PACKAGE_JSON).is_file():
                directories.append(candidate)

    return directories


class WorkspaceLocator:
    """Discovers workspace member directories of a Node project."""

    def __init__(self, project_root: Path) -> None:
        self._project_root = project_root

    def patterns(self) -> list[str]:
        """All declared workspace patterns, normalized."""
        patterns: list[str] = []
        root_manifest = self._project_root / PACKAGE_JSON
        if root_manifest.is_file():
            patterns.extend(extract_workspace_patterns(read_package_json(root_manifest)))
        patterns.extend(read_pnpm_workspace_patterns(self._project_root))
        return [normalize_pattern(p) for p in patterns]

    def locate(self) -> list[Path]:
        """Return workspace directories, root first, without duplicates.

        Returns:
            Ordered list of workspace directories. Only the root when no
            patterns are declared.
        """
        workspace_dirs: list[Path] = [self._project_root]
        patterns = self.patterns()
        if not patterns:
            return workspace_dirs

        for package_dir in collect_package_directories(self._project_root):
            relative = package_dir.relative_to(self._project_root).as_posix()
            if any(match_workspace_pattern(relative, p) for p in patterns):
                if package_dir not in workspace_dirs:
                    workspace_dirs.append(package_dir)

        log.debug("node.workspaces_located", count=len(workspace_dirs))
        return workspace_dirs

    def map_names(self, workspace_dirs: list[Path]) -> dict[str, Path]:
        """Map workspace package names to their directories.

        Args:
            workspace_dirs: Directories returned by locate().

        Returns:
            Dict of package name to directory for manifests that declare a name.
        """
        names: dict[str, Path] = {}
        for directory in workspace_dirs:
            manifest = directory / PACKAGE_JSON
            if not manifest.is_file():
                continue
            name = read_package_json(manifest).get("name")
            if isinstance(name, str) and name:
                names[name] = directory
        return names
