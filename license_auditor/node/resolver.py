"""Breadth-first resolution of the installed Node dependency graph."""

from __future__ import annotations

import os
from collections import deque
from pathlib import Path
from typing import Any, Literal, NamedTuple, Optional

import structlog

from license_auditor.constants import NODE_MODULES, PACKAGE_JSON, PNP_MARKER_FILE
from license_auditor.exceptions import ManifestError, UnsupportedPackageManagerError
from license_auditor.models.result import DependenciesResult
from license_auditor.node.workspaces import WorkspaceLocator, read_package_json

log = structlog.get_logger("license_auditor.node")

DependencyKind = Literal["dependency", "devDependency", "optionalDependency"]


class CollectedDependency(NamedTuple):
    """A declared dependency name and the manifest field it came from."""

    name: str
    kind: DependencyKind


def to_real_path(path: Path | str) -> str:
    """Canonicalize a path, resolving symlinks where possible."""
    return os.path.realpath(path)


def is_path_within(target: str, parent: str) -> bool:
    """Check whether a canonical path equals or lies below another."""
    parent_prefix = parent if parent.endswith(os.sep) else parent + os.sep
    return target == parent or target.startswith(parent_prefix)


def collect_dependency_names(
    package_json: dict[str, Any], production: bool
) -> list[CollectedDependency]:
    """Collect the dependency names a manifest asks for.

    ``dependencies`` win over ``optionalDependencies``, which win over
    ``devDependencies``. Dev dependencies are skipped in production mode.

    Args:
        package_json: Parsed manifest.
        production: Exclude devDependencies.

    Returns:
        Names in declaration order, each tagged with its originating field.
    """
    fields: list[tuple[str, DependencyKind]] = [
        ("dependencies", "dependency"),
        ("optionalDependencies", "optionalDependency"),
    ]
    if not production:
        fields.append(("devDependencies", "devDependency"))

    collected: dict[str, DependencyKind] = {}
    for field, kind in fields:
        declared = package_json.get(field)
        if not isinstance(declared, dict):
            continue
        for name in declared:
            collected.setdefault(name, kind)

    return [CollectedDependency(name, kind) for name, kind in collected.items()]


def resolve_dependency_path(
    dependency_name: str, from_directory: Path, project_root: Path
) -> Optional[Path]:
    """Resolve a package the way Node does, walking up through node_modules.

    The walk stops at the project root. A hit whose canonical location lies
    outside the canonical project root is rejected, so an install tree in a
    parent directory is never used.

    Args:
        dependency_name: Package name, possibly scoped.
        from_directory: Directory of the requiring package.
        project_root: Project root directory.

    Returns:
        Package directory, or None if it cannot be resolved inside the project.
    """
    root_real = to_real_path(project_root)
    current = from_directory

    while True:
        candidate = current / NODE_MODULES / dependency_name
        if (candidate / PACKAGE_JSON).is_file():
            if is_path_within(to_real_path(candidate), root_real):
                return candidate
            log.debug(
                "node.resolution_outside_root",
                dependency=dependency_name,
                candidate=str(candidate),
            )
            return None

        if to_real_path(current) == root_real:
            return None

        parent = current.parent
        if parent == current:
            return None
        current = parent


def format_unresolved_warning(unresolved: dict[str, set[str]]) -> Optional[str]:
    """Build the warning listing dependencies missing from node_modules."""
    if not unresolved:
        return None

    entries = [
        f"{name} (required by {', '.join(sorted(dependents))})"
        for name, dependents in sorted(unresolved.items())
    ]
    return " ".join(
        [
            "Some declared dependencies could not be resolved from "
            f"node_modules ({len(unresolved)}):",
            "; ".join(entries),
            "Run your package manager install command and verify dependency names.",
        ]
    )


class NodeDependencyResolver:
    """Resolves the external (non-workspace) dependency set of a Node project."""

    def __init__(self, project_root: Path, production: bool = False) -> None:
        self._project_root = project_root
        self._production = production

    def resolve(self) -> DependenciesResult:
        """Traverse the dependency graph starting from every workspace.

        Returns:
            DependenciesResult with canonical dependency paths and an
            optional warning about unresolved dependencies.

        Raises:
            UnsupportedPackageManagerError: If Yarn Plug'n'Play is in use.
            ManifestError: If a workspace package.json is unreadable. Broken
                dependency manifests are listed but not traversed.
        """
        if (self._project_root / PNP_MARKER_FILE).exists():
            raise UnsupportedPackageManagerError(
                "Yarn Plug'n'Play is currently not supported."
            )

        locator = WorkspaceLocator(self._project_root)
        workspace_dirs = locator.locate()
        workspace_names = locator.map_names(workspace_dirs)
        workspace_real_paths = {to_real_path(d) for d in workspace_dirs}

        queue: deque[Path] = deque(workspace_dirs)
        processed: set[str] = set()
        dependency_paths: dict[str, None] = {}
        unresolved: dict[str, set[str]] = {}

        while queue:
            current = queue.popleft()
            real_current = to_real_path(current)
            if real_current in processed:
                continue
            processed.add(real_current)

            manifest_path = current / PACKAGE_JSON
            if not manifest_path.is_file():
                continue

            try:
                package_json = read_package_json(manifest_path)
            except ManifestError as e:
                if real_current in workspace_real_paths:
                    raise
                # Still listed as a dependency; the collector reports it
                log.debug("node.manifest_unreadable", path=str(manifest_path), error=str(e))
                continue
            display_name = package_json.get("name") or Path(real_current).name

            for dependency in collect_dependency_names(package_json, self._production):
                workspace_dir = workspace_names.get(dependency.name)
                if workspace_dir is not None:
                    queue.append(workspace_dir)
                    continue

                resolved = resolve_dependency_path(
                    dependency.name, current, self._project_root
                )
                if resolved is None:
                    if dependency.kind != "optionalDependency":
                        unresolved.setdefault(dependency.name, set()).add(display_name)
                    continue

                real_dependency = to_real_path(resolved)
                if real_dependency not in workspace_real_paths:
                    dependency_paths[real_dependency] = None
                if real_dependency not in processed:
                    queue.append(Path(real_dependency))

        log.debug(
            "node.dependencies_resolved",
            resolved=len(dependency_paths),
            unresolved=len(unresolved),
        )
        return DependenciesResult(
            dependencies=list(dependency_paths),
            warning=format_unresolved_warning(unresolved),
        )


def find_dependencies(project_root: Path, production: bool = False) -> DependenciesResult:
    """Resolve the external dependencies of a Node project.

    Args:
        project_root: Project root directory.
        production: Exclude devDependencies.

    Returns:
        DependenciesResult with canonical paths and optional warning.
    """
    return NodeDependencyResolver(project_root, production=production).resolve()
