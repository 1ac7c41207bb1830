"""Node license collection over the resolved dependency directories."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import structlog

from license_auditor.constants import PACKAGE_JSON
from license_auditor.exceptions import ManifestError
from license_auditor.filtering import filter_overrides, filter_with_regex, get_package_name
from license_auditor.licenses.extractor import find_node_licenses
from license_auditor.models.config import AuditConfig
from license_auditor.models.package import PackageCandidate
from license_auditor.models.result import CollectedLicenses, ErrorEntry
from license_auditor.node.resolver import find_dependencies
from license_auditor.node.workspaces import read_package_json

log = structlog.get_logger("license_auditor.node")


def package_name_from_path(package_path: str) -> str:
    """Derive a package name from its install directory.

    ``.../node_modules/@scope/pkg`` yields ``@scope/pkg``.
    """
    parts = Path(package_path).parts
    if len(parts) >= 2 and parts[-2].startswith("@"):
        return f"{parts[-2]}/{parts[-1]}"
    return parts[-1] if parts else package_path


def _manifest_string(package_json: dict[str, Any], key: str) -> Optional[str]:
    value = package_json.get(key)
    return value if isinstance(value, str) and value else None


def collect_node_licenses(
    cwd: Path,
    config: AuditConfig,
    production: bool = False,
    filter_regex: Optional[str] = None,
) -> CollectedLicenses:
    """Collect licenses of a Node project's installed dependencies.

    Each resolved directory's package.json supplies the name and version.
    An unreadable manifest is recorded in ``error_results`` under the name
    derived from the path.

    Args:
        cwd: Project root.
        config: Audit policy; overrides remove packages by name.
        production: Exclude devDependencies.
        filter_regex: Exclude packages whose ``name@version`` matches.

    Returns:
        CollectedLicenses keyed by ``node:name@version``.

    Raises:
        UnsupportedPackageManagerError: If Yarn Plug'n'Play is in use.
        ManifestError: If a workspace manifest cannot be read.
    """
    dependencies = find_dependencies(cwd, production=production)
    result = CollectedLicenses(warning=dependencies.warning)

    candidates: list[PackageCandidate] = []
    manifests: dict[str, dict[str, Any]] = {}
    failures: dict[str, ManifestError] = {}

    for package_path in dependencies.dependencies:
        candidate = PackageCandidate(
            name=package_name_from_path(package_path),
            resolved_path=package_path,
            ecosystem="node",
            dependency_source="node_modules",
            metadata_source="local-metadata",
        )
        failure: Optional[ManifestError] = None
        try:
            package_json = read_package_json(Path(package_path) / PACKAGE_JSON)
        except ManifestError as e:
            failure = e
        else:
            candidate.name = _manifest_string(package_json, "name") or candidate.name
            candidate.version = _manifest_string(package_json, "version")

        key = candidate.identity
        if key in manifests or key in failures:
            continue
        if failure is not None:
            failures[key] = failure
        else:
            manifests[key] = package_json
        candidates.append(candidate)

    filtered = filter_with_regex(candidates, filter_regex)
    result.found_package_names.update(get_package_name(c.package_name) for c in filtered)

    for candidate in filter_overrides(filtered, config).packages:
        key = candidate.identity
        if key in failures:
            result.error_results[key] = ErrorEntry(
                package_name=candidate.package_name,
                package_path=candidate.resolved_path,
                error_message=str(failures[key]),
                ecosystem="node",
            )
            continue

        candidate.extracted = find_node_licenses(
            manifests[key], Path(candidate.resolved_path)
        )
        result.licenses[key] = candidate

    log.debug(
        "node.collected",
        packages=len(result.licenses),
        errors=len(result.error_results),
    )
    return result
