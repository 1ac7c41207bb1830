"""Python license collection: pinned sources, PyPI enrichment and live introspection."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import NamedTuple, Optional

import structlog

from license_auditor.constants import (
    LICENSE_SOURCE_PYPI_METADATA,
    PRODUCTION_BEST_EFFORT_WARNING,
    UV_LOCK_FILE,
)
from license_auditor.exceptions import IntrospectionError
from license_auditor.filtering import filter_overrides, filter_with_regex, get_package_name
from license_auditor.licenses.extractor import PythonMetadata, resolve_python_licenses
from license_auditor.licenses.files import dedupe_licenses
from license_auditor.models.config import AuditConfig
from license_auditor.models.package import (
    DependencySource,
    ExtractedLicenses,
    PackageCandidate,
    ParsedRequirement,
    UnsupportedRequirement,
    VerificationStatus,
)
from license_auditor.models.result import CollectedLicenses, ErrorEntry
from license_auditor.python.environment import (
    EnvironmentDistribution,
    collect_environment_distributions,
)
from license_auditor.python.pypi import EnrichedDependency, enrich_with_pypi
from license_auditor.python.requirements import (
    discover_requirements_files,
    normalize_package_name,
    parse_requirements_files,
)
from license_auditor.python.uv_export import export_uv_lock

log = structlog.get_logger("license_auditor.python")


class PinnedDependency(NamedTuple):
    """A pinned requirement and the source that produced it."""

    requirement: ParsedRequirement
    dependency_source: DependencySource


def result_key(package_name: str) -> str:
    """Result map key for a Python package."""
    return f"python:{package_name}"


def _resolve_requirement_paths(cwd: Path, requirements: Optional[list[str]]) -> list[Path]:
    if requirements:
        return [Path(f) if Path(f).is_absolute() else (cwd / f).resolve() for f in requirements]
    return discover_requirements_files(cwd)


def _unsupported_candidate(unsupported: UnsupportedRequirement) -> PackageCandidate:
    base_name = unsupported.package_name or (
        "unresolved-requirement-" + normalize_package_name(unsupported.raw_line[:24])
    )
    candidate = PackageCandidate(
        name=base_name,
        version="unknown",
        resolved_path=unsupported.source_file,
        ecosystem="python",
        dependency_source="requirements",
        metadata_source="pypi-json-api",
    )
    candidate.extracted = ExtractedLicenses(
        licenses=[],
        license_paths=[unsupported.source_file],
        verification_status=VerificationStatus.LICENSE_FILE_NOT_FOUND,
        manual_verification_message=(
            f"Requirement entry needs manual verification for {candidate.package_name}. "
            f"Unsupported requirement specification: {unsupported.raw_line}"
        ),
    )
    return candidate


class PythonLicenseCollector:
    """Collects Python dependency licenses for one audit run."""

    def __init__(
        self,
        cwd: Path,
        config: AuditConfig,
        production: bool = False,
        filter_regex: Optional[str] = None,
        python: Optional[str] = None,
        requirements: Optional[list[str]] = None,
    ) -> None:
        self._cwd = cwd
        self._config = config
        self._production = production
        self._filter_regex = filter_regex
        self._python = python
        self._requirements = requirements

        self._warnings: list[str] = []
        self._result = CollectedLicenses()

    def collect(self) -> CollectedLicenses:
        """Run the collection.

        Pinned sources (uv.lock export and requirements files) are used
        when they yield anything; otherwise the installed environment is
        introspected.

        Returns:
            CollectedLicenses keyed by ``python:name@version``.

        Raises:
            InterpreterNotFoundError: If introspection is needed and no
                interpreter is available. A failing or timed-out
                introspection script only adds a warning.
        """
        has_uv_lock = (self._cwd / UV_LOCK_FILE).exists()
        requirement_files = _resolve_requirement_paths(self._cwd, self._requirements)
        pinned: dict[str, PinnedDependency] = {}

        if has_uv_lock:
            uv_result = export_uv_lock(self._cwd, production=self._production)
            self._warnings.extend(uv_result.warnings)
            for requirement in uv_result.dependencies:
                pinned.setdefault(requirement.key, PinnedDependency(requirement, "uv-lock"))

        if requirement_files:
            parsed = parse_requirements_files(self._cwd, requirement_files)
            self._warnings.extend(parsed.warnings)
            for requirement in parsed.requirements:
                pinned.setdefault(requirement.key, PinnedDependency(requirement, "requirements"))
            for unsupported in parsed.unsupported_requirements:
                self._add_unsupported(unsupported)

        if self._production and (not has_uv_lock or requirement_files):
            self._warnings.append(PRODUCTION_BEST_EFFORT_WARNING)

        if pinned:
            self._collect_pinned(list(pinned.values()))
        else:
            self._collect_environment()

        if self._warnings:
            self._result.warning = "\n".join(self._warnings)

        log.debug(
            "python.collected",
            packages=len(self._result.licenses),
            errors=len(self._result.error_results),
            source="pinned" if pinned else "environment",
        )
        return self._result

    def _apply_filters(self, candidates: list[PackageCandidate]) -> list[PackageCandidate]:
        filtered = filter_with_regex(candidates, self._filter_regex)
        self._result.found_package_names.update(
            get_package_name(candidate.package_name) for candidate in filtered
        )
        return filter_overrides(filtered, self._config).packages

    def _add_unsupported(self, unsupported: UnsupportedRequirement) -> None:
        for candidate in self._apply_filters([_unsupported_candidate(unsupported)]):
            self._result.licenses[result_key(candidate.package_name)] = candidate

    def _record_error(self, candidate: PackageCandidate, error: Exception) -> None:
        log.debug("python.extraction_failed", package=candidate.package_name, error=str(error))
        self._result.error_results[result_key(candidate.package_name)] = ErrorEntry(
            package_name=candidate.package_name,
            package_path=candidate.resolved_path,
            error_message=str(error) or "Unknown Python resolution error",
            ecosystem="python",
        )

    def _collect_environment(self) -> None:
        try:
            distributions = collect_environment_distributions(self._cwd, self._python)
        except IntrospectionError as e:
            log.debug("python.introspection_failed", error=str(e))
            self._warnings.append(str(e))
            return

        by_identity: dict[str, EnvironmentDistribution] = {}
        candidates: list[PackageCandidate] = []

        for dist in distributions:
            candidate = PackageCandidate(
                name=dist.name,
                version=dist.version,
                resolved_path=dist.package_path,
                ecosystem="python",
                dependency_source="python-environment",
                metadata_source="local-metadata",
            )
            by_identity[candidate.identity] = dist
            candidates.append(candidate)

        for candidate in self._apply_filters(candidates):
            dist = by_identity[candidate.identity]
            try:
                resolution = resolve_python_licenses(
                    dist.package_path,
                    PythonMetadata(
                        license_expression=dist.license_expression,
                        license=dist.license,
                        classifiers=dist.classifiers,
                    ),
                    explicit_license_paths=dist.license_paths,
                )
            except Exception as e:
                self._record_error(candidate, e)
                continue

            candidate.extracted = resolution.extracted
            candidate.metadata_source = resolution.metadata_source
            self._result.licenses[result_key(candidate.package_name)] = candidate

    def _enrich(self, pinned: list[PinnedDependency]) -> list[EnrichedDependency]:
        return asyncio.run(enrich_with_pypi([p.requirement for p in pinned]))

    def _collect_pinned(self, pinned: list[PinnedDependency]) -> None:
        enriched = self._enrich(pinned)
        candidates: list[tuple[PackageCandidate, EnrichedDependency]] = []

        for dependency, entry in zip(pinned, enriched):
            requirement = entry.requirement
            metadata = entry.metadata
            if metadata is None:
                self._warnings.append(
                    f"Unable to resolve PyPI metadata for "
                    f"{requirement.raw_name}=={requirement.version}. "
                    f"Source: {requirement.source_file}."
                )
            candidate = PackageCandidate(
                name=metadata.name if metadata else requirement.raw_name,
                version=metadata.version if metadata else requirement.version,
                resolved_path=requirement.source_file,
                ecosystem="python",
                dependency_source=dependency.dependency_source,
                metadata_source="pypi-json-api",
            )
            candidates.append((candidate, entry))

        allowed = {c.identity for c in self._apply_filters([c for c, _ in candidates])}

        for candidate, entry in candidates:
            if candidate.identity not in allowed:
                continue

            metadata = entry.metadata
            if metadata is None:
                candidate.extracted = ExtractedLicenses(
                    licenses=[],
                    license_paths=[candidate.resolved_path],
                    verification_status=VerificationStatus.LICENSE_FILE_NOT_FOUND,
                    manual_verification_message=(
                        f"Manual verification required for {candidate.package_name}. "
                        "PyPI metadata could not be resolved from lockfile/requirements sources."
                    ),
                )
                self._result.licenses[result_key(candidate.package_name)] = candidate
                continue

            try:
                resolution = resolve_python_licenses(
                    candidate.resolved_path,
                    PythonMetadata(
                        license_expression=metadata.license_expression,
                        license=metadata.license,
                        classifiers=metadata.classifiers,
                    ),
                    explicit_license_paths=[],
                )
            except Exception as e:
                self._record_error(candidate, e)
                continue

            extracted = resolution.extracted
            records = [
                record.model_copy(update={"source": LICENSE_SOURCE_PYPI_METADATA})
                for record in extracted.licenses
            ]
            candidate.extracted = extracted.model_copy(
                update={
                    "licenses": dedupe_licenses(records),
                    "license_expression": metadata.license_expression
                    or extracted.license_expression,
                }
            )
            self._result.licenses[result_key(candidate.package_name)] = candidate


def collect_python_licenses(
    cwd: Path,
    config: AuditConfig,
    production: bool = False,
    filter_regex: Optional[str] = None,
    python: Optional[str] = None,
    requirements: Optional[list[str]] = None,
) -> CollectedLicenses:
    """Collect licenses of the project's Python dependencies.

    Args:
        cwd: Project root.
        config: Audit policy; overrides remove packages by name.
        production: Exclude dev dependencies (exact only for uv.lock).
        filter_regex: Exclude packages whose ``name@version`` matches.
        python: Interpreter override for environment introspection.
        requirements: Requirements files; discovered when not given.

    Returns:
        CollectedLicenses with extracted packages, errors and warnings.
    """
    return PythonLicenseCollector(
        cwd,
        config,
        production=production,
        filter_regex=filter_regex,
        python=python,
        requirements=requirements,
    ).collect()
