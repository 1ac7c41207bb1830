"""Audit composition: ecosystem selection, collection and classification."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import structlog

from license_auditor.classifier import map_licenses_to_status
from license_auditor.ecosystem import resolve_audit_ecosystem
from license_auditor.models.config import AuditConfig, Ecosystem
from license_auditor.models.result import (
    AllLicensesResult,
    AuditResult,
    CollectedLicenses,
    OverridesSummary,
)
from license_auditor.node.collector import collect_node_licenses
from license_auditor.python.collector import collect_python_licenses

log = structlog.get_logger("license_auditor.audit")


def _merge(target: AllLicensesResult, collected: CollectedLicenses, found: set[str]) -> None:
    for key, candidate in collected.licenses.items():
        target.licenses.setdefault(key, candidate)
    for key, error in collected.error_results.items():
        target.error_results.setdefault(key, error)
    found.update(collected.found_package_names)


def get_all_licenses(
    cwd: Path,
    config: AuditConfig,
    production: bool = False,
    filter_regex: Optional[str] = None,
    ecosystem: Optional[Ecosystem] = None,
    python: Optional[str] = None,
    requirements: Optional[list[str]] = None,
) -> AllLicensesResult:
    """Collect licenses from every selected ecosystem.

    Results are merged by ``ecosystem:name@version``; the first entry for
    a key wins. Warnings of both collectors are joined with newlines.

    Args:
        cwd: Project root.
        config: Audit policy.
        production: Exclude development dependencies.
        filter_regex: Exclude packages whose ``name@version`` matches.
        ecosystem: Ecosystem from the CLI; falls back to the config.
        python: Interpreter override for Python introspection.
        requirements: Explicit requirements files.

    Returns:
        AllLicensesResult with packages, errors, unmatched overrides and
        an optional warning.
    """
    selected = resolve_audit_ecosystem(
        cwd, cli_ecosystem=ecosystem, config_ecosystem=config.ecosystem
    )
    log.info("audit.started", cwd=str(cwd), ecosystem=selected, production=production)

    result = AllLicensesResult()
    found_package_names: set[str] = set()
    warnings: list[str] = []

    if selected in ("node", "both"):
        node_result = collect_node_licenses(
            cwd, config, production=production, filter_regex=filter_regex
        )
        _merge(result, node_result, found_package_names)
        if node_result.warning:
            warnings.append(node_result.warning)

    if selected in ("python", "both"):
        python_result = collect_python_licenses(
            cwd,
            config,
            production=production,
            filter_regex=filter_regex,
            python=python,
            requirements=requirements,
        )
        _merge(result, python_result, found_package_names)
        if python_result.warning:
            warnings.append(python_result.warning)

    overrides = config.overrides or {}
    result.overrides = OverridesSummary(
        not_found_overrides=[name for name in overrides if name not in found_package_names],
        warn_overrides=[name for name, severity in overrides.items() if severity == "warn"],
        skipped_count=len(overrides),
    )
    result.warning = "\n".join(warnings) if warnings else None
    return result


def audit_licenses(
    cwd: Path,
    config: AuditConfig,
    production: bool = False,
    filter_regex: Optional[str] = None,
    ecosystem: Optional[Ecosystem] = None,
    python: Optional[str] = None,
    requirements: Optional[list[str]] = None,
) -> AuditResult:
    """Run a full audit: collect licenses, then classify them.

    Args:
        cwd: Project root.
        config: Audit policy.
        production: Exclude development dependencies.
        filter_regex: Exclude packages whose ``name@version`` matches.
        ecosystem: Ecosystem from the CLI; falls back to the config.
        python: Interpreter override for Python introspection.
        requirements: Explicit requirements files.

    Returns:
        AuditResult with every package in exactly one bucket.

    Raises:
        AmbiguousEcosystemError: If auto-detection sees both ecosystems.
        UnsupportedPackageManagerError: If Yarn Plug'n'Play is in use.
        InterpreterNotFoundError: If Python introspection has no interpreter.
        ManifestError: If a workspace package.json is unreadable.
        ConfigurationError: If ``filter_regex`` is not a valid regex.
    """
    collected = get_all_licenses(
        cwd,
        config,
        production=production,
        filter_regex=filter_regex,
        ecosystem=ecosystem,
        python=python,
        requirements=requirements,
    )
    classified = map_licenses_to_status(collected.licenses, config)

    result = AuditResult(
        grouped_by_status=classified.grouped_by_status,
        not_found=classified.not_found,
        needs_user_verification=classified.needs_user_verification,
        error_results=collected.error_results,
        overrides=collected.overrides,
        warning=collected.warning,
    )
    log.info("audit.finished", packages=result.total_packages)
    return result
