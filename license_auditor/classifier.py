"""Classification of extracted licenses against the whitelist/blacklist policy."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Optional

import structlog

from license_auditor.licenses.spdx import find_license_by_id
from license_auditor.models.config import AuditConfig
from license_auditor.models.package import (
    DependencyEcosystem,
    LicenseRecord,
    PackageCandidate,
    VerificationStatus,
)
from license_auditor.models.result import (
    ClassificationResult,
    ClassificationStatus,
    DetectedLicense,
    NotFoundEntry,
    VerificationEntry,
)

log = structlog.get_logger("license_auditor.classifier")


def build_result_key(package_name: str, ecosystem: Optional[DependencyEcosystem]) -> str:
    """Key shared by the grouped, not-found and verification maps."""
    if not ecosystem:
        return package_name
    return f"{ecosystem}:{package_name}"


def verification_message(
    status: Optional[VerificationStatus], package_name: str, package_path: str
) -> str:
    """Message shown for a package whose license files are ambiguous."""
    if status == VerificationStatus.LICENSE_FILE_EXISTS_BUT_UNKNOWN_LICENSE:
        return (
            f"A license file was found for {package_name} in {package_path}, "
            "but its license could not be identified. Please verify it manually."
        )
    return (
        f"License files were found for {package_name} in {package_path}, "
        "but some of them could not be identified with certainty. "
        "Please verify them manually."
    )


def partial_whitelist_message(package_name: str, package_path: str) -> str:
    """Message for a package where only some licenses are whitelisted."""
    return (
        f"Some but not all licenses of {package_name} in {package_path} are "
        "whitelisted. Please verify which license applies."
    )


def not_found_message(package_path: str) -> str:
    """Message for a package without any license."""
    return f"License not found in package metadata and in license file in {package_path}"


def _policy_ids(license_ids: Iterable[str]) -> set[str]:
    """Policy identifiers plus their canonical SPDX form."""
    ids: set[str] = set()
    for license_id in license_ids:
        ids.add(license_id)
        canonical = find_license_by_id(license_id)
        if canonical:
            ids.add(canonical.license_id)
    return ids


class LicenseClassifier:
    """Sorts packages into whitelist, blacklist, unknown, not-found and
    needs-verification buckets."""

    def __init__(self, config: AuditConfig) -> None:
        self._whitelist = _policy_ids(config.whitelist)
        self._blacklist = _policy_ids(config.blacklist)

    def check_license_status(self, license: LicenseRecord) -> ClassificationStatus:
        """Classify one license id; the blacklist wins over the whitelist."""
        if license.license_id in self._blacklist:
            return ClassificationStatus.BLACKLIST
        if license.license_id in self._whitelist:
            return ClassificationStatus.WHITELIST
        return ClassificationStatus.UNKNOWN

    def resolve_status(self, licenses: list[LicenseRecord]) -> ClassificationStatus:
        """Combine per-license statuses into the package status.

        Any blacklisted license makes the package blacklisted. The package
        is whitelisted only if every license is whitelisted.
        """
        statuses = [self.check_license_status(lic) for lic in licenses]
        if ClassificationStatus.BLACKLIST in statuses:
            return ClassificationStatus.BLACKLIST
        if statuses and all(s == ClassificationStatus.WHITELIST for s in statuses):
            return ClassificationStatus.WHITELIST
        return ClassificationStatus.UNKNOWN

    def some_but_not_all_whitelisted(self, licenses: list[LicenseRecord]) -> bool:
        """True if at least one but not every license is whitelisted."""
        whitelisted = sum(
            1
            for lic in licenses
            if self.check_license_status(lic) == ClassificationStatus.WHITELIST
        )
        return 0 < whitelisted < len(licenses)

    def classify(self, packages: Iterable[PackageCandidate]) -> ClassificationResult:
        """Classify every package.

        Args:
            packages: Packages with extracted licenses.

        Returns:
            ClassificationResult. Every package lands in exactly one of
            grouped_by_status, not_found and needs_user_verification, except
            that a partially whitelisted package is also flagged for
            verification.
        """
        result = ClassificationResult()

        for package in packages:
            extracted = package.extracted
            licenses = extracted.licenses if extracted else []
            status = extracted.verification_status if extracted else None
            manual_message = extracted.manual_verification_message if extracted else None
            package_name = package.package_name
            package_path = package.resolved_path
            key = build_result_key(package_name, package.ecosystem)

            if manual_message or (status is not None and status.is_ambiguous):
                result.needs_user_verification[key] = VerificationEntry(
                    package_name=package_name,
                    package_path=package_path,
                    verification_message=manual_message
                    or verification_message(status, package_name, package_path),
                    ecosystem=package.ecosystem,
                )
                continue

            if not licenses:
                result.not_found[key] = NotFoundEntry(
                    package_name=package_name,
                    package_path=package_path,
                    error_message=not_found_message(package_path),
                    ecosystem=package.ecosystem,
                )
                continue

            if self.some_but_not_all_whitelisted(licenses):
                # Still classified below so blacklisted licenses are reported
                result.needs_user_verification[key] = VerificationEntry(
                    package_name=package_name,
                    package_path=package_path,
                    verification_message=partial_whitelist_message(package_name, package_path),
                    ecosystem=package.ecosystem,
                )

            package_status = self.resolve_status(licenses)
            result.grouped_by_status[package_status].append(
                DetectedLicense(
                    package_name=package_name,
                    package_path=package_path,
                    status=package_status,
                    licenses=licenses,
                    license_expression=extracted.license_expression if extracted else None,
                    license_paths=extracted.license_paths if extracted else [],
                    verification_status=status,
                    ecosystem=package.ecosystem,
                    dependency_source=package.dependency_source,
                    metadata_source=package.metadata_source,
                )
            )

        log.debug(
            "classifier.done",
            whitelist=len(result.grouped_by_status[ClassificationStatus.WHITELIST]),
            blacklist=len(result.grouped_by_status[ClassificationStatus.BLACKLIST]),
            unknown=len(result.grouped_by_status[ClassificationStatus.UNKNOWN]),
            not_found=len(result.not_found),
            needs_verification=len(result.needs_user_verification),
        )
        return result


def check_license_status(license: LicenseRecord, config: AuditConfig) -> ClassificationStatus:
    """Classify a single license against the policy."""
    return LicenseClassifier(config).check_license_status(license)


def map_licenses_to_status(
    licenses: dict[str, PackageCandidate] | Iterable[PackageCandidate],
    config: AuditConfig,
) -> ClassificationResult:
    """Classify extracted packages against the whitelist/blacklist policy.

    Args:
        licenses: Packages keyed by identity, or an iterable of packages.
        config: Audit policy.

    Returns:
        ClassificationResult with grouped, not-found and verification maps.
    """
    packages = licenses.values() if isinstance(licenses, dict) else licenses
    return LicenseClassifier(config).classify(packages)
