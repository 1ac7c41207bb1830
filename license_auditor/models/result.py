"""Audit result Pydantic models."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from license_auditor.models.package import (
    DependencyEcosystem,
    DependencySource,
    LicenseRecord,
    MetadataSource,
    PackageCandidate,
    VerificationStatus,
)


class ClassificationStatus(str, Enum):
    """Compliance bucket for a package with resolved licenses."""

    WHITELIST = "whitelist"
    BLACKLIST = "blacklist"
    UNKNOWN = "unknown"


class DependenciesResult(BaseModel):
    """Output of the Node dependency resolver."""

    model_config = {"extra": "forbid"}

    dependencies: list[str] = Field(
        default_factory=list, description="Canonical package directories"
    )
    warning: Optional[str] = None


class DetectedLicense(BaseModel):
    """A package that was classified into a whitelist/blacklist/unknown bucket."""

    model_config = {"extra": "forbid"}

    package_name: str
    package_path: str
    status: ClassificationStatus
    licenses: list[LicenseRecord] = Field(default_factory=list)
    license_expression: Optional[str] = None
    license_paths: list[str] = Field(default_factory=list)
    verification_status: Optional[VerificationStatus] = None
    ecosystem: Optional[DependencyEcosystem] = None
    dependency_source: Optional[DependencySource] = None
    metadata_source: Optional[MetadataSource] = None

    @property
    def result_key(self) -> str:
        """Key matching the not-found and verification maps."""
        if self.ecosystem:
            return f"{self.ecosystem}:{self.package_name}"
        return self.package_name


class NotFoundEntry(BaseModel):
    """A package for which no license could be resolved."""

    model_config = {"extra": "forbid"}

    package_name: str
    package_path: str
    error_message: str
    ecosystem: Optional[DependencyEcosystem] = None


class VerificationEntry(BaseModel):
    """A package that needs a human to confirm its license."""

    model_config = {"extra": "forbid"}

    package_name: str
    package_path: str
    verification_message: str
    ecosystem: Optional[DependencyEcosystem] = None


class ErrorEntry(BaseModel):
    """A package whose extraction raised an error."""

    model_config = {"extra": "forbid"}

    package_name: str
    package_path: str
    error_message: str
    ecosystem: Optional[DependencyEcosystem] = None


def _empty_groups() -> dict[ClassificationStatus, list[DetectedLicense]]:
    return {status: [] for status in ClassificationStatus}


class ClassificationResult(BaseModel):
    """Output of map_licenses_to_status."""

    model_config = {"extra": "forbid"}

    grouped_by_status: dict[ClassificationStatus, list[DetectedLicense]] = Field(
        default_factory=_empty_groups
    )
    not_found: dict[str, NotFoundEntry] = Field(default_factory=dict)
    needs_user_verification: dict[str, VerificationEntry] = Field(
        default_factory=dict
    )


class CollectedLicenses(BaseModel):
    """Per-ecosystem output of a license collector."""

    model_config = {"extra": "forbid"}

    licenses: dict[str, PackageCandidate] = Field(
        default_factory=dict, description="Extracted packages keyed by identity"
    )
    error_results: dict[str, ErrorEntry] = Field(default_factory=dict)
    warning: Optional[str] = None
    found_package_names: set[str] = Field(
        default_factory=set,
        description="Names (without version) seen before override filtering",
    )


class OverridesSummary(BaseModel):
    """Configured overrides as seen by one audit run."""

    model_config = {"extra": "forbid"}

    not_found_overrides: list[str] = Field(
        default_factory=list, description="Overrides that matched no discovered package"
    )
    warn_overrides: list[str] = Field(
        default_factory=list, description="Overrides with severity \"warn\""
    )
    skipped_count: int = Field(default=0, description="Number of configured overrides")


class AllLicensesResult(BaseModel):
    """Output of get_all_licenses, before classification."""

    model_config = {"extra": "forbid"}

    licenses: dict[str, PackageCandidate] = Field(default_factory=dict)
    error_results: dict[str, ErrorEntry] = Field(default_factory=dict)
    overrides: OverridesSummary = Field(default_factory=OverridesSummary)
    warning: Optional[str] = None


class AuditResult(ClassificationResult):
    """Aggregate result of a whole audit run."""

    error_results: dict[str, ErrorEntry] = Field(default_factory=dict)
    overrides: OverridesSummary = Field(default_factory=OverridesSummary)
    warning: Optional[str] = None

    @property
    def total_packages(self) -> int:
        """Number of distinct packages across all buckets."""
        keys = {
            detected.result_key
            for detected_list in self.grouped_by_status.values()
            for detected in detected_list
        }
        # A partially whitelisted package is in both grouped and verification
        keys.update(self.not_found)
        keys.update(self.needs_user_verification)
        keys.update(self.error_results)
        return len(keys)

    def has_issues(self, strict: bool = False, bail: Optional[int] = None) -> bool:
        """Check whether the audit should fail.

        Args:
            strict: Also fail on dependency resolution warnings and on
                unknown, not-found, unverified and errored packages.
            bail: Number of blacklisted packages tolerated; None tolerates none.

        Returns:
            True if more blacklisted packages than ``bail`` exist, or strict
            mode finds a warning or a gap.
        """
        if len(self.grouped_by_status[ClassificationStatus.BLACKLIST]) > (bail or 0):
            return True
        if not strict:
            return False
        return bool(
            self.warning
            or self.grouped_by_status[ClassificationStatus.UNKNOWN]
            or self.not_found
            or self.needs_user_verification
            or self.error_results
        )
