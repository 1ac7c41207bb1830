"""Pydantic data models for license-auditor."""

from license_auditor.models.config import AuditConfig
from license_auditor.models.package import (
    ExtractedLicenses,
    LicenseRecord,
    PackageCandidate,
    ParsedRequirement,
    UnsupportedRequirement,
    VerificationStatus,
)
from license_auditor.models.result import (
    AllLicensesResult,
    AuditResult,
    ClassificationResult,
    ClassificationStatus,
    CollectedLicenses,
    DependenciesResult,
    DetectedLicense,
    ErrorEntry,
    NotFoundEntry,
    OverridesSummary,
    VerificationEntry,
)

__all__ = [
    "AllLicensesResult",
    "AuditConfig",
    "AuditResult",
    "ClassificationResult",
    "ClassificationStatus",
    "CollectedLicenses",
    "DependenciesResult",
    "DetectedLicense",
    "ErrorEntry",
    "ExtractedLicenses",
    "LicenseRecord",
    "NotFoundEntry",
    "OverridesSummary",
    "PackageCandidate",
    "ParsedRequirement",
    "UnsupportedRequirement",
    "VerificationEntry",
    "VerificationStatus",
]
