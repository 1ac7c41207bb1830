"""Tests for package and audit result models."""

from license_auditor.models.package import (
    LicenseRecord,
    PackageCandidate,
    ParsedRequirement,
    VerificationStatus,
)
from license_auditor.models.result import (
    AuditResult,
    ClassificationStatus,
    DetectedLicense,
    ErrorEntry,
    NotFoundEntry,
    VerificationEntry,
)


def _detected(name: str, status: ClassificationStatus) -> DetectedLicense:
    return DetectedLicense(
        package_name=name,
        package_path=f"/p/{name}",
        status=status,
        licenses=[LicenseRecord(license_id="MIT", source="package.json-license")],
        ecosystem="node",
    )


class TestPackageModels:
    """Tests for candidate and requirement helpers."""

    def test_candidate_identity_includes_ecosystem_and_version(self) -> None:
        """Test that identity is ecosystem:name@version."""
        candidate = PackageCandidate(
            name="@scope/pkg",
            version="1.2.3",
            resolved_path="/x",
            ecosystem="node",
            dependency_source="node_modules",
        )
        assert candidate.package_name == "@scope/pkg@1.2.3"
        assert candidate.identity == "node:@scope/pkg@1.2.3"

    def test_candidate_without_version(self) -> None:
        """Test that a missing version leaves the bare name."""
        candidate = PackageCandidate(
            name="left-pad",
            resolved_path="/x",
            ecosystem="node",
            dependency_source="node_modules",
        )
        assert candidate.package_name == "left-pad"

    def test_requirement_key(self) -> None:
        """Test that requirements dedupe on normalized name and version."""
        requirement = ParsedRequirement(
            raw_name="Foo_Bar",
            normalized_name="foo-bar",
            version="1.0",
            source_file="requirements.txt",
        )
        assert requirement.key == "foo-bar@1.0"

    def test_license_record_dedup_key_includes_source(self) -> None:
        """Test that the same id from two sources has distinct keys."""
        a = LicenseRecord(license_id="MIT", source="a")
        b = LicenseRecord(license_id="MIT", source="b")
        assert a.dedup_key != b.dedup_key

    def test_ambiguous_statuses(self) -> None:
        """Test which verification statuses count as ambiguous."""
        assert VerificationStatus.LICENSE_FILE_EXISTS_BUT_UNKNOWN_LICENSE.is_ambiguous
        assert VerificationStatus.LICENSE_FILES_EXIST_BUT_SOME_ARE_UNCERTAIN.is_ambiguous
        assert not VerificationStatus.OK.is_ambiguous
        assert not VerificationStatus.LICENSE_FILE_NOT_FOUND.is_ambiguous


class TestAuditResult:
    """Tests for AuditResult aggregation."""

    def test_empty_result_has_all_groups(self) -> None:
        """Test that every status bucket exists by default."""
        result = AuditResult()
        assert set(result.grouped_by_status) == set(ClassificationStatus)
        assert result.total_packages == 0
        assert not result.has_issues()

    def test_blacklist_is_always_an_issue(self) -> None:
        """Test that blacklisted packages fail in both modes."""
        result = AuditResult()
        result.grouped_by_status[ClassificationStatus.BLACKLIST].append(
            _detected("gpl@1.0.0", ClassificationStatus.BLACKLIST)
        )
        assert result.has_issues()
        assert result.has_issues(strict=True)

    def test_unknown_only_fails_in_strict_mode(self) -> None:
        """Test that unknown licenses fail only with strict."""
        result = AuditResult()
        result.grouped_by_status[ClassificationStatus.UNKNOWN].append(
            _detected("odd@1.0.0", ClassificationStatus.UNKNOWN)
        )
        assert not result.has_issues()
        assert result.has_issues(strict=True)

    def test_not_found_and_errors_fail_in_strict_mode(self) -> None:
        """Test that not-found and error entries fail only with strict."""
        result = AuditResult(
            not_found={
                "node:a@1": NotFoundEntry(package_name="a@1", package_path="/a", error_message="x")
            },
            error_results={
                "node:b@1": ErrorEntry(package_name="b@1", package_path="/b", error_message="y")
            },
        )
        assert not result.has_issues()
        assert result.has_issues(strict=True)

    def test_warning_fails_in_strict_mode(self) -> None:
        """Test that dependency resolution warnings fail only with strict."""
        result = AuditResult(warning="Some declared dependencies could not be resolved")
        assert not result.has_issues()
        assert result.has_issues(strict=True)

    def test_bail_threshold(self) -> None:
        """Test that bail tolerates up to n blacklisted packages."""
        result = AuditResult()
        for name in ("gpl-a@1.0.0", "gpl-b@1.0.0"):
            result.grouped_by_status[ClassificationStatus.BLACKLIST].append(
                _detected(name, ClassificationStatus.BLACKLIST)
            )
        assert result.has_issues(bail=0)
        assert result.has_issues(bail=1)
        assert not result.has_issues(bail=2)
        assert not result.has_issues(bail=5)

    def test_total_counts_partial_whitelist_once(self) -> None:
        """Test that a package both grouped and flagged is counted once."""
        result = AuditResult(
            needs_user_verification={
                "node:dual@1.0.0": VerificationEntry(
                    package_name="dual@1.0.0",
                    package_path="/p/dual@1.0.0",
                    verification_message="check",
                    ecosystem="node",
                )
            }
        )
        result.grouped_by_status[ClassificationStatus.BLACKLIST].append(
            _detected("dual@1.0.0", ClassificationStatus.BLACKLIST)
        )
        assert result.total_packages == 1
