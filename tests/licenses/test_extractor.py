"""Tests for per-ecosystem license extraction."""

from pathlib import Path

from license_auditor.constants import (
    LICENSE_SOURCE_FILE_CONTENT,
    LICENSE_SOURCE_PACKAGE_JSON_EXPRESSION,
    LICENSE_SOURCE_PACKAGE_JSON_LEGACY,
    LICENSE_SOURCE_PACKAGE_JSON_LICENSE,
    LICENSE_SOURCE_PACKAGE_JSON_LICENSES,
    LICENSE_SOURCE_PYTHON_CLASSIFIER_MAPPED,
    LICENSE_SOURCE_PYTHON_EXPRESSION,
    LICENSE_SOURCE_PYTHON_LICENSE_FIELD,
)
from license_auditor.licenses.extractor import (
    PythonMetadata,
    collect_licenses_from_metadata,
    find_node_licenses,
    resolve_licenses_from_classifier,
    resolve_python_licenses,
)
from license_auditor.models.package import VerificationStatus

MIT_CLASSIFIER = "License :: OSI Approved :: MIT License"


class TestFindNodeLicenses:
    """Tests for find_node_licenses."""

    def test_license_id(self, tmp_path: Path) -> None:
        """Test a plain SPDX id in the license field."""
        result = find_node_licenses({"license": "MIT"}, tmp_path)
        assert [(r.license_id, r.source) for r in result.licenses] == [
            ("MIT", LICENSE_SOURCE_PACKAGE_JSON_LICENSE)
        ]
        assert result.license_paths == [str(tmp_path / "package.json")]
        assert result.verification_status == VerificationStatus.OK
        assert result.license_expression is None

    def test_license_expression(self, tmp_path: Path) -> None:
        """Test an SPDX expression in the license field."""
        result = find_node_licenses({"license": "(MIT OR Apache-2.0)"}, tmp_path)
        assert [(r.license_id, r.source) for r in result.licenses] == [
            ("MIT", LICENSE_SOURCE_PACKAGE_JSON_EXPRESSION),
            ("Apache-2.0", LICENSE_SOURCE_PACKAGE_JSON_EXPRESSION),
        ]
        assert result.license_expression == "(MIT OR Apache-2.0)"

    def test_legacy_object(self, tmp_path: Path) -> None:
        """Test the legacy {type} license object."""
        result = find_node_licenses({"license": {"type": "ISC", "url": "x"}}, tmp_path)
        assert [(r.license_id, r.source) for r in result.licenses] == [
            ("ISC", LICENSE_SOURCE_PACKAGE_JSON_LEGACY)
        ]

    def test_legacy_licenses_array(self, tmp_path: Path) -> None:
        """Test the legacy licenses array with objects and strings."""
        result = find_node_licenses(
            {"licenses": [{"type": "MIT"}, "Apache-2.0", {"type": "MIT"}]}, tmp_path
        )
        assert [(r.license_id, r.source) for r in result.licenses] == [
            ("MIT", LICENSE_SOURCE_PACKAGE_JSON_LICENSES),
            ("Apache-2.0", LICENSE_SOURCE_PACKAGE_JSON_LICENSES),
        ]

    def test_deprecated_alias(self, tmp_path: Path) -> None:
        """Test that a legacy id is normalized and marked deprecated."""
        result = find_node_licenses({"license": "GPL-3.0"}, tmp_path)
        assert result.licenses[0].license_id == "GPL-3.0-only"
        assert result.licenses[0].deprecated

    def test_falls_back_to_license_file(self, tmp_path: Path) -> None:
        """Test that license files are scanned when the manifest has nothing."""
        (tmp_path / "LICENSE").write_text("ISC\n\nPermission to use ...")
        result = find_node_licenses({"license": "SEE LICENSE IN LICENSE"}, tmp_path)
        assert [(r.license_id, r.source) for r in result.licenses] == [
            ("ISC", LICENSE_SOURCE_FILE_CONTENT)
        ]
        assert result.license_paths == [str(tmp_path / "LICENSE")]

    def test_nothing_found(self, tmp_path: Path) -> None:
        """Test a package with no license anywhere."""
        result = find_node_licenses({}, tmp_path)
        assert result.licenses == []
        assert result.verification_status == VerificationStatus.LICENSE_FILE_NOT_FOUND


class TestPythonMetadata:
    """Tests for Python metadata precedence."""

    def test_classifier_mapping(self) -> None:
        """Test a curated classifier mapping."""
        records = resolve_licenses_from_classifier(MIT_CLASSIFIER)
        assert [(r.license_id, r.source) for r in records] == [
            ("MIT", LICENSE_SOURCE_PYTHON_CLASSIFIER_MAPPED)
        ]

    def test_unmapped_classifier(self) -> None:
        """Test that an unknown classifier yields nothing."""
        assert resolve_licenses_from_classifier("License :: Other/Proprietary License") == []

    def test_expression_wins_over_license_field(self) -> None:
        """Test that License-Expression suppresses the License field."""
        records, expression = collect_licenses_from_metadata(
            PythonMetadata(license_expression="Apache-2.0 OR MIT", license="BSD-3-Clause")
        )
        assert [(r.license_id, r.source) for r in records] == [
            ("Apache-2.0", LICENSE_SOURCE_PYTHON_EXPRESSION),
            ("MIT", LICENSE_SOURCE_PYTHON_EXPRESSION),
        ]
        assert expression == "Apache-2.0 OR MIT"

    def test_license_field_and_classifiers_are_unioned(self) -> None:
        """Test that classifiers are always added."""
        records, expression = collect_licenses_from_metadata(
            PythonMetadata(license="MIT", classifiers=[MIT_CLASSIFIER, "Programming Language :: Python"])
        )
        assert [(r.license_id, r.source) for r in records] == [
            ("MIT", LICENSE_SOURCE_PYTHON_LICENSE_FIELD),
            ("MIT", LICENSE_SOURCE_PYTHON_CLASSIFIER_MAPPED),
        ]
        assert expression is None

    def test_free_text_license_field_is_ignored(self) -> None:
        """Test that a full license text in License yields nothing."""
        records, _ = collect_licenses_from_metadata(
            PythonMetadata(license="Copyright (c) someone. All rights reserved.")
        )
        assert records == []


class TestResolvePythonLicenses:
    """Tests for resolve_python_licenses."""

    def test_metadata_hit(self, tmp_path: Path) -> None:
        """Test that metadata results are local-metadata and ok."""
        resolution = resolve_python_licenses(
            str(tmp_path), PythonMetadata(license_expression="MIT"), explicit_license_paths=[]
        )
        assert resolution.metadata_source == "local-metadata"
        assert resolution.extracted.verification_status == VerificationStatus.OK
        assert [r.license_id for r in resolution.extracted.licenses] == ["MIT"]

    def test_file_fallback_with_explicit_paths(self, tmp_path: Path) -> None:
        """Test that reported license files are scanned when metadata is empty."""
        license_file = tmp_path / "LICENSE"
        license_file.write_text("MIT License\n\nPermission is hereby granted")
        resolution = resolve_python_licenses(
            str(tmp_path), PythonMetadata(), explicit_license_paths=[str(license_file)]
        )
        assert resolution.metadata_source == "license-file"
        assert [r.license_id for r in resolution.extracted.licenses] == ["MIT"]

    def test_file_fallback_from_directory(self, tmp_path: Path) -> None:
        """Test that a package directory is scanned when no paths are given."""
        (tmp_path / "LICENSE.txt").write_text("BSD 3-Clause License\n")
        resolution = resolve_python_licenses(str(tmp_path), PythonMetadata())
        assert [r.license_id for r in resolution.extracted.licenses] == ["BSD-3-Clause"]

    def test_empty_explicit_paths_are_not_found(self, tmp_path: Path) -> None:
        """Test that an empty path list means no license files."""
        (tmp_path / "LICENSE").write_text("MIT License\n")
        resolution = resolve_python_licenses(
            str(tmp_path), PythonMetadata(), explicit_license_paths=[]
        )
        assert resolution.extracted.licenses == []
        assert resolution.extracted.verification_status == VerificationStatus.LICENSE_FILE_NOT_FOUND
        assert resolution.metadata_source == "local-metadata"
