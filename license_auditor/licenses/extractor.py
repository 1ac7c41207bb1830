"""Per-package license extraction for Node and Python packages."""

from __future__ import annotations

from pathlib import Path
from typing import Any, NamedTuple, Optional

from pydantic import BaseModel, Field

from license_auditor.constants import (
    LICENSE_SOURCE_PACKAGE_JSON_EXPRESSION,
    LICENSE_SOURCE_PACKAGE_JSON_LEGACY,
    LICENSE_SOURCE_PACKAGE_JSON_LICENSE,
    LICENSE_SOURCE_PACKAGE_JSON_LICENSES,
    LICENSE_SOURCE_PYTHON_CLASSIFIER,
    LICENSE_SOURCE_PYTHON_CLASSIFIER_MAPPED,
    LICENSE_SOURCE_PYTHON_EXPRESSION,
    LICENSE_SOURCE_PYTHON_LICENSE_FIELD,
    PACKAGE_JSON,
)
from license_auditor.licenses.files import (
    dedupe_licenses,
    parse_license_files,
    scan_license_files,
)
from license_auditor.licenses.spdx import (
    SpdxLicense,
    find_license_by_id,
    parse_license_expression,
)
from license_auditor.models.package import (
    ExtractedLicenses,
    LicenseRecord,
    MetadataSource,
    VerificationStatus,
)

# Curated mapping of license classifiers (lower-cased) to SPDX identifiers
CLASSIFIER_TO_SPDX: dict[str, list[str]] = {
    "license :: osi approved :: mit license": ["MIT"],
    "license :: osi approved :: mit no attribution license (mit-0)": ["MIT-0"],
    "license :: osi approved :: apache software license": ["Apache-2.0"],
    "license :: osi approved :: bsd license": ["BSD-3-Clause", "BSD-2-Clause"],
    "license :: osi approved :: gnu general public license (gpl)": [
        "GPL-3.0-only",
        "GPL-2.0-only",
    ],
    "license :: osi approved :: gnu general public license v2 (gplv2)": ["GPL-2.0-only"],
    "license :: osi approved :: gnu general public license v2 or later (gplv2+)": [
        "GPL-2.0-or-later"
    ],
    "license :: osi approved :: gnu general public license v3 (gplv3)": ["GPL-3.0-only"],
    "license :: osi approved :: gnu general public license v3 or later (gplv3+)": [
        "GPL-3.0-or-later"
    ],
    "license :: osi approved :: gnu lesser general public license v3 (lgplv3)": [
        "LGPL-3.0-only"
    ],
    "license :: osi approved :: gnu lesser general public license v3 or later (lgplv3+)": [
        "LGPL-3.0-or-later"
    ],
    "license :: osi approved :: gnu lesser general public license v2 (lgplv2)": [
        "LGPL-2.1-only",
        "LGPL-2.0-only",
    ],
    "license :: osi approved :: gnu lesser general public license v2 or later (lgplv2+)": [
        "LGPL-2.0-or-later"
    ],
    "license :: osi approved :: gnu affero general public license v3": ["AGPL-3.0-only"],
    "license :: osi approved :: isc license": ["ISC"],
    "license :: osi approved :: isc license (iscl)": ["ISC"],
    "license :: osi approved :: mozilla public license 2.0 (mpl 2.0)": ["MPL-2.0"],
    "license :: osi approved :: python software foundation license": ["PSF-2.0"],
    "license :: osi approved :: the unlicense (unlicense)": ["Unlicense"],
    "license :: osi approved :: zlib/libpng license": ["Zlib"],
    "license :: osi approved :: boost software license 1.0 (bsl-1.0)": ["BSL-1.0"],
    "license :: osi approved :: eclipse public license 2.0 (epl-2.0)": ["EPL-2.0"],
    "license :: cc0 1.0 universal (cc0 1.0) public domain dedication": ["CC0-1.0"],
}


class PythonMetadata(BaseModel):
    """License-relevant fields of a Python distribution's metadata."""

    model_config = {"extra": "forbid"}

    license_expression: Optional[str] = None
    license: Optional[str] = None
    classifiers: list[str] = Field(default_factory=list)


class PythonLicenseResolution(NamedTuple):
    """Extracted licenses plus where they came from."""

    extracted: ExtractedLicenses
    metadata_source: MetadataSource


def _records(licenses: list[SpdxLicense], source: str) -> list[LicenseRecord]:
    return [
        LicenseRecord(license_id=lic.license_id, source=source, deprecated=lic.deprecated)
        for lic in licenses
    ]


def _licenses_from_value(value: Any, id_source: str) -> tuple[list[LicenseRecord], Optional[str]]:
    """Resolve a manifest license value as an id first, then as an expression."""
    if not isinstance(value, str) or not value.strip():
        return [], None

    direct = find_license_by_id(value)
    if direct:
        return _records([direct], id_source), None

    leaves = parse_license_expression(value)
    if leaves:
        return _records(leaves, LICENSE_SOURCE_PACKAGE_JSON_EXPRESSION), value.strip()

    return [], None


def find_node_licenses(package_json: dict[str, Any], package_dir: Path) -> ExtractedLicenses:
    """Extract licenses of an installed Node package.

    Manifest fields are tried first: ``license`` as an id or SPDX expression,
    the legacy ``license: {type}`` object, then the legacy ``licenses`` array.
    If the manifest yields nothing, license files in the package directory
    are scanned.

    Args:
        package_json: Parsed package.json of the dependency.
        package_dir: Dependency directory.

    Returns:
        ExtractedLicenses with licenses, evidence paths and verification status.
    """
    licenses: list[LicenseRecord] = []
    expression: Optional[str] = None

    license_field = package_json.get("license")
    if isinstance(license_field, dict):
        found, _ = _licenses_from_value(
            license_field.get("type"), LICENSE_SOURCE_PACKAGE_JSON_LEGACY
        )
        licenses.extend(found)
    else:
        found, expression = _licenses_from_value(
            license_field, LICENSE_SOURCE_PACKAGE_JSON_LICENSE
        )
        licenses.extend(found)

    licenses_field = package_json.get("licenses")
    if not licenses and isinstance(licenses_field, list):
        for entry in licenses_field:
            value = entry.get("type") if isinstance(entry, dict) else entry
            found, _ = _licenses_from_value(value, LICENSE_SOURCE_PACKAGE_JSON_LICENSES)
            licenses.extend(found)

    if licenses:
        return ExtractedLicenses(
            licenses=dedupe_licenses(licenses),
            license_paths=[str(package_dir / PACKAGE_JSON)],
            license_expression=expression,
            verification_status=VerificationStatus.OK,
        )

    return parse_license_files(package_dir)


def resolve_licenses_from_classifier(classifier: str) -> list[LicenseRecord]:
    """Map a ``License ::`` classifier to SPDX records.

    The curated table is tried first. Unmapped classifiers have each of
    their ``::`` segments tried as a literal SPDX id.
    """
    mapped = CLASSIFIER_TO_SPDX.get(classifier.strip().lower())
    if mapped:
        found = [lic for lic in (find_license_by_id(i) for i in mapped) if lic]
        if found:
            return _records(found, LICENSE_SOURCE_PYTHON_CLASSIFIER_MAPPED)

    parts = [part.strip() for part in classifier.split("::")]
    from_parts = [lic for lic in (find_license_by_id(part) for part in parts) if lic]
    return _records(from_parts, LICENSE_SOURCE_PYTHON_CLASSIFIER)


def collect_licenses_from_metadata(
    metadata: PythonMetadata,
) -> tuple[list[LicenseRecord], Optional[str]]:
    """Apply the metadata precedence for Python distributions.

    1. ``License-Expression`` parsed as an SPDX expression.
    2. ``License`` as an exact SPDX id, else as an expression (only if 1
       produced nothing).
    3. ``License ::`` classifiers, always scanned and unioned in.

    Args:
        metadata: Distribution metadata.

    Returns:
        Tuple of (deduplicated records, parsed expression text or None).
    """
    licenses: list[LicenseRecord] = []
    expression: Optional[str] = None

    if metadata.license_expression:
        leaves = parse_license_expression(metadata.license_expression)
        if leaves:
            licenses.extend(_records(leaves, LICENSE_SOURCE_PYTHON_EXPRESSION))
            expression = metadata.license_expression.strip()

    if not licenses and metadata.license:
        direct = find_license_by_id(metadata.license)
        if direct:
            licenses.extend(_records([direct], LICENSE_SOURCE_PYTHON_LICENSE_FIELD))
        else:
            leaves = parse_license_expression(metadata.license)
            if leaves:
                licenses.extend(_records(leaves, LICENSE_SOURCE_PYTHON_LICENSE_FIELD))
                expression = metadata.license.strip()

    for classifier in metadata.classifiers:
        if classifier.lower().startswith("license ::"):
            licenses.extend(resolve_licenses_from_classifier(classifier))

    return dedupe_licenses(licenses), expression


def resolve_python_licenses(
    package_path: str,
    metadata: PythonMetadata,
    explicit_license_paths: Optional[list[str]] = None,
) -> PythonLicenseResolution:
    """Extract licenses of a Python distribution.

    Metadata is used first. License files are only scanned when metadata
    yields nothing: the explicit paths when given (even if empty), otherwise
    the license files in ``package_path`` when it is a directory.

    Args:
        package_path: Install location or the source file of a pin.
        metadata: Distribution metadata.
        explicit_license_paths: License file paths reported by the environment.

    Returns:
        PythonLicenseResolution with the extracted licenses and whether they
        came from metadata or license files.
    """
    licenses, expression = collect_licenses_from_metadata(metadata)
    if licenses:
        return PythonLicenseResolution(
            extracted=ExtractedLicenses(
                licenses=licenses,
                license_paths=[],
                license_expression=expression,
                verification_status=VerificationStatus.OK,
            ),
            metadata_source="local-metadata",
        )

    if explicit_license_paths is not None:
        from_files = scan_license_files(
            [Path(p) for p in explicit_license_paths], package_path
        )
    elif Path(package_path).is_dir():
        from_files = parse_license_files(Path(package_path))
    else:
        from_files = scan_license_files([], package_path)

    return PythonLicenseResolution(
        extracted=from_files,
        metadata_source="license-file" if from_files.licenses else "local-metadata",
    )
