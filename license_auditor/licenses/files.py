"""License detection from license file content."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

import structlog

from license_auditor.constants import (
    LICENSE_SOURCE_FILE_CONTENT,
    LICENSE_SOURCE_FILE_KEYWORDS,
)
from license_auditor.licenses.spdx import find_license_by_id, parse_license_expression
from license_auditor.models.package import (
    ExtractedLicenses,
    LicenseRecord,
    VerificationStatus,
)

log = structlog.get_logger("license_auditor.licenses")

MAX_LICENSE_BYTES = 128 * 1024

LICENSE_FILE_RE = re.compile(
    r"^(licen[cs]e|copying|notice|unlicense)([-._ ].*)?$", re.IGNORECASE
)

SPDX_HEADER_RE = re.compile(r"SPDX-License-Identifier:\s*(.+)", re.IGNORECASE)

# First-line titles that identify a license unambiguously
LICENSE_TITLES: dict[str, str] = {
    "mit license": "MIT",
    "the mit license": "MIT",
    "the mit license (mit)": "MIT",
    "isc license": "ISC",
    "the isc license": "ISC",
    "isc license (iscl)": "ISC",
    "bsd 2-clause license": "BSD-2-Clause",
    "bsd 3-clause license": "BSD-3-Clause",
    "mozilla public license version 2.0": "MPL-2.0",
    "mozilla public license, version 2.0": "MPL-2.0",
    "blue oak model license": "BlueOak-1.0.0",
    "the unlicense": "Unlicense",
    "creative commons legal code": "CC0-1.0",
}

# Every phrase of an entry must appear; checked in order, first hit wins
ANCHOR_PHRASES: list[tuple[str, tuple[str, ...]]] = [
    (
        "Apache-2.0",
        ("apache license", "version 2.0, january 2004"),
    ),
    (
        "AGPL-3.0-only",
        ("gnu affero general public license", "version 3, 19 november 2007"),
    ),
    (
        "LGPL-3.0-only",
        ("gnu lesser general public license", "version 3, 29 june 2007"),
    ),
    (
        "LGPL-2.1-only",
        ("gnu lesser general public license", "version 2.1, february 1999"),
    ),
    (
        "GPL-3.0-only",
        ("gnu general public license", "version 3, 29 june 2007"),
    ),
    (
        "GPL-2.0-only",
        ("gnu general public license", "version 2, june 1991"),
    ),
    (
        "MPL-2.0",
        ("mozilla public license", "version 2.0"),
    ),
    (
        "BSD-3-Clause",
        ("redistribution and use in source and binary forms", "neither the name of"),
    ),
    (
        "BSD-2-Clause",
        (
            "redistribution and use in source and binary forms",
            "this software is provided by the copyright holders and contributors",
        ),
    ),
    (
        "MIT",
        (
            "permission is hereby granted, free of charge",
            "the above copyright notice and this permission notice shall be included",
        ),
    ),
    (
        "ISC",
        (
            "permission to use, copy, modify, and/or distribute this software "
            "for any purpose with or without fee is hereby granted",
        ),
    ),
    (
        "Unlicense",
        ("this is free and unencumbered software released into the public domain",),
    ),
]

# Weak signals; a hit is reported but flagged as uncertain
LICENSE_KEYWORDS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\baffero\b|\bagpl\b"), "AGPL-3.0-only"),
    (re.compile(r"\blesser general public license\b|\blgpl\b"), "LGPL-3.0-only"),
    (re.compile(r"\bgeneral public license\b|\bgpl\b"), "GPL-3.0-only"),
    (re.compile(r"\bapache\b"), "Apache-2.0"),
    (re.compile(r"\bmozilla public license\b|\bmpl\b"), "MPL-2.0"),
    (re.compile(r"\bbsd\b"), "BSD-3-Clause"),
    (re.compile(r"\bisc\b"), "ISC"),
    (re.compile(r"\bunlicense\b"), "Unlicense"),
    (re.compile(r"\bmit\b"), "MIT"),
]


def is_license_file_name(name: str) -> bool:
    """Check whether a file name looks like a license or notice file."""
    return bool(LICENSE_FILE_RE.match(name))


def _read_license_text(path: Path) -> Optional[str]:
    try:
        with path.open("rb") as handle:
            raw = handle.read(MAX_LICENSE_BYTES)
    except OSError as e:
        log.debug("licenses.file_unreadable", path=str(path), error=str(e))
        return None
    return raw.decode("utf-8", errors="replace")


def _record(license_id: str, source: str, deprecated: bool = False) -> LicenseRecord:
    return LicenseRecord(license_id=license_id, source=source, deprecated=deprecated)


def identify_license_text(text: str) -> list[LicenseRecord]:
    """Identify the license(s) in license file content.

    Exact matches (an SPDX header, an SPDX id or known title on the first
    line, or a full set of anchor phrases) are tagged with the file-content
    source. Keyword-only matches are tagged with the keywords source.

    Args:
        text: License file content.

    Returns:
        Matched license records, empty if nothing matched.
    """
    header = SPDX_HEADER_RE.search(text)
    if header:
        leaves = parse_license_expression(header.group(1).strip())
        if leaves:
            return [
                _record(leaf.license_id, LICENSE_SOURCE_FILE_CONTENT, leaf.deprecated)
                for leaf in leaves
            ]

    first_line = next((line.strip() for line in text.splitlines() if line.strip()), "")
    direct = find_license_by_id(first_line)
    if direct:
        return [_record(direct.license_id, LICENSE_SOURCE_FILE_CONTENT, direct.deprecated)]

    title = LICENSE_TITLES.get(first_line.lower().rstrip("."))
    if title:
        return [_record(title, LICENSE_SOURCE_FILE_CONTENT)]

    normalized = " ".join(text.lower().split())
    for license_id, phrases in ANCHOR_PHRASES:
        if all(phrase in normalized for phrase in phrases):
            return [_record(license_id, LICENSE_SOURCE_FILE_CONTENT)]

    for pattern, license_id in LICENSE_KEYWORDS:
        if pattern.search(normalized):
            return [_record(license_id, LICENSE_SOURCE_FILE_KEYWORDS)]

    return []


def find_license_in_license_file(path: Path) -> list[LicenseRecord]:
    """Read a license file and identify its license(s).

    Args:
        path: Path to the license file.

    Returns:
        Matched license records, empty if unreadable or unmatched.
    """
    text = _read_license_text(path)
    if text is None:
        return []
    return identify_license_text(text)


def find_license_files(package_dir: Path) -> list[Path]:
    """List license-like files directly inside a package directory."""
    try:
        entries = sorted(package_dir.iterdir())
    except OSError:
        return []
    return [entry for entry in entries if entry.is_file() and is_license_file_name(entry.name)]


def dedupe_licenses(licenses: list[LicenseRecord]) -> list[LicenseRecord]:
    """Remove duplicate records; the same id from two sources is kept twice."""
    deduped: dict[tuple[str, str], LicenseRecord] = {}
    for record in licenses:
        deduped.setdefault(record.dedup_key, record)
    return list(deduped.values())


def scan_license_files(license_paths: list[Path], package_path: str) -> ExtractedLicenses:
    """Scan a set of license files and derive a verification status.

    Args:
        license_paths: Candidate license files.
        package_path: Package location, reported when no file exists.

    Returns:
        ExtractedLicenses with found licenses and one of:
        licenseFileNotFound (no files), licenseFileExistsButUnknownLicense
        (files but no match), licenseFilesExistButSomeAreUncertain (some
        file unmatched or matched only by keywords), or ok.
    """
    if not license_paths:
        return ExtractedLicenses(
            licenses=[],
            license_paths=[package_path],
            verification_status=VerificationStatus.LICENSE_FILE_NOT_FOUND,
        )

    found: list[LicenseRecord] = []
    uncertain_files = 0

    for license_path in license_paths:
        records = find_license_in_license_file(license_path)
        if not records:
            uncertain_files += 1
            continue
        if any(r.source == LICENSE_SOURCE_FILE_KEYWORDS for r in records):
            uncertain_files += 1
        found.extend(records)

    paths = [str(p) for p in license_paths]

    if not found:
        return ExtractedLicenses(
            licenses=[],
            license_paths=paths,
            verification_status=VerificationStatus.LICENSE_FILE_EXISTS_BUT_UNKNOWN_LICENSE,
        )

    status = (
        VerificationStatus.LICENSE_FILES_EXIST_BUT_SOME_ARE_UNCERTAIN
        if uncertain_files > 0
        else VerificationStatus.OK
    )
    return ExtractedLicenses(
        licenses=dedupe_licenses(found),
        license_paths=paths,
        verification_status=status,
    )


def parse_license_files(package_dir: Path) -> ExtractedLicenses:
    """Scan the license files found in a package directory."""
    return scan_license_files(find_license_files(package_dir), str(package_dir))
