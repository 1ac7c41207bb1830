"""License extraction: SPDX handling, license files and per-ecosystem extractors."""

from license_auditor.licenses.extractor import (
    CLASSIFIER_TO_SPDX,
    PythonMetadata,
    find_node_licenses,
    resolve_python_licenses,
)
from license_auditor.licenses.files import (
    find_license_in_license_file,
    parse_license_files,
    scan_license_files,
)
from license_auditor.licenses.spdx import find_license_by_id, parse_license_expression

__all__ = [
    "CLASSIFIER_TO_SPDX",
    "PythonMetadata",
    "find_license_by_id",
    "find_license_in_license_file",
    "find_node_licenses",
    "parse_license_expression",
    "parse_license_files",
    "resolve_python_licenses",
    "scan_license_files",
]
