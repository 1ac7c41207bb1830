"""Python dependency discovery and license collection."""

from license_auditor.python.collector import collect_python_licenses
from license_auditor.python.environment import collect_environment_distributions
from license_auditor.python.interpreter import resolve_python_interpreter
from license_auditor.python.pypi import enrich_with_pypi, fetch_pypi_metadata
from license_auditor.python.requirements import (
    discover_requirements_files,
    normalize_package_name,
    parse_requirements_files,
)
from license_auditor.python.uv_export import export_uv_lock, parse_uv_export_requirements

__all__ = [
    "collect_environment_distributions",
    "collect_python_licenses",
    "discover_requirements_files",
    "enrich_with_pypi",
    "export_uv_lock",
    "fetch_pypi_metadata",
    "normalize_package_name",
    "parse_requirements_files",
    "parse_uv_export_requirements",
    "resolve_python_interpreter",
]
