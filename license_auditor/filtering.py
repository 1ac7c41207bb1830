"""Package filtering by regex and by configured overrides."""

from __future__ import annotations

import re
from typing import NamedTuple, Optional

from license_auditor.exceptions import ConfigurationError
from license_auditor.models.config import AuditConfig
from license_auditor.models.package import PackageCandidate


class FilterResult(NamedTuple):
    """Result of filtering packages.

    Attributes:
        packages: Packages kept after filtering.
        removed_names: Names (without version) of packages that were removed.
    """

    packages: list[PackageCandidate]
    removed_names: list[str]


def get_package_name(package_name: str) -> str:
    """Strip the ``@version`` suffix from a ``name@version`` string.

    Scoped Node names keep their leading ``@``:
    ``@scope/pkg@1.0.0`` becomes ``@scope/pkg``.
    """
    separator = package_name.rfind("@")
    if separator <= 0:
        return package_name
    return package_name[:separator]


def compile_filter_regex(filter_regex: Optional[str]) -> Optional[re.Pattern[str]]:
    """Compile a user-supplied exclusion regex.

    Raises:
        ConfigurationError: If the pattern is not a valid regex.
    """
    if not filter_regex:
        return None
    try:
        return re.compile(filter_regex)
    except re.error as e:
        raise ConfigurationError(f"Invalid filter regex {filter_regex!r}: {e}") from e


def filter_with_regex(
    packages: list[PackageCandidate],
    filter_regex: Optional[str],
) -> list[PackageCandidate]:
    """Remove packages whose ``name@version`` matches the regex.

    Args:
        packages: Discovered packages.
        filter_regex: Exclusion pattern; None keeps every package.

    Returns:
        Packages that do not match.
    """
    pattern = compile_filter_regex(filter_regex)
    if pattern is None:
        return packages
    return [pkg for pkg in packages if not pattern.search(pkg.package_name)]


def filter_overrides(
    packages: list[PackageCandidate],
    config: AuditConfig,
) -> FilterResult:
    """Remove packages listed in the config's overrides.

    Matching is by package name without version and is case-sensitive.

    Args:
        packages: Packages to filter.
        config: Configuration with the overrides mapping.

    Returns:
        FilterResult with kept packages and the names that were removed.
        If overrides is None or empty, returns all packages.
    """
    if not config.overrides:
        return FilterResult(packages=packages, removed_names=[])

    kept: list[PackageCandidate] = []
    removed: list[str] = []
    for pkg in packages:
        name = get_package_name(pkg.package_name)
        if name in config.overrides:
            removed.append(name)
        else:
            kept.append(pkg)

    return FilterResult(packages=kept, removed_names=removed)
