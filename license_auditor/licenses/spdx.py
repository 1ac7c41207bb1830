"""SPDX identifier and expression helpers.

Uses the license-expression library's SPDX licensing for validation and
normalization, so legacy ids such as ``GPL-3.0`` resolve to their current
form (``GPL-3.0-only``).
"""

import re
from typing import NamedTuple, Optional

from license_expression import ExpressionError, LicenseSymbol, get_spdx_licensing

_licensing = get_spdx_licensing()

_TOKEN_SPLIT_RE = re.compile(r"[\s()]+")


class SpdxLicense(NamedTuple):
    """A validated SPDX license id."""

    license_id: str
    deprecated: bool


def _is_license_symbol(symbol: object) -> bool:
    return isinstance(symbol, LicenseSymbol) and not getattr(
        symbol, "is_exception", False
    )


def find_license_by_id(license_id: Optional[str]) -> Optional[SpdxLicense]:
    """Look up a single SPDX license identifier.

    Args:
        license_id: Candidate identifier, e.g. "MIT" or "GPL-3.0".

    Returns:
        SpdxLicense with the canonical id, or None if the value is not a
        single known license id (expressions and exceptions are rejected).
    """
    if not license_id or not license_id.strip():
        return None

    candidate = license_id.strip()
    try:
        parsed = _licensing.parse(candidate, validate=True)
    except ExpressionError:
        return None

    if not _is_license_symbol(parsed):
        return None

    key = str(parsed.key)
    return SpdxLicense(license_id=key, deprecated=key.lower() != candidate.lower())


def parse_license_expression(expression: Optional[str]) -> Optional[list[SpdxLicense]]:
    """Parse an SPDX logical expression into its license ids.

    ``AND``, ``OR`` and ``WITH`` are supported. For ``WITH`` the exception
    is dropped and only the license id is kept.

    Args:
        expression: SPDX expression, e.g. "(MIT OR Apache-2.0)".

    Returns:
        Unique license ids in expression order, or None if the expression
        is empty, invalid, or references unknown ids.
    """
    if not expression or not expression.strip():
        return None

    try:
        parsed = _licensing.parse(expression.strip(), validate=True)
    except ExpressionError:
        return None

    if parsed is None:
        return None

    written = {token.lower() for token in _TOKEN_SPLIT_RE.split(expression) if token}
    leaves: list[SpdxLicense] = []
    for symbol in _licensing.license_symbols(parsed, unique=True, decompose=True):
        if not _is_license_symbol(symbol):
            continue
        key = str(symbol.key)
        leaves.append(SpdxLicense(license_id=key, deprecated=key.lower() not in written))

    return leaves or None
