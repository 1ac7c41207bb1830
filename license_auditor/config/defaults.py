"""Default configuration values for license-auditor."""

from __future__ import annotations

from license_auditor.models.config import AuditConfig

# Configuration file names searched in the project root, in order
CONFIG_FILE_NAMES = [
    "license-auditor.config.yaml",
    "license-auditor.config.yml",
    "license-auditor.config.json",
    ".license-auditorrc.json",
]

DEFAULT_WHITELIST = [
    "0BSD",
    "Apache-2.0",
    "BlueOak-1.0.0",
    "BSD-2-Clause",
    "BSD-3-Clause",
    "CC0-1.0",
    "CC-BY-4.0",
    "ISC",
    "MIT",
    "MIT-0",
    "PSF-2.0",
    "Python-2.0",
    "Unlicense",
    "Zlib",
]

DEFAULT_BLACKLIST = [
    "AGPL-3.0-only",
    "AGPL-3.0-or-later",
    "GPL-2.0-only",
    "GPL-2.0-or-later",
    "GPL-3.0-only",
    "GPL-3.0-or-later",
    "SSPL-1.0",
]


def get_default_config() -> AuditConfig:
    """Get the built-in policy used with ``--default-config``.

    Returns:
        AuditConfig allowing common permissive licenses and rejecting
        strong copyleft ones.
    """
    return AuditConfig(
        whitelist=list(DEFAULT_WHITELIST),
        blacklist=list(DEFAULT_BLACKLIST),
    )
