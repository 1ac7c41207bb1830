"""Configuration handling for license-auditor."""
from __future__ import annotations

from license_auditor.config.defaults import CONFIG_FILE_NAMES, get_default_config
from license_auditor.config.loader import (
    find_config_file,
    load_config,
    load_config_file,
)
from license_auditor.models.config import AuditConfig

__all__ = [
    "AuditConfig",
    "CONFIG_FILE_NAMES",
    "find_config_file",
    "get_default_config",
    "load_config",
    "load_config_file",
]
