"""Policy file discovery and loading for license-auditor."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from license_auditor.config.defaults import CONFIG_FILE_NAMES, get_default_config
from license_auditor.exceptions import ConfigurationError
from license_auditor.models.config import AuditConfig

log = structlog.get_logger("license_auditor.config")

# Editor hint key allowed at the top of JSON policies
SCHEMA_KEY = "$schema"


def find_config_file(project_root: Path | None = None) -> Path | None:
    """Locate the policy file of a project.

    Only the project root is searched; names are tried in CONFIG_FILE_NAMES
    order, so YAML wins over JSON.

    Args:
        project_root: Directory to look in. Defaults to the process cwd.

    Returns:
        The first existing policy file, or None.
    """
    root = project_root or Path.cwd()
    return next(
        (root / name for name in CONFIG_FILE_NAMES if (root / name).is_file()),
        None,
    )


def _decode(path: Path, text: str) -> Any:
    is_json = path.suffix.lower() == ".json"
    try:
        return json.loads(text) if is_json else yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        kind = "JSON" if is_json else "YAML"
        raise ConfigurationError(f"Invalid {kind} syntax in '{path}': {e}") from e


def describe_validation_error(error: ValidationError) -> str:
    """Flatten pydantic errors into ``field.path: message; ...``."""
    return "; ".join(
        f"{'.'.join(map(str, issue['loc'])) or 'root'}: {issue['msg']}"
        for issue in error.errors()
    )


def load_config_file(path: Path) -> AuditConfig:
    """Read a YAML or JSON policy file into an AuditConfig.

    Raises:
        ConfigurationError: If the file is unreadable, malformed, not a
            mapping, or does not describe a valid policy.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read policy file '{path}': {e}") from e

    raw = _decode(path, text) if text.strip() else None
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"Invalid configuration in '{path}': "
            f"expected a mapping at root level, got {type(raw).__name__}"
        )

    policy = {key: value for key, value in raw.items() if key != SCHEMA_KEY}
    try:
        config = AuditConfig.model_validate(policy)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in '{path}': {describe_validation_error(e)}"
        ) from e

    log.debug(
        "config.loaded",
        path=str(path),
        whitelist=len(config.whitelist),
        blacklist=len(config.blacklist),
        overrides=len(config.overrides or {}),
    )
    return config


def load_config(
    project_root: Path,
    config_path: str | None = None,
    use_default: bool = False,
) -> AuditConfig:
    """Resolve the policy for an audit run.

    Precedence: an explicit ``config_path``, then the built-in policy when
    ``use_default`` is set, then a policy file found in ``project_root``.

    Args:
        project_root: Project being audited.
        config_path: Policy file given on the command line.
        use_default: Use the built-in policy and skip discovery.

    Returns:
        The AuditConfig to audit against.

    Raises:
        ConfigurationError: If the chosen file is invalid, or if no policy
            can be found at all.
    """
    if config_path:
        return load_config_file(Path(config_path))
    if use_default:
        log.debug("config.default_policy")
        return get_default_config()

    found = find_config_file(project_root)
    if found is None:
        raise ConfigurationError(
            f"No configuration file found in '{project_root}'. Create one of "
            f"{', '.join(CONFIG_FILE_NAMES)} or pass --default-config."
        )
    return load_config_file(found)
