"""Enumeration of installed distributions through a target interpreter."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import BaseModel, Field

from license_auditor.constants import INTROSPECTION_TIMEOUT
from license_auditor.exceptions import IntrospectionError
from license_auditor.python.commands import run_command
from license_auditor.python.interpreter import resolve_python_interpreter
from license_auditor.python.requirements import normalize_package_name

log = structlog.get_logger("license_auditor.python")

INTROSPECTION_SCRIPT = """\
import json
import importlib.metadata as metadata

records = []
for dist in metadata.distributions():
    meta = dist.metadata
    name = meta.get('Name')
    version = getattr(dist, 'version', None) or meta.get('Version')
    if not name or not version:
        continue
    license_paths = []
    try:
        for item in dist.files or []:
            file_name = str(item).lower()
            base_name = file_name.rsplit('/', 1)[-1]
            if 'license' in base_name or 'licence' in base_name or 'copying' in base_name or base_name.startswith('notice'):
                license_paths.append(str(dist.locate_file(item)))
    except Exception:
        license_paths = []
    try:
        package_path = str(dist.locate_file(''))
    except Exception:
        package_path = ''
    records.append({
        'name': name,
        'normalizedName': name.lower().replace('_', '-').replace('.', '-'),
        'version': version,
        'packagePath': package_path,
        'licenseExpression': meta.get('License-Expression'),
        'license': meta.get('License'),
        'classifiers': meta.get_all('Classifier') or [],
        'licensePaths': license_paths,
    })
print(json.dumps(records))
"""


class EnvironmentDistribution(BaseModel):
    """One installed distribution as reported by the introspection script."""

    model_config = {"extra": "forbid"}

    name: str
    normalized_name: str
    version: str
    package_path: str
    license_expression: Optional[str] = None
    license: Optional[str] = None
    classifiers: list[str] = Field(default_factory=list)
    license_paths: list[str] = Field(default_factory=list)


def _field(record: dict[str, Any], camel: str, snake: str) -> Any:
    value = record.get(camel)
    return value if value is not None else record.get(snake)


def _string(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def parse_introspection_output(stdout: str) -> list[EnvironmentDistribution]:
    """Parse the JSON array printed by the introspection script.

    Both camelCase and snake_case keys are accepted. Records without a
    name or version are skipped.

    Args:
        stdout: Script output.

    Returns:
        Parsed distributions.

    Raises:
        IntrospectionError: If the output is not a JSON array.
    """
    try:
        records = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise IntrospectionError(f"Invalid Python environment output: {e}") from e

    if not isinstance(records, list):
        raise IntrospectionError("Invalid Python environment output: expected a JSON array")

    distributions: list[EnvironmentDistribution] = []
    for record in records:
        if not isinstance(record, dict):
            continue
        name = record.get("name")
        version = record.get("version")
        if not isinstance(name, str) or not name or not isinstance(version, str) or not version:
            continue

        normalized = _string(
            _field(record, "normalizedName", "normalized_name")
        ) or normalize_package_name(name)
        package_path = _string(
            _field(record, "packagePath", "package_path")
        ) or f"{normalized}@{version}"

        distributions.append(
            EnvironmentDistribution(
                name=name,
                normalized_name=normalized,
                version=version,
                package_path=package_path,
                license_expression=_string(
                    _field(record, "licenseExpression", "license_expression")
                ),
                license=_string(record.get("license")),
                classifiers=_string_list(record.get("classifiers")),
                license_paths=_string_list(_field(record, "licensePaths", "license_paths")),
            )
        )

    return distributions


def collect_environment_distributions(
    cwd: Path, python: Optional[str] = None
) -> list[EnvironmentDistribution]:
    """List the distributions installed for the resolved interpreter.

    Args:
        cwd: Project root.
        python: Explicit interpreter path.

    Returns:
        Installed distributions.

    Raises:
        InterpreterNotFoundError: If no interpreter can be run.
        IntrospectionError: If the script fails or prints invalid output.
    """
    interpreter = resolve_python_interpreter(cwd, python)
    result = run_command(
        interpreter, ["-c", INTROSPECTION_SCRIPT], cwd=cwd, timeout=INTROSPECTION_TIMEOUT
    )
    if not result.ok:
        raise IntrospectionError(
            f"Failed to inspect Python environment with {interpreter}: {result.error}"
        )

    distributions = parse_introspection_output(result.stdout)
    log.debug("python.environment_inspected", interpreter=interpreter, count=len(distributions))
    return distributions
