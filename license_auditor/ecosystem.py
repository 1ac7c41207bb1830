"""Selection of the ecosystems to audit."""

from __future__ import annotations

from pathlib import Path
from typing import Literal, NamedTuple, Optional

import structlog

from license_auditor.constants import (
    NODE_ECOSYSTEM_MARKERS,
    PYTHON_ECOSYSTEM_MARKERS,
    REQUIREMENTS_DIR,
)
from license_auditor.exceptions import AmbiguousEcosystemError
from license_auditor.models.config import Ecosystem

log = structlog.get_logger("license_auditor.ecosystem")

ResolvedEcosystem = Literal["node", "python", "both"]


class EcosystemSignals(NamedTuple):
    """Which ecosystems left markers in the project root."""

    has_node: bool
    has_python: bool


def _has_requirements_directory(cwd: Path) -> bool:
    requirements_dir = cwd / REQUIREMENTS_DIR
    if not requirements_dir.is_dir():
        return False
    try:
        return any(entry.name.lower().endswith(".txt") for entry in requirements_dir.iterdir())
    except OSError:
        return False


def detect_ecosystems(cwd: Path) -> EcosystemSignals:
    """Look for Node and Python marker files in the project root."""
    has_node = any((cwd / marker).exists() for marker in NODE_ECOSYSTEM_MARKERS)
    has_python = any(
        (cwd / marker).exists() for marker in PYTHON_ECOSYSTEM_MARKERS
    ) or _has_requirements_directory(cwd)
    return EcosystemSignals(has_node=has_node, has_python=has_python)


def resolve_audit_ecosystem(
    cwd: Path,
    cli_ecosystem: Optional[Ecosystem] = None,
    config_ecosystem: Optional[Ecosystem] = None,
) -> ResolvedEcosystem:
    """Decide which ecosystems to audit.

    An explicit choice from the CLI wins over the config. ``auto`` (the
    default) inspects the project root: Python-only signals select
    python, anything else selects node.

    Args:
        cwd: Project root.
        cli_ecosystem: Value of ``--ecosystem``.
        config_ecosystem: Value of ``ecosystem`` in the config.

    Returns:
        "node", "python" or "both".

    Raises:
        AmbiguousEcosystemError: If auto-detection sees both ecosystems.
    """
    requested = cli_ecosystem or config_ecosystem or "auto"
    if requested != "auto":
        return requested

    signals = detect_ecosystems(cwd)
    if signals.has_node and signals.has_python:
        raise AmbiguousEcosystemError(
            "Detected both Node and Python project signals. "
            'Set ecosystem in config (ecosystem: "node" | "python" | "both") '
            "or pass --ecosystem."
        )

    selected: ResolvedEcosystem = "python" if signals.has_python else "node"
    log.debug("ecosystem.detected", ecosystem=selected, **signals._asdict())
    return selected
