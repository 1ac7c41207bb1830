"""Shared fixtures for license-auditor tests."""

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any, Callable

import pytest
import structlog
from click.testing import CliRunner

from license_auditor.models.config import AuditConfig


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Undo logging configuration done by CLI invocations."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def audit_config() -> AuditConfig:
    """A small whitelist/blacklist policy."""
    return AuditConfig(
        whitelist=["MIT", "Apache-2.0", "ISC"],
        blacklist=["GPL-3.0-only"],
    )


@pytest.fixture
def write_package() -> Callable[..., Path]:
    """Write a package.json into a directory, creating it if needed."""

    def _write(directory: Path, **manifest: Any) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        (directory / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
        return directory

    return _write
