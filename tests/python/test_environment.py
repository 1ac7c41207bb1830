"""Tests for installed-environment introspection."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from license_auditor.exceptions import IntrospectionError
from license_auditor.models.config import AuditConfig
from license_auditor.python.collector import collect_python_licenses
from license_auditor.python.commands import CommandResult
from license_auditor.python.environment import (
    INTROSPECTION_SCRIPT,
    collect_environment_distributions,
    parse_introspection_output,
)


class TestParseIntrospectionOutput:
    """Tests for parse_introspection_output."""

    def test_camel_and_snake_case_keys(self) -> None:
        """Test that both key styles are accepted."""
        output = json.dumps(
            [
                {
                    "name": "Requests",
                    "normalizedName": "requests",
                    "version": "2.31.0",
                    "packagePath": "/site",
                    "licenseExpression": "Apache-2.0",
                    "classifiers": ["License :: OSI Approved :: Apache Software License"],
                    "licensePaths": ["/site/requests-2.31.0.dist-info/LICENSE"],
                },
                {
                    "name": "zope.interface",
                    "version": "6.0",
                    "package_path": "/site2",
                    "license_expression": "ZPL-2.1",
                    "license_paths": [],
                },
            ]
        )

        distributions = parse_introspection_output(output)

        assert [d.name for d in distributions] == ["Requests", "zope.interface"]
        assert distributions[0].license_expression == "Apache-2.0"
        assert distributions[0].license_paths == ["/site/requests-2.31.0.dist-info/LICENSE"]
        assert distributions[1].normalized_name == "zope-interface"
        assert distributions[1].package_path == "/site2"
        assert distributions[1].license_expression == "ZPL-2.1"

    def test_records_without_name_or_version_are_dropped(self) -> None:
        """Test that incomplete records are skipped."""
        output = json.dumps([{"name": "x"}, {"version": "1"}, {"name": "ok", "version": "1"}])
        distributions = parse_introspection_output(output)
        assert [d.name for d in distributions] == ["ok"]
        assert distributions[0].package_path == "ok@1"

    def test_non_string_values_are_ignored(self) -> None:
        """Test that wrongly typed fields fall back instead of failing validation."""
        output = json.dumps(
            [
                {
                    "name": "Odd_Pkg",
                    "version": "2.0",
                    "normalizedName": 5,
                    "packagePath": None,
                    "licenseExpression": ["MIT"],
                    "license": 123,
                    "classifiers": ["License :: OSI Approved :: MIT License", 7],
                }
            ]
        )

        [distribution] = parse_introspection_output(output)

        assert distribution.normalized_name == "odd-pkg"
        assert distribution.package_path == "odd-pkg@2.0"
        assert distribution.license_expression is None
        assert distribution.license is None
        assert distribution.classifiers == ["License :: OSI Approved :: MIT License"]

    def test_invalid_json(self) -> None:
        """Test that unparseable output raises."""
        with pytest.raises(IntrospectionError):
            parse_introspection_output("Traceback ...")

    def test_non_array(self) -> None:
        """Test that a JSON object is rejected."""
        with pytest.raises(IntrospectionError):
            parse_introspection_output("{}")


class TestCollectEnvironmentDistributions:
    """Tests for collect_environment_distributions."""

    def test_runs_script_with_resolved_interpreter(self, tmp_path: Path) -> None:
        """Test that the script is run by the selected interpreter."""
        with patch(
            "license_auditor.python.environment.resolve_python_interpreter",
            return_value="python3",
        ), patch(
            "license_auditor.python.environment.run_command",
            return_value=CommandResult(ok=True, stdout='[{"name": "a", "version": "1"}]'),
        ) as run:
            distributions = collect_environment_distributions(tmp_path)

        assert [d.name for d in distributions] == ["a"]
        assert run.call_args.args[0] == "python3"
        assert run.call_args.args[1] == ["-c", INTROSPECTION_SCRIPT]
        assert run.call_args.kwargs["timeout"] == 30.0

    def test_failed_run_raises(self, tmp_path: Path) -> None:
        """Test that a failing script raises IntrospectionError."""
        with patch(
            "license_auditor.python.environment.resolve_python_interpreter",
            return_value="python3",
        ), patch(
            "license_auditor.python.environment.run_command",
            return_value=CommandResult(ok=False, error="Command failed (1): python3 -c"),
        ):
            with pytest.raises(IntrospectionError, match="Command failed"):
                collect_environment_distributions(tmp_path)

    def test_timed_out_run_becomes_collector_warning(self, tmp_path: Path) -> None:
        """Test that the Python collector reports a timed-out script as a warning."""
        message = "Command timed out: python3 -c"
        with patch(
            "license_auditor.python.environment.resolve_python_interpreter",
            return_value="python3",
        ), patch(
            "license_auditor.python.environment.run_command",
            return_value=CommandResult(ok=False, error=message),
        ):
            with pytest.raises(IntrospectionError, match="timed out"):
                collect_environment_distributions(tmp_path)

            result = collect_python_licenses(
                tmp_path, AuditConfig(whitelist=["MIT"], blacklist=[])
            )

        assert result.licenses == {}
        assert result.warning == (
            f"Failed to inspect Python environment with python3: {message}"
        )
