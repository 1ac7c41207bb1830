"""Tests for requirements-file parsing."""

from pathlib import Path

import pytest

from license_auditor.python.requirements import (
    discover_requirements_files,
    guess_package_name,
    match_pinned_requirement,
    normalize_package_name,
    parse_requirements_files,
)


class TestNormalizePackageName:
    """Tests for normalize_package_name."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Django", "django"),
            ("zope.interface", "zope-interface"),
            ("Foo__Bar--baz", "foo-bar-baz"),
            ("ruamel.yaml.clib", "ruamel-yaml-clib"),
        ],
    )
    def test_normalizes(self, raw: str, expected: str) -> None:
        """Test lower-casing and separator collapsing."""
        assert normalize_package_name(raw) == expected


class TestMatchPinnedRequirement:
    """Tests for match_pinned_requirement."""

    def test_exact_pin(self) -> None:
        """Test a plain pin."""
        assert match_pinned_requirement("requests==2.31.0") == ("requests", "2.31.0")

    def test_extras_and_marker(self) -> None:
        """Test a pin with extras and an environment marker."""
        assert match_pinned_requirement(
            'uvicorn[standard]==0.30.0 ; python_version >= "3.9"'
        ) == ("uvicorn", "0.30.0")

    @pytest.mark.parametrize("line", ["requests>=2.0", "requests", "-e .", "git+https://x/y.git"])
    def test_not_pinned(self, line: str) -> None:
        """Test that ranges, bare names and URLs are not pins."""
        assert match_pinned_requirement(line) is None

    def test_guess_package_name(self) -> None:
        """Test best-effort names for unsupported lines."""
        assert guess_package_name("requests>=2.0") == "requests"
        assert guess_package_name("-e .") is None


class TestDiscoverRequirementsFiles:
    """Tests for discover_requirements_files."""

    def test_root_and_directory(self, tmp_path: Path) -> None:
        """Test that root and requirements/*.txt files are found, sorted."""
        (tmp_path / "requirements.txt").write_text("")
        (tmp_path / "requirements").mkdir()
        (tmp_path / "requirements" / "prod.txt").write_text("")
        (tmp_path / "requirements" / "dev.txt").write_text("")
        (tmp_path / "requirements" / "notes.md").write_text("")

        assert discover_requirements_files(tmp_path) == [
            tmp_path / "requirements.txt",
            tmp_path / "requirements" / "dev.txt",
            tmp_path / "requirements" / "prod.txt",
        ]


class TestParseRequirementsFiles:
    """Tests for parse_requirements_files."""

    def test_parses_pins_and_dedupes(self, tmp_path: Path) -> None:
        """Test pins, comments and deduplication by normalized name."""
        requirements = tmp_path / "requirements.txt"
        requirements.write_text(
            "# deps\n"
            "Requests==2.31.0  # http\n"
            "requests==2.31.0\n"
            "\n"
            "zope.interface==6.0\n"
        )

        result = parse_requirements_files(tmp_path, [requirements])

        assert [(r.raw_name, r.normalized_name, r.version) for r in result.requirements] == [
            ("Requests", "requests", "2.31.0"),
            ("zope.interface", "zope-interface", "6.0"),
        ]
        assert result.warnings == []
        assert result.requirements[0].source_file == str(requirements)

    def test_follows_includes_relative_to_file(self, tmp_path: Path) -> None:
        """Test -r and --requirement= includes."""
        nested = tmp_path / "requirements"
        nested.mkdir()
        (nested / "base.txt").write_text("click==8.1.7\n")
        (nested / "prod.txt").write_text("-r base.txt\n--requirement=extra.txt\n")
        (nested / "extra.txt").write_text("rich==13.7.0\n")

        result = parse_requirements_files(tmp_path, [Path("requirements/prod.txt")])

        assert [r.normalized_name for r in result.requirements] == ["click", "rich"]
        assert result.requirements[0].source_file == str(nested / "base.txt")

    def test_cyclic_includes_terminate(self, tmp_path: Path) -> None:
        """Test that mutually including files are each read once."""
        (tmp_path / "a.txt").write_text("-r b.txt\nalpha==1.0\n")
        (tmp_path / "b.txt").write_text("-r a.txt\nbeta==2.0\n")

        result = parse_requirements_files(tmp_path, [tmp_path / "a.txt"])

        assert [r.normalized_name for r in result.requirements] == ["beta", "alpha"]
        assert result.warnings == []

    def test_missing_include_warns(self, tmp_path: Path) -> None:
        """Test that a missing include produces a warning."""
        requirements = tmp_path / "requirements.txt"
        requirements.write_text("-r missing.txt\nclick==8.1.7\n")

        result = parse_requirements_files(tmp_path, [requirements])

        assert [r.normalized_name for r in result.requirements] == ["click"]
        assert result.warnings == [f"Requirements include not found: {tmp_path / 'missing.txt'}"]

    def test_unsupported_lines(self, tmp_path: Path) -> None:
        """Test that non-pinned lines are reported and kept for verification."""
        requirements = tmp_path / "requirements.txt"
        requirements.write_text("flask>=2.0\n")

        result = parse_requirements_files(tmp_path, [requirements])

        assert result.requirements == []
        assert result.warnings == ["Unsupported requirement spec in requirements.txt: flask>=2.0"]
        assert len(result.unsupported_requirements) == 1
        unsupported = result.unsupported_requirements[0]
        assert unsupported.raw_line == "flask>=2.0"
        assert unsupported.package_name == "flask"
        assert unsupported.source_file == str(requirements)
