"""Tests for custom exceptions."""

import pytest

from license_auditor.exceptions import (
    AmbiguousEcosystemError,
    ConfigurationError,
    InterpreterNotFoundError,
    IntrospectionError,
    LicenseAuditorError,
    ManifestError,
    UnsupportedPackageManagerError,
)


class TestExceptionHierarchy:
    """Tests for exception hierarchy."""

    def test_base_is_exception(self) -> None:
        """Test that LicenseAuditorError inherits from Exception."""
        assert issubclass(LicenseAuditorError, Exception)

    @pytest.mark.parametrize(
        "error_type",
        [
            AmbiguousEcosystemError,
            ConfigurationError,
            InterpreterNotFoundError,
            IntrospectionError,
            ManifestError,
            UnsupportedPackageManagerError,
        ],
    )
    def test_subclasses_inherit_from_base(self, error_type: type[Exception]) -> None:
        """Test that every specific error is a LicenseAuditorError."""
        assert issubclass(error_type, LicenseAuditorError)

    def test_message_is_preserved(self) -> None:
        """Test that errors carry their message."""
        with pytest.raises(LicenseAuditorError, match="Plug'n'Play"):
            raise UnsupportedPackageManagerError("Yarn Plug'n'Play is currently not supported.")
