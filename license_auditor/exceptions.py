"""Custom exceptions for license-auditor."""


class LicenseAuditorError(Exception):
    """Base exception for all license-auditor errors."""

    pass


class ConfigurationError(LicenseAuditorError):
    """Exception raised when configuration is invalid."""

    pass


class UnsupportedPackageManagerError(LicenseAuditorError):
    """Exception raised when the project uses an unsupported package manager mode."""

    pass


class AmbiguousEcosystemError(LicenseAuditorError):
    """Exception raised when ecosystem auto-detection finds both Node and Python."""

    pass


class InterpreterNotFoundError(LicenseAuditorError):
    """Exception raised when no usable Python interpreter can be found."""

    pass


class IntrospectionError(LicenseAuditorError):
    """Exception raised when the Python environment cannot be inspected."""

    pass


class ManifestError(LicenseAuditorError):
    """Exception raised when a package manifest cannot be read or parsed."""

    pass
