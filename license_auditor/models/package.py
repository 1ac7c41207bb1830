"""Package and license models shared by the resolvers and extractors."""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

DependencyEcosystem = Literal["node", "python"]
DependencySource = Literal["node_modules", "python-environment", "uv-lock", "requirements"]
MetadataSource = Literal["local-metadata", "pypi-json-api", "license-file"]


class VerificationStatus(str, Enum):
    """Outcome of license-file scanning."""

    OK = "ok"
    LICENSE_FILE_NOT_FOUND = "licenseFileNotFound"
    LICENSE_FILE_EXISTS_BUT_UNKNOWN_LICENSE = "licenseFileExistsButUnknownLicense"
    LICENSE_FILES_EXIST_BUT_SOME_ARE_UNCERTAIN = "licenseFilesExistButSomeAreUncertain"

    @property
    def is_ambiguous(self) -> bool:
        """True if a license file was found but could not be matched with confidence."""
        return self in (
            VerificationStatus.LICENSE_FILE_EXISTS_BUT_UNKNOWN_LICENSE,
            VerificationStatus.LICENSE_FILES_EXIST_BUT_SOME_ARE_UNCERTAIN,
        )


class LicenseRecord(BaseModel):
    """A single license identifier together with where it was found."""

    model_config = {"extra": "forbid", "frozen": True}

    license_id: str = Field(description="SPDX identifier")
    source: str = Field(description="Provenance tag, see constants.LICENSE_SOURCE_*")
    deprecated: bool = Field(
        default=False,
        description="True if the id was given through a deprecated SPDX alias",
    )

    @property
    def dedup_key(self) -> tuple[str, str]:
        """Key used to deduplicate records; provenance is part of identity."""
        return (self.license_id, self.source)


class ExtractedLicenses(BaseModel):
    """Licenses extracted for one package plus the evidence behind them."""

    model_config = {"extra": "forbid"}

    licenses: list[LicenseRecord] = Field(default_factory=list)
    license_paths: list[str] = Field(
        default_factory=list,
        description="Files or directories the licenses were read from",
    )
    license_expression: Optional[str] = Field(
        default=None, description="Original SPDX expression, if one was parsed"
    )
    verification_status: Optional[VerificationStatus] = Field(
        default=None, description="License-file scanning outcome"
    )
    manual_verification_message: Optional[str] = Field(
        default=None,
        description="Set when the package must be checked by a human",
    )


class ParsedRequirement(BaseModel):
    """A pinned ``name==version`` requirement."""

    model_config = {"extra": "forbid"}

    raw_name: str = Field(description="Name as written in the source")
    normalized_name: str = Field(description="PEP 503 normalized name")
    version: str = Field(description="Pinned version")
    source_file: str = Field(description="File the requirement was read from")

    @property
    def key(self) -> str:
        """Dedup key: normalized name plus version."""
        return f"{self.normalized_name}@{self.version}"


class UnsupportedRequirement(BaseModel):
    """A requirements line that is not an exact pin."""

    model_config = {"extra": "forbid"}

    raw_line: str
    source_file: str
    package_name: Optional[str] = Field(
        default=None, description="Best-effort guess at the package name"
    )


class PackageCandidate(BaseModel):
    """A discovered dependency, before and after license extraction."""

    model_config = {"extra": "forbid"}

    name: str = Field(description="Package name without version")
    version: Optional[str] = Field(default=None, description="Resolved version")
    resolved_path: str = Field(
        description="Install directory, or the file the pin was read from"
    )
    ecosystem: DependencyEcosystem
    dependency_source: DependencySource
    metadata_source: Optional[MetadataSource] = None
    extracted: Optional[ExtractedLicenses] = None

    @property
    def package_name(self) -> str:
        """Display name in ``name@version`` form."""
        if self.version:
            return f"{self.name}@{self.version}"
        return self.name

    @property
    def identity(self) -> str:
        """Identity key, unique per audit run."""
        return f"{self.ecosystem}:{self.package_name}"
