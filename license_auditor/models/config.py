"""Configuration Pydantic models for license-auditor."""
from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

Severity = Literal["warn", "off"]
Ecosystem = Literal["auto", "node", "python", "both"]


class AuditConfig(BaseModel):
    """License policy for an audit run.

    Whitelist and blacklist are required. Overrides remove packages from
    the audit entirely; the severity only affects how the CLI reports them.
    """

    model_config = {"extra": "forbid"}

    whitelist: List[str] = Field(
        description="SPDX license identifiers that are allowed.",
    )
    blacklist: List[str] = Field(
        description="SPDX license identifiers that are forbidden.",
    )
    overrides: Optional[Dict[str, Severity]] = Field(
        default=None,
        description="Packages excluded from the audit, by package name.",
    )
    ecosystem: Optional[Ecosystem] = Field(
        default=None,
        description="Ecosystem to audit (auto, node, python or both).",
    )
