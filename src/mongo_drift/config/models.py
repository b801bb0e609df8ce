"""Pydantic models for mongo-drift configuration."""

from pydantic import BaseModel, Field


# ============================================================================
# Configuration Models
# ============================================================================


class DriftProfile(BaseModel):
    """Connection profile for one side of an audit, from mongo-drift.toml."""

    uri: str
    database: str
    filter: str = "{}"  # Extended JSON document filter for counts
    description: str = ""
    password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution


class AuditDefaults(BaseModel):
    """Defaults for ``mongo-drift audit`` from the ``[audit]`` table."""

    timeout: float = Field(default=60.0, gt=0)
    hide_matching: bool = False
    compare_counts: bool = True


class DriftConfig(BaseModel):
    """Complete configuration from mongo-drift.toml."""

    profiles: dict[str, DriftProfile] = Field(default_factory=dict)
    audit: AuditDefaults = Field(default_factory=AuditDefaults)
