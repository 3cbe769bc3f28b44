"""Pydantic models for sync group configuration."""

from pydantic import BaseModel, Field

from syncgroup_schema.schema.filters import FilterRules


# ============================================================================
# Configuration Models
# ============================================================================


class SyncGroupProfile(BaseModel):
    """Sync group identifiers from syncgroup.toml.

    Every identifier may be left out and supplied on the command line.
    """

    subscription_id: str | None = None
    resource_group: str | None = None
    server: str | None = None
    database: str | None = None
    sync_group: str | None = None
    description: str = ""


class PostDeploymentSettings(BaseModel):
    """Defaults for the ``post`` phase."""

    refresh_timeout: int = Field(default=3000, gt=0)  # seconds
    interval: int = Field(default=600, gt=0)  # seconds
    poll_interval: float = Field(default=10.0, gt=0)
    output: str | None = None  # schema document path


class PreDeploymentSettings(BaseModel):
    """Defaults for the ``pre`` phase."""

    poll_interval: float = Field(default=5.0, gt=0)
    max_wait: float | None = Field(default=None, gt=0)  # None waits forever


class SyncConfig(BaseModel):
    """Complete configuration from syncgroup.toml."""

    profiles: dict[str, SyncGroupProfile] = Field(default_factory=dict)
    filters: FilterRules = Field(default_factory=FilterRules)
    pre: PreDeploymentSettings = Field(default_factory=PreDeploymentSettings)
    post: PostDeploymentSettings = Field(default_factory=PostDeploymentSettings)
