"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from syncgroup_schema.config import load_sync_config, SyncConfig, SyncGroupProfile
"""

from syncgroup_schema.config.loader import load_sync_config
from syncgroup_schema.config.models import (
    PostDeploymentSettings,
    PreDeploymentSettings,
    SyncConfig,
    SyncGroupProfile,
)

__all__ = [
    "load_sync_config",
    "SyncConfig",
    "SyncGroupProfile",
    "PreDeploymentSettings",
    "PostDeploymentSettings",
]
