"""Load sync group configuration from TOML."""

import tomllib
from pathlib import Path

from syncgroup_schema.config.models import (
    PostDeploymentSettings,
    PreDeploymentSettings,
    SyncConfig,
    SyncGroupProfile,
)
from syncgroup_schema.schema.filters import FilterRules

DEFAULT_CONFIG_NAME = "syncgroup.toml"


def load_sync_config(config_path: Path | None = None) -> SyncConfig:
    """Load sync group configuration from TOML file.

    Args:
        config_path: Path to syncgroup.toml (default: ``Path.cwd() / "syncgroup.toml"``)

    Returns:
        SyncConfig with all profiles, filters, and phase defaults

    Raises:
        FileNotFoundError: If config file doesn't exist
        pydantic.ValidationError: If config values are invalid (e.g. a bad regex)
    """
    if config_path is None:
        config_path = Path.cwd() / DEFAULT_CONFIG_NAME

    if not config_path.exists():
        raise FileNotFoundError(
            f"Sync group config not found: {config_path}\n"
            f"Create {DEFAULT_CONFIG_NAME} or pass identifiers on the command line."
        )

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    # Parse profiles
    profiles = {}
    for name, profile_data in data.get("profiles", {}).items():
        profiles[name] = SyncGroupProfile(**profile_data)

    # Parse filter rules
    filter_settings = data.get("filters", {})
    filters = FilterRules(
        exclude_patterns=filter_settings.get("exclude", []),
        include_names=set(filter_settings.get("include", [])),
    )

    return SyncConfig(
        profiles=profiles,
        filters=filters,
        pre=PreDeploymentSettings(**data.get("pre", {})),
        post=PostDeploymentSettings(**data.get("post", {})),
    )
