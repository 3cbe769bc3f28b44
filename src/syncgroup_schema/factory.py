"""Sync group reference and client factory.

Identifiers come from two places, merged in this order:
1. A profile in syncgroup.toml (selected by name or ``<prefix>SYNC_PROFILE``)
2. Explicit values (command-line flags), which override the profile

Usage:
    from syncgroup_schema.factory import get_client, resolve_ref, resolve_token

    ref = resolve_ref(config, "prod", {"sync_group": "sg-orders"})
    async with get_client(resolve_token()) as client:
        group = await client.get_sync_group(ref)
"""

import os

from syncgroup_schema.clients.azure import AzureSyncGroupClient
from syncgroup_schema.clients.base import SyncGroupRef
from syncgroup_schema.config.models import SyncConfig, SyncGroupProfile
from syncgroup_schema.errors import ConfigurationError, ProfileNotFoundError

REQUIRED_IDENTIFIERS = (
    "subscription_id",
    "resource_group",
    "server",
    "database",
    "sync_group",
)


# ============================================================================
# Profile Resolution
# ============================================================================


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from the environment.

    Args:
        env_prefix: Prefix for environment variable lookup
            (``"APP_"`` reads ``APP_SYNC_PROFILE``).

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If the variable is unset or empty
    """
    env_var = f"{env_prefix}SYNC_PROFILE"
    profile = os.environ.get(env_var)
    if profile:
        return profile

    raise ProfileNotFoundError(
        f"No sync group profile configured.\n"
        f"Pass --profile <name> or set {env_var}."
    )


def get_profile(config: SyncConfig, profile_name: str) -> SyncGroupProfile:
    """Look up a profile by name.

    Raises:
        ProfileNotFoundError: If the profile is not in the config
    """
    if profile_name not in config.profiles:
        available = ", ".join(config.profiles.keys()) or "(none)"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in syncgroup.toml. "
            f"Available: {available}"
        )
    return config.profiles[profile_name]


def resolve_ref(
    config: SyncConfig | None,
    profile_name: str | None,
    overrides: dict[str, str | None],
) -> SyncGroupRef:
    """Merge profile identifiers with explicit overrides.

    ``None`` overrides leave the profile value in place.

    Args:
        config: Loaded configuration, or ``None`` when no file is used.
        profile_name: Profile to start from, or ``None``.
        overrides: Identifier values keyed by ``SyncGroupRef`` field name.

    Returns:
        Complete ``SyncGroupRef``.

    Raises:
        ProfileNotFoundError: If *profile_name* is given but unknown.
        ConfigurationError: If any identifier is still missing.

    Example:
        >>> ref = resolve_ref(None, None, {
        ...     "subscription_id": "sub", "resource_group": "rg",
        ...     "server": "srv", "database": "hub", "sync_group": "sg",
        ... })
        >>> str(ref)
        'srv/hub/sg'
    """
    values: dict[str, str | None] = {}

    if profile_name is not None:
        if config is None:
            raise ProfileNotFoundError(
                f"Profile '{profile_name}' requested but no syncgroup.toml was loaded"
            )
        profile = get_profile(config, profile_name)
        values.update(profile.model_dump(include=set(REQUIRED_IDENTIFIERS)))

    for key, value in overrides.items():
        if value is not None:
            values[key] = value

    missing = [key for key in REQUIRED_IDENTIFIERS if not values.get(key)]
    if missing:
        flags = ", ".join(f"--{key.replace('_', '-')}" for key in missing)
        raise ConfigurationError(f"Missing sync group identifiers: {flags}")

    return SyncGroupRef(**{key: values[key] for key in REQUIRED_IDENTIFIERS})


# ============================================================================
# Client Factory
# ============================================================================


def resolve_token(token: str | None = None, env_prefix: str = "") -> str:
    """Return *token* or the ``<prefix>AZURE_ACCESS_TOKEN`` variable.

    Raises:
        ConfigurationError: If neither is set
    """
    if token:
        return token

    env_var = f"{env_prefix}AZURE_ACCESS_TOKEN"
    token = os.environ.get(env_var)
    if token:
        return token

    raise ConfigurationError(
        f"No access token. Pass --token or set {env_var}."
    )


def get_client(token: str, **client_kwargs) -> AzureSyncGroupClient:
    """Create the Resource Manager sync group client.

    Args:
        token: Bearer token.
        **client_kwargs: Forwarded to ``AzureSyncGroupClient``.
    """
    return AzureSyncGroupClient(token, **client_kwargs)
