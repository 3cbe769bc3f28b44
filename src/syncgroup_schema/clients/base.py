"""Sync group client protocol definition.

Defines the ``SyncGroupClient`` Protocol the deployment phases talk to,
and ``SyncGroupRef``, the identifiers of one sync group.  All methods are
``async def``.

Usage:
    from syncgroup_schema.clients.base import (
        SYNC_INTERVAL_DISABLED,
        SyncGroupClient,
        SyncGroupRef,
    )

    async def do_work(client: SyncGroupClient, ref: SyncGroupRef) -> None:
        group = await client.get_sync_group(ref)
        await client.set_sync_interval(ref, SYNC_INTERVAL_DISABLED)
        await client.trigger_schema_refresh(ref)
        live = await client.get_refreshed_schema(ref)
        await client.close()
"""

from typing import Any, Protocol

from pydantic import BaseModel

from syncgroup_schema.schema.models import LiveSchema, SyncGroupInfo

# Interval value that turns periodic sync off
SYNC_INTERVAL_DISABLED = -1


class SyncGroupRef(BaseModel):
    """Identifiers of a sync group on its hub database."""

    subscription_id: str
    resource_group: str
    server: str
    database: str
    sync_group: str

    @property
    def resource_path(self) -> str:
        """Azure Resource Manager path of the sync group."""
        return (
            f"/subscriptions/{self.subscription_id}"
            f"/resourceGroups/{self.resource_group}"
            f"/providers/Microsoft.Sql/servers/{self.server}"
            f"/databases/{self.database}"
            f"/syncGroups/{self.sync_group}"
        )

    @property
    def key(self) -> str:
        """Case-insensitive identity, matching how Azure resolves resource ids."""
        return self.resource_path.lower()

    def __str__(self) -> str:
        return f"{self.server}/{self.database}/{self.sync_group}"


class SyncGroupClient(Protocol):
    """Remote sync group operations the deployment phases rely on.

    Implementations must let transport errors propagate; callers do not
    retry.
    """

    async def get_sync_group(self, ref: SyncGroupRef) -> SyncGroupInfo:
        """Fetch the sync group, including its registered schema and state."""
        ...

    async def set_sync_interval(self, ref: SyncGroupRef, interval_seconds: int) -> None:
        """Set the periodic sync interval.

        Args:
            ref: Sync group identifiers.
            interval_seconds: Interval in seconds, or ``SYNC_INTERVAL_DISABLED``.
        """
        ...

    async def trigger_schema_refresh(self, ref: SyncGroupRef) -> None:
        """Ask the service to re-read the hub schema.  Returns immediately."""
        ...

    async def get_refreshed_schema(self, ref: SyncGroupRef) -> LiveSchema:
        """Fetch the hub schema found by the latest refresh."""
        ...

    async def push_schema(self, ref: SyncGroupRef, document: dict[str, Any]) -> None:
        """Replace the sync group's registered schema with *document*."""
        ...

    async def close(self) -> None:
        """Release the underlying connection pool."""
        ...
