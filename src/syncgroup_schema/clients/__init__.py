"""Sync group clients package.

Provides the ``SyncGroupClient`` Protocol, the ``SyncGroupRef``
identifiers model, and the Azure Resource Manager implementation.

Usage:
    from syncgroup_schema.clients import AzureSyncGroupClient, SyncGroupRef
"""

from syncgroup_schema.clients.azure import AzureSyncGroupClient
from syncgroup_schema.clients.base import (
    SYNC_INTERVAL_DISABLED,
    SyncGroupClient,
    SyncGroupRef,
)

__all__ = [
    "SyncGroupClient",
    "SyncGroupRef",
    "SYNC_INTERVAL_DISABLED",
    "AzureSyncGroupClient",
]
