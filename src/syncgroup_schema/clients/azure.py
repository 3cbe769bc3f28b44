"""Azure SQL Data Sync client over the Resource Manager REST API.

Provides ``AzureSyncGroupClient``, an async implementation of the
``SyncGroupClient`` protocol using ``httpx.AsyncClient``.  Obtaining the
bearer token is left to the caller.

Usage:
    from syncgroup_schema.clients.azure import AzureSyncGroupClient

    async with AzureSyncGroupClient(token) as client:
        group = await client.get_sync_group(ref)
"""

import logging
from typing import Any

import httpx

from syncgroup_schema.clients.base import SyncGroupRef
from syncgroup_schema.schema.models import (
    LiveSchema,
    SyncGroupInfo,
    TableDescriptor,
    as_utc,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://management.azure.com"
DEFAULT_API_VERSION = "2021-11-01"


class AzureSyncGroupClient:
    """Async Resource Manager implementation of the ``SyncGroupClient`` protocol.

    Non-2xx responses raise ``httpx.HTTPStatusError``.

    Args:
        token: Bearer token for ``https://management.azure.com``.
        base_url: Resource Manager endpoint (override for sovereign clouds).
        api_version: ``api-version`` query parameter.
        timeout: Per-request timeout in seconds.
        transport: Optional ``httpx`` transport (tests use ``MockTransport``).

    Example:
        client = AzureSyncGroupClient(token)
        live = await client.get_refreshed_schema(ref)
        await client.close()
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._params = {"api-version": api_version}
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "AzureSyncGroupClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Protocol Methods
    # ------------------------------------------------------------------

    async def get_sync_group(self, ref: SyncGroupRef) -> SyncGroupInfo:
        """Fetch sync group properties."""
        response = await self._http.get(ref.resource_path, params=self._params)
        response.raise_for_status()
        body = response.json()
        properties = body.get("properties", {})
        return SyncGroupInfo.model_validate(
            {"name": body.get("name", ref.sync_group), **properties}
        )

    async def set_sync_interval(self, ref: SyncGroupRef, interval_seconds: int) -> None:
        """PATCH the sync group interval."""
        logger.debug("Setting sync interval of %s to %s", ref, interval_seconds)
        await self._patch_properties(ref, {"interval": interval_seconds})

    async def trigger_schema_refresh(self, ref: SyncGroupRef) -> None:
        """POST ``refreshHubSchema``.  The service completes it asynchronously."""
        response = await self._http.post(
            f"{ref.resource_path}/refreshHubSchema", params=self._params
        )
        response.raise_for_status()

    async def get_refreshed_schema(self, ref: SyncGroupRef) -> LiveSchema:
        """GET ``hubSchemas``, following ``nextLink`` pages.

        The service returns a list of full-schema entries; their tables are
        concatenated and the latest ``lastUpdateTime`` wins.
        """
        tables: list[TableDescriptor] = []
        last_update = None

        # nextLink already carries api-version and the continuation token
        response = await self._http.get(
            f"{ref.resource_path}/hubSchemas", params=self._params
        )
        while True:
            response.raise_for_status()
            body = response.json()
            for entry in body.get("value", []):
                page = LiveSchema.model_validate(entry)
                tables.extend(page.tables)
                if page.last_update_time is None:
                    continue
                updated = as_utc(page.last_update_time)
                if last_update is None or updated > last_update:
                    last_update = updated

            next_link = body.get("nextLink")
            if not next_link:
                break
            response = await self._http.get(next_link)

        return LiveSchema(tables=tables, last_update_time=last_update)

    async def push_schema(self, ref: SyncGroupRef, document: dict[str, Any]) -> None:
        """PATCH the sync group schema."""
        logger.debug(
            "Pushing schema with %d tables to %s", len(document.get("tables", [])), ref
        )
        await self._patch_properties(ref, {"schema": document})

    async def close(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _patch_properties(self, ref: SyncGroupRef, properties: dict[str, Any]) -> None:
        response = await self._http.patch(
            ref.resource_path, params=self._params, json={"properties": properties}
        )
        response.raise_for_status()
