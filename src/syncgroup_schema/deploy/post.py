"""Post-deployment phase: refresh, reconcile, persist, and push the schema.

Sequence:

1. Read the registered schema.
2. Ask the service to refresh the hub schema.
3. Poll until the hub schema's ``lastUpdateTime`` is newer than the start
   of this run, or ``refresh_timeout`` elapses (``SchemaRefreshTimeoutError``,
   nothing remote is touched).
4. Reconcile and write the schema document, even on a dry run.
5. Unless ``dry_run``: push the document and re-enable periodic sync.

Usage:
    from syncgroup_schema.deploy.post import run_post_deployment
    from syncgroup_schema.schema.filters import FilterRules

    result = await run_post_deployment(
        client, ref,
        rules=FilterRules(exclude_patterns=[r"\\[dbo\\]\\.\\[_.*\\]"]),
        dry_run=True,
    )
    print(result.reconciliation.format_report())
"""

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel

from syncgroup_schema.clients.base import SyncGroupClient, SyncGroupRef
from syncgroup_schema.deploy.locking import sync_group_lock
from syncgroup_schema.errors import SchemaRefreshTimeoutError
from syncgroup_schema.schema.document import to_schema_document, write_schema_document
from syncgroup_schema.schema.filters import FilterRules
from syncgroup_schema.schema.models import LiveSchema, ReconciliationResult, as_utc
from syncgroup_schema.schema.reconciler import reconcile_schema

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_TIMEOUT = 3000
DEFAULT_INTERVAL = 600
DEFAULT_POLL_INTERVAL = 10.0


class PostDeploymentResult(BaseModel):
    """Outcome of the post-deployment phase.

    Attributes:
        sync_group: Display name of the sync group.
        reconciliation: Corrected schema and change log.
        output_path: Where the schema document was written.
        dry_run: Whether remote changes were skipped.
        pushed: Whether the schema was pushed and sync re-enabled.
        interval: Interval restored on the sync group, when pushed.
    """

    sync_group: str
    reconciliation: ReconciliationResult
    output_path: str
    dry_run: bool = False
    pushed: bool = False
    interval: int | None = None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _is_refreshed(live: LiveSchema, started_at: datetime) -> bool:
    if live.last_update_time is None:
        return False
    return as_utc(live.last_update_time) > started_at


async def wait_for_schema_refresh(
    client: SyncGroupClient,
    ref: SyncGroupRef,
    started_at: datetime,
    refresh_timeout: float = DEFAULT_REFRESH_TIMEOUT,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> LiveSchema:
    """Poll the hub schema until it was updated after *started_at*.

    Args:
        client: Sync group client.
        ref: Sync group identifiers.
        started_at: Timezone-aware UTC start of the run.
        refresh_timeout: Seconds to wait before giving up.
        poll_interval: Seconds between polls.

    Returns:
        The refreshed ``LiveSchema``.

    Raises:
        SchemaRefreshTimeoutError: If no refresh is seen in time.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + refresh_timeout

    while True:
        live = await client.get_refreshed_schema(ref)
        if _is_refreshed(live, started_at):
            logger.info("Hub schema refreshed at %s", live.last_update_time)
            return live

        remaining = deadline - loop.time()
        if remaining <= 0:
            raise SchemaRefreshTimeoutError(refresh_timeout, live.last_update_time)

        logger.info(
            "Waiting for hub schema refresh (last update: %s)",
            live.last_update_time or "never",
        )
        await asyncio.sleep(min(poll_interval, remaining))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def run_post_deployment(
    client: SyncGroupClient,
    ref: SyncGroupRef,
    rules: FilterRules | None = None,
    refresh_timeout: float = DEFAULT_REFRESH_TIMEOUT,
    interval: int = DEFAULT_INTERVAL,
    dry_run: bool = False,
    output_path: str | Path | None = None,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
) -> PostDeploymentResult:
    """Refresh the hub schema and bring the sync group schema in line with it.

    Args:
        client: Sync group client.
        ref: Sync group identifiers.
        rules: Include/exclude rules.  ``None`` means no filtering.
        refresh_timeout: Seconds to wait for the hub schema refresh.
        interval: Periodic sync interval (seconds) restored after pushing.
        dry_run: If ``True``, write the document but change nothing remote.
        output_path: Schema document path (default: temp directory).
        poll_interval: Seconds between refresh polls.

    Returns:
        ``PostDeploymentResult`` describing what was done.

    Raises:
        SchemaRefreshTimeoutError: If the refresh is not observed in time.
            No document is written and nothing remote is changed.
        httpx.HTTPError: If any remote call fails.
    """
    async with sync_group_lock(ref):
        started_at = datetime.now(timezone.utc)

        group = await client.get_sync_group(ref)
        before = group.registered_schema
        logger.info(
            "Sync group %s tracks %d tables", ref, len(before.tables)
        )

        logger.info("Requesting hub schema refresh for %s", ref)
        await client.trigger_schema_refresh(ref)

        try:
            live = await wait_for_schema_refresh(
                client,
                ref,
                started_at,
                refresh_timeout=refresh_timeout,
                poll_interval=poll_interval,
            )
        except SchemaRefreshTimeoutError:
            logger.error(
                "Hub schema refresh for %s timed out after %gs", ref, refresh_timeout
            )
            raise

        reconciliation = reconcile_schema(before, live, rules)
        path = write_schema_document(reconciliation.registered, output_path)
        logger.info("Schema document written to %s", path)

        result = PostDeploymentResult(
            sync_group=str(ref),
            reconciliation=reconciliation,
            output_path=str(path),
            dry_run=dry_run,
        )

        if dry_run:
            logger.info("Dry run: schema not pushed, periodic sync left as is")
            return result

        await client.push_schema(ref, to_schema_document(reconciliation.registered))
        logger.info("Schema pushed to %s", ref)

        await client.set_sync_interval(ref, interval)
        logger.info("Periodic sync on %s re-enabled every %ds", ref, interval)

        result.pushed = True
        result.interval = interval
        return result
