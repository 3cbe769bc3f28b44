"""Pre-deployment phase: stop periodic sync and wait for quiescence.

Usage:
    from syncgroup_schema.deploy.pre import run_pre_deployment

    result = await run_pre_deployment(client, ref, max_wait=1800)
    print(result.final_state)
"""

import asyncio
import logging

from pydantic import BaseModel

from syncgroup_schema.clients.base import (
    SYNC_INTERVAL_DISABLED,
    SyncGroupClient,
    SyncGroupRef,
)
from syncgroup_schema.deploy.locking import sync_group_lock
from syncgroup_schema.errors import SyncWaitTimeoutError
from syncgroup_schema.schema.models import SyncState

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0


class PreDeploymentResult(BaseModel):
    """Outcome of the pre-deployment phase.

    Attributes:
        sync_group: Display name of the sync group.
        final_state: Sync state observed on the last poll.
        polls: Number of status polls made.
        waited_seconds: Time spent waiting for an in-flight sync.
    """

    sync_group: str
    final_state: SyncState | str | None = None
    polls: int = 0
    waited_seconds: float = 0.0


async def wait_for_sync_idle(
    client: SyncGroupClient,
    ref: SyncGroupRef,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    max_wait: float | None = None,
) -> PreDeploymentResult:
    """Poll the sync group until its state is no longer ``Progressing``.

    Args:
        client: Sync group client.
        ref: Sync group identifiers.
        poll_interval: Seconds between polls.
        max_wait: Give up after this many seconds.  ``None`` waits
            indefinitely.

    Returns:
        ``PreDeploymentResult`` with the last observed state.

    Raises:
        SyncWaitTimeoutError: If *max_wait* elapses while still syncing.
    """
    loop = asyncio.get_running_loop()
    started = loop.time()
    polls = 0

    while True:
        group = await client.get_sync_group(ref)
        polls += 1
        waited = loop.time() - started

        if not group.is_syncing:
            logger.info("Sync group %s is %s", ref, group.sync_state)
            return PreDeploymentResult(
                sync_group=str(ref),
                final_state=group.sync_state,
                polls=polls,
                waited_seconds=waited,
            )

        if max_wait is not None and waited >= max_wait:
            raise SyncWaitTimeoutError(max_wait, group.sync_state)

        logger.info("Sync in progress on %s, waiting %gs", ref, poll_interval)
        delay = poll_interval
        if max_wait is not None:
            delay = min(delay, max_wait - waited)
        await asyncio.sleep(delay)


async def run_pre_deployment(
    client: SyncGroupClient,
    ref: SyncGroupRef,
    poll_interval: float = DEFAULT_POLL_INTERVAL,
    max_wait: float | None = None,
) -> PreDeploymentResult:
    """Disable periodic sync, then wait for any in-flight sync to finish.

    The interval stays disabled when this returns; the post-deployment
    phase restores it.
    """
    async with sync_group_lock(ref):
        logger.info("Disabling periodic sync on %s", ref)
        await client.set_sync_interval(ref, SYNC_INTERVAL_DISABLED)
        return await wait_for_sync_idle(
            client, ref, poll_interval=poll_interval, max_wait=max_wait
        )
