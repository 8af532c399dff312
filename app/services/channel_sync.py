"""Accepted-match channel sync.

Creates the private Discord channel for every accepted match that does not
have one yet.  Runs on the scheduler interval and on manual trigger; the
sync lock keeps the two from overlapping.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any
from uuid import uuid4

from app.db.supabase import get_supabase
from app.scheduler.lock import acquire_sync_lock, release_sync_lock
from app.services.discord_gateway import DiscordGateway
from app.services.match_store import MatchStore
from app.services.team_channels import TeamChannelProvisioner

logger = logging.getLogger(__name__)


def _default_provisioner() -> TeamChannelProvisioner:
    client = get_supabase()
    return TeamChannelProvisioner(DiscordGateway(), client, MatchStore(client))


async def sync_match_channels(
    provisioner: TeamChannelProvisioner | None = None,
    trigger: str = "scheduler",
) -> dict[str, Any] | None:
    """Run one sync.  Returns None when another sync holds the lock."""
    run_id = uuid4()
    if not acquire_sync_lock(run_id):
        logger.warning("channel_sync_skipped", extra={"run_id": str(run_id), "trigger": trigger})
        return None

    started = time.monotonic()
    try:
        provisioner = provisioner or _default_provisioner()
        created = await provisioner.provision_accepted_match_channels()
    finally:
        release_sync_lock()

    duration = round(time.monotonic() - started, 2)
    logger.info(
        "channel_sync_completed",
        extra={
            "run_id": str(run_id),
            "trigger": trigger,
            "created_count": len(created),
            "duration_seconds": duration,
        },
    )
    return {
        "run_id": str(run_id),
        "created_channels": [c.model_dump() for c in created],
        "count": len(created),
        "duration_seconds": duration,
    }


def run_channel_sync_job() -> None:
    """Scheduler entry point; the scheduler thread has no event loop."""
    try:
        asyncio.run(sync_match_channels(trigger="scheduler"))
    except Exception:
        logger.exception("channel_sync_failed", extra={"trigger": "scheduler"})
