"""Channel-sync concurrency lock.

Non-blocking: if a sync is already running the caller gets False and
either skips the tick (scheduler) or returns 409 (manual trigger).
"""

from __future__ import annotations

import threading
from uuid import UUID

_sync_lock = threading.Lock()
_current_run_id: UUID | None = None


def acquire_sync_lock(run_id: UUID) -> bool:
    global _current_run_id
    if _sync_lock.acquire(blocking=False):
        _current_run_id = run_id
        return True
    return False


def release_sync_lock() -> None:
    """Release the lock; a no-op when it is not held."""
    global _current_run_id
    _current_run_id = None
    if _sync_lock.locked():
        _sync_lock.release()


def get_current_run_id() -> UUID | None:
    return _current_run_id


def is_sync_running() -> bool:
    return _current_run_id is not None
