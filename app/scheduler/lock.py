"""Single-concurrency guard for the scenario image job.

The lock is process-local; separate instances do not coordinate.
"""

from __future__ import annotations

import threading

_job_lock = threading.Lock()


def acquire_job_lock() -> bool:
    """Non-blocking acquire; False while another run holds the lock."""
    return _job_lock.acquire(blocking=False)


def release_job_lock() -> None:
    _job_lock.release()


def is_job_running() -> bool:
    return _job_lock.locked()
