"""
Clock helpers.

All persisted timestamps are integer Unix seconds. Components accept an
injectable clock so TTL expiry can be driven deterministically.
"""

import time
from typing import Callable

Clock = Callable[[], float]


def system_clock() -> float:
    """Wall-clock time in seconds since the epoch."""
    return time.time()


def unix_now(clock: Clock = system_clock) -> int:
    """
    Current time as integer Unix seconds.

    Args:
        clock: Time source returning float seconds

    Returns:
        Whole seconds since the epoch
    """
    return int(clock())


def is_expired(expires_at: float, clock: Clock = system_clock) -> bool:
    """Check whether an absolute expiry time has passed."""
    return clock() >= expires_at
