"""Freshness window check for command expiries."""

from __future__ import annotations

import time

from sms_gateway.core.errors import ExpiredError


def wall_clock() -> int:
    """Return the current wall-clock time in whole seconds since the epoch."""
    return int(time.time())


def check_freshness(expires_at: int, now: int) -> None:
    """Accept a command whose expiry is now or later.

    Raises:
        ExpiredError: If `expires_at` is before `now`
    """
    if expires_at < now:
        raise ExpiredError(expires_at, now)
