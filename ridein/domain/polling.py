"""
Active-trip polling backoff.

Clients poll ``GET /trips/active``; the channel events are only hints.  The
interval starts at ``min_seconds`` and doubles for every full minute the
trip has gone unchanged, capped at ``max_seconds``.
"""

from __future__ import annotations

from datetime import datetime, timezone


def poll_interval(
    last_change: datetime | None,
    now: datetime | None = None,
    min_seconds: int = 5,
    max_seconds: int = 60,
) -> int:
    if last_change is None:
        return max_seconds
    now = now or datetime.now(timezone.utc)
    if last_change.tzinfo is None:
        last_change = last_change.replace(tzinfo=timezone.utc)
    idle_minutes = max(0, int((now - last_change).total_seconds() // 60))
    # cap the exponent before shifting
    return min(max_seconds, min_seconds << min(idle_minutes, 16))
