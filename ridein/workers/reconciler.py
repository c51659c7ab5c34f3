"""
Background Bid Reconciler
=========================

Runs every ``RECONCILE_INTERVAL_SECONDS`` (default 30 s).

Accepting a bid commits the trip's new owner first and rejects the losing
bids afterwards.  If that second step fails, the bids stay ``pending``
against a trip that is already decided.  This worker repairs that state:

1. Find trips that have a driver assigned, or are cancelled, and still
   have pending bids.
2. Assigned trips: mark the driver's bid accepted, reject the rest.
3. Cancelled trips without a driver: reject every pending bid.

Concurrency safety
------------------
* **Redis distributed lock** ensures only one instance runs a sweep at a
  time across multiple API processes.
* Every write is a conditional UPDATE on ``status = 'pending'``, so a sweep
  racing an in-flight accept converges to the same result.
"""

from __future__ import annotations

import asyncio
import logging

from ridein.config import settings
from ridein.domain.enums import TripStatus
from ridein.infrastructure.database import async_session_factory
from ridein.infrastructure.events import EventChannel
from ridein.infrastructure.locks import DistributedLock
from ridein.infrastructure.redis_client import get_redis
from ridein.infrastructure.repositories import BidRepository
from ridein.services.bids import BidArbitration

logger = logging.getLogger(__name__)

_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None


# ── Public API ────────────────────────────────────────────────────────


async def start_reconcile_loop() -> None:
    global _task, _stop_event
    _stop_event = asyncio.Event()
    _task = asyncio.create_task(_loop())
    logger.info(
        "Bid reconciler started (interval=%ds)", settings.reconcile_interval_seconds
    )


async def stop_reconcile_loop() -> None:
    if _stop_event:
        _stop_event.set()
    if _task:
        _task.cancel()
        try:
            await _task
        except asyncio.CancelledError:
            pass
    logger.info("Bid reconciler stopped")


# ── Internals ─────────────────────────────────────────────────────────


async def _loop() -> None:
    """Periodic loop: run a sweep then sleep."""
    assert _stop_event is not None
    while not _stop_event.is_set():
        try:
            await run_reconcile_cycle()
        except Exception:
            logger.exception("Unhandled error in reconcile cycle")
        try:
            await asyncio.wait_for(
                _stop_event.wait(), timeout=settings.reconcile_interval_seconds
            )
            break
        except asyncio.TimeoutError:
            pass  # next cycle


async def reconcile(session, events: EventChannel) -> int:
    """Settle every decided trip that still has pending bids.

    Returns the number of bids rejected.
    """
    unsettled = await BidRepository(session).get_unsettled_trips()
    # A failed settle rolls back and expires these rows; keep plain values.
    work = [
        (
            trip.id,
            trip.driver_id
            if TripStatus(trip.status) != TripStatus.CANCELLED
            else None,
        )
        for trip in unsettled
    ]
    arbitration = BidArbitration(session, events)
    rejected = 0
    for trip_id, winner in work:
        rejected += await arbitration.settle(trip_id, winner)
    return rejected


async def run_reconcile_cycle() -> int:
    """Execute one sweep under the distributed lock."""
    redis = await get_redis()
    lock = DistributedLock(redis, "bid_reconciler", ttl_seconds=60)

    if not await lock.acquire():
        logger.debug("Lock held by another worker – skipping cycle")
        return 0

    rejected = 0
    try:
        async with async_session_factory() as session:
            rejected = await reconcile(session, EventChannel(redis))
        if rejected:
            logger.info("Reconcile cycle: %d stale bids rejected", rejected)
    finally:
        await lock.release()
    return rejected
