"""
Trip lifecycle rules.

Pure functions over :class:`TripStatus`; no I/O.  The services call these
before touching the store so that an illegal request never produces a
partial write.
"""

from __future__ import annotations

from .enums import (
    OPEN_STATUSES,
    PROTOCOL_STATUSES,
    STATUS_ALIASES,
    TRIP_TRANSITIONS,
    TripStatus,
)
from .errors import InputError, InvalidState, InvalidTransition

CANCELLABLE_STATUSES = frozenset(
    s for s, allowed in TRIP_TRANSITIONS.items() if TripStatus.CANCELLED in allowed
)


def parse_status(value: str) -> TripStatus:
    """Map a wire value (including legacy aliases) onto :class:`TripStatus`."""
    key = value.strip().upper()
    if key in STATUS_ALIASES:
        return STATUS_ALIASES[key]
    try:
        return TripStatus(key)
    except ValueError:
        raise InputError(f"Unknown trip status: {value}") from None


def can_transition(current: TripStatus, target: TripStatus) -> bool:
    return target in TRIP_TRANSITIONS.get(current, set())


def validate_transition(current: TripStatus, target: TripStatus) -> None:
    """Raise :class:`InvalidTransition` unless *current* -> *target* is legal."""
    if not can_transition(current, target):
        raise InvalidTransition(current.value, target.value)


def validate_manual_transition(current: TripStatus, target: TripStatus) -> None:
    """Like :func:`validate_transition`, but BIDDING/ACCEPTED are off limits.

    Those two states are entered only by the bid protocol.
    """
    if target in PROTOCOL_STATUSES:
        raise InvalidTransition(current.value, target.value)
    validate_transition(current, target)


def ensure_cancellable(current: TripStatus) -> None:
    if current not in CANCELLABLE_STATUSES:
        raise InvalidState(f"Cannot cancel trip in status {current.value}")


def ensure_open(current: TripStatus) -> None:
    if current not in OPEN_STATUSES:
        raise InvalidState(f"Trip is not open for bids (status {current.value})")
