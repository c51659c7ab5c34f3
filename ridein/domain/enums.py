"""Domain enumerations and state-transition rules."""

import enum


class TripStatus(str, enum.Enum):
    PENDING = "PENDING"
    BIDDING = "BIDDING"
    ACCEPTED = "ACCEPTED"
    ARRIVED = "ARRIVED"
    STARTED = "STARTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# Older clients still send these names
STATUS_ALIASES: dict[str, TripStatus] = {
    "ARRIVING": TripStatus.ARRIVED,
    "IN_PROGRESS": TripStatus.STARTED,
}


# State machine: maps current status -> set of valid next statuses
TRIP_TRANSITIONS: dict[TripStatus, set[TripStatus]] = {
    TripStatus.PENDING: {
        TripStatus.BIDDING,
        TripStatus.ACCEPTED,
        TripStatus.CANCELLED,
    },
    TripStatus.BIDDING: {TripStatus.ACCEPTED, TripStatus.CANCELLED},
    TripStatus.ACCEPTED: {
        TripStatus.ARRIVED,
        TripStatus.STARTED,
        TripStatus.CANCELLED,
    },
    TripStatus.ARRIVED: {TripStatus.STARTED, TripStatus.CANCELLED},
    TripStatus.STARTED: {TripStatus.COMPLETED},
    TripStatus.COMPLETED: set(),
    TripStatus.CANCELLED: set(),
}

# Only reachable through the bid protocol, never through a status update
PROTOCOL_STATUSES = frozenset({TripStatus.BIDDING, TripStatus.ACCEPTED})

OPEN_STATUSES = frozenset({TripStatus.PENDING, TripStatus.BIDDING})

TERMINAL_STATUSES = frozenset({TripStatus.COMPLETED, TripStatus.CANCELLED})

ACTIVE_STATUSES = frozenset(set(TripStatus) - TERMINAL_STATUSES)


class BidStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class VehicleType(str, enum.Enum):
    PASSENGER = "PASSENGER"
    FREIGHT = "FREIGHT"


class UserRole(str, enum.Enum):
    RIDER = "rider"
    DRIVER = "driver"
    ADMIN = "admin"


class AccountStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    BANNED = "banned"


class DriverStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
