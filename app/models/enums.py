"""Enum types mirroring the CHECK constraints in ``supabase/schema.sql``."""

from enum import Enum, IntEnum


class AccountType(str, Enum):
    """Discriminator on the ``users`` table."""
    candidate = "candidate"
    partner = "partner"
    admin = "admin"


class InviteStatus(str, Enum):
    """Lifecycle of a partner's invitation to a candidate."""
    pending = "pending"
    accepted = "accepted"
    expired = "expired"


class PartnerStatus(str, Enum):
    active = "active"
    pending = "pending"
    suspended = "suspended"


class SessionsPerDay(IntEnum):
    """Daily practice-session allowance attached to a seat (-1 is unlimited)."""
    three = 3
    five = 5
    ten = 10
    unlimited = -1


class SeatReservationMode(str, Enum):
    """How seat counters are incremented."""
    atomic = "atomic"
    best_effort = "best_effort"
