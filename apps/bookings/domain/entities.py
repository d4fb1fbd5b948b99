"""
Booking Domain Entities

Typed records the booking core works with:
- BookingStatus: lifecycle states of a booking
- CancellationSource: why a booking was cancelled
- BookingRequest: validated input for creating a booking
- BookingRecord: a booking as read from the store
- TransitionResult: outcome of finalize/cancel
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from apps.catalog.domain import AssetRef
from shared.domain.value_objects import DateRange, Money


class BookingStatus(Enum):
    """
    Booking Status

    State transitions:
    - PENDING -> CONFIRMED (payment succeeded, dates still free)
    - PENDING -> CANCELLED (payment failed, checkout expired, stale hold, operator)
    - CANCELLED -> CONFIRMED (late payment success after a system cancellation)
    - CONFIRMED -> COMPLETED (after the stay; outside the core)
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'


class CancellationSource(Enum):
    PAYMENT_FAILED = 'payment_failed'
    CHECKOUT_EXPIRED = 'checkout_expired'
    EXPIRED_HOLD = 'expired_hold'
    CONFLICT = 'conflict'
    OPERATOR = 'operator'


# A paid booking cancelled by one of these can still be confirmed.
REINSTATABLE_SOURCES = frozenset({
    CancellationSource.PAYMENT_FAILED,
    CancellationSource.CHECKOUT_EXPIRED,
    CancellationSource.EXPIRED_HOLD,
})


@dataclass
class BookingRequest:
    """Guest input for a new booking. ``total_amount`` is optional and checked against the quote."""
    asset: AssetRef
    start_date: date
    end_date: date
    guest_name: str
    guest_phone: str | None = None
    guest_email: str | None = None
    total_amount: Decimal | str | float | None = None


@dataclass(frozen=True)
class BookingRecord:
    id: UUID
    user_id: int
    asset: AssetRef
    dates: DateRange
    total: Money
    status: BookingStatus
    guest_name: str
    guest_email: str | None
    guest_phone: str | None
    external_checkout_token: str | None
    cancellation_source: CancellationSource | None
    created_at: datetime

    @property
    def is_confirmable(self) -> bool:
        if self.status is BookingStatus.PENDING:
            return True
        return (
            self.status is BookingStatus.CANCELLED
            and self.cancellation_source in REINSTATABLE_SOURCES
        )


@dataclass(frozen=True)
class TransitionResult:
    """``changed`` is False when the booking was already in the target state."""
    booking: BookingRecord
    changed: bool
