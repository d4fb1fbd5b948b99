"""
Booking Command Handlers

Use cases that span several components of the booking core.
"""

from dataclasses import dataclass
from uuid import UUID
import logging

from apps.users.identity import GuestIdentityResolver

from ..domain.entities import BookingRequest
from ..services import BookingLedger
from .checkout import CheckoutSessionInitiator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutResult:
    booking_id: UUID
    checkout_url: str
    token: str


class CreateBookingHandler:
    """
    Create a pending booking and open its checkout session.

    Steps: validate and check availability, resolve the guest to a user,
    insert the pending booking, open the payment session. Nothing is
    written when validation or the availability check fails.
    """

    def __init__(
        self,
        ledger: BookingLedger,
        identity: GuestIdentityResolver,
        initiator: CheckoutSessionInitiator,
    ):
        self.ledger = ledger
        self.identity = identity
        self.initiator = initiator

    def handle(self, request: BookingRequest) -> CheckoutResult:
        asset, _, _ = self.ledger.preflight(request)
        user_id = self.identity.resolve(request.guest_name, request.guest_phone, request.guest_email)
        booking = self.ledger.create(request, user_id)
        redirect = self.initiator.initiate(booking, asset)
        logger.info(f"Checkout {redirect.token} opened for booking {booking.id}")
        return CheckoutResult(booking_id=booking.id, checkout_url=redirect.redirect_url, token=redirect.token)
