"""
Checkout Session Initiator

Opens a hosted payment session for one pending booking and ties the two
together: the session id becomes the booking's correlation token, and the
booking id travels in the session metadata.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from apps.catalog.domain import AssetSnapshot
from apps.finances.gateway import PaymentGateway
from apps.notifications.messaging import MessageDispatcher
from apps.notifications.models import OutboundMessage
from apps.notifications.services import booking_pending_message

from ..domain.entities import BookingRecord
from ..services import BookingLedger

logger = logging.getLogger(__name__)

SUCCESS_PATH = "/booking-success?session_id={CHECKOUT_SESSION_ID}"


@dataclass(frozen=True)
class CheckoutRedirect:
    redirect_url: str
    token: str


def checkout_metadata(booking: BookingRecord) -> dict[str, str]:
    return {
        "booking_id": str(booking.id),
        "asset_type": booking.asset.asset_type.value,
        "asset_id": str(booking.asset.asset_id),
        "user_id": str(booking.user_id),
        "guest_name": booking.guest_name,
        "phone_number": booking.guest_phone or "",
        "email": booking.guest_email or "",
    }


class CheckoutSessionInitiator:
    def __init__(
        self,
        gateway: PaymentGateway,
        ledger: BookingLedger,
        dispatcher: MessageDispatcher,
        *,
        app_url: str,
    ):
        self.gateway = gateway
        self.ledger = ledger
        self.dispatcher = dispatcher
        self.app_url = app_url.rstrip("/")

    def initiate(self, booking: BookingRecord, asset: AssetSnapshot) -> CheckoutRedirect:
        """
        Create the processor session, stamp its id on the booking and
        return where to send the guest.

        If the processor call fails the booking stays pending without a
        token and is later expired; a retry creates a new booking.
        """
        asset_type = booking.asset.asset_type
        product_name = asset.description or f"{asset_type.label} Rental"
        session = self.gateway.create_checkout_session(
            amount_minor=booking.total.minor_units(),
            currency=booking.total.currency,
            product_name=product_name,
            description=f"{asset_type.label} rental from {booking.dates.start_date} to {booking.dates.end_date}",
            success_url=f"{self.app_url}{SUCCESS_PATH}",
            cancel_url=f"{self.app_url}/{asset_type.value}/{booking.asset.asset_id}",
            metadata=checkout_metadata(booking),
            customer_email=booking.guest_email,
        )
        self.ledger.stamp_token(booking.id, session.id)

        if booking.guest_phone:
            self.dispatcher.send(
                booking.guest_phone,
                booking_pending_message(booking, product_name),
                OutboundMessage.MessageType.BOOKING_PENDING,
                user_id=booking.user_id,
                booking_id=booking.id,
            )
        return CheckoutRedirect(redirect_url=session.url, token=session.id)
