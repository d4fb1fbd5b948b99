"""
Payment Reconciler

Consumes payment-processor callbacks and applies them to bookings exactly
once. Deliveries are at-least-once and may arrive out of order, so every
transition is idempotent and side effects only follow the transition that
actually changed the booking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.db import transaction

from apps.bookings.domain.entities import BookingRecord, CancellationSource
from apps.bookings.repositories import DjangoBookingRepository
from apps.bookings.services import BookingLedger
from apps.catalog.repositories import DjangoAssetCatalog
from apps.notifications.messaging import MessageDispatcher
from apps.notifications.models import OutboundMessage
from apps.notifications.services import (
    ManagerNotifier,
    booking_confirmed_message,
    payment_failed_message,
)
from apps.users.services import MagicLinkService
from shared.domain.errors import (
    AuthError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    StateError,
    ValidationError,
)
from shared.domain.value_objects import Money

from .gateway import GatewayEvent, PaymentGateway
from .models import PaymentEvent
from .repositories import DjangoPaymentRepository

logger = logging.getLogger(__name__)

SUCCEEDED_EVENTS = frozenset({
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
})

FAILED_EVENTS = {
    "payment_intent.payment_failed": CancellationSource.PAYMENT_FAILED,
    "checkout.session.async_payment_failed": CancellationSource.PAYMENT_FAILED,
    "checkout.session.expired": CancellationSource.CHECKOUT_EXPIRED,
}


@dataclass(frozen=True)
class CallbackResult:
    status_code: int
    body: dict = field(default_factory=dict)


class PaymentReconciler:
    def __init__(
        self,
        gateway: PaymentGateway,
        ledger: BookingLedger,
        bookings: DjangoBookingRepository,
        payments: DjangoPaymentRepository,
        notifier: ManagerNotifier,
        dispatcher: MessageDispatcher,
        magic_links: MagicLinkService,
        *,
        catalog: DjangoAssetCatalog,
        app_url: str,
    ):
        self.gateway = gateway
        self.ledger = ledger
        self.bookings = bookings
        self.payments = payments
        self.notifier = notifier
        self.dispatcher = dispatcher
        self.magic_links = magic_links
        self.catalog = catalog
        self.app_url = app_url.rstrip("/")

    def handle_callback(self, raw_payload: bytes, signature_header: str | None) -> CallbackResult:
        """
        Verify and apply one delivery.

        Returns 400 for unauthenticated or malformed deliveries (nothing is
        changed), 500 when processing failed and the sender should retry,
        200 otherwise, including for events about unknown bookings.
        """
        try:
            event = self.gateway.construct_event(raw_payload, signature_header)
        except AuthError as exc:
            return CallbackResult(400, {"error": exc.public_message})
        except ValidationError as exc:
            logger.warning(f"Rejected payment callback: {exc.public_message}")
            return CallbackResult(400, {"error": exc.public_message})
        except ExternalServiceError as exc:
            logger.error(f"Cannot verify payment callback: {exc.detail}")
            return CallbackResult(500, {"error": exc.public_message})

        try:
            self.payments.log_event(event)
            outcome = self.process(event)
        except Exception:  # the processor retries on 5xx
            logger.exception(f"Failed to process payment event {event.id} ({event.type})")
            self._set_outcome(event, PaymentEvent.Outcome.FAILED, "processing error")
            return CallbackResult(500, {"error": "Processing failed"})

        ignored = outcome in ("ignored", "booking_not_found")
        self._set_outcome(
            event,
            PaymentEvent.Outcome.IGNORED if ignored else PaymentEvent.Outcome.PROCESSED,
            outcome,
        )
        return CallbackResult(200, {"received": True, "outcome": outcome})

    def process(self, event: GatewayEvent) -> str:
        if event.type in SUCCEEDED_EVENTS:
            return self._handle_payment_succeeded(event)
        if event.type in FAILED_EVENTS:
            return self._handle_payment_failed(event, FAILED_EVENTS[event.type])
        logger.info(f"Ignoring payment event type {event.type}")
        return "ignored"

    # ------------------------------------------------------------------
    def _find_booking(self, event: GatewayEvent) -> BookingRecord | None:
        booking_id = event.metadata.get("booking_id")
        booking = self.bookings.get(booking_id) if booking_id else None
        if booking is None:
            booking = self.bookings.get_by_token(event.object_id)
        return booking

    def _handle_payment_succeeded(self, event: GatewayEvent) -> str:
        if event.type == "checkout.session.completed" and event.payment_status == "unpaid":
            # Delayed payment methods report completion first and payment later.
            logger.info(f"Checkout {event.object_id} completed; awaiting asynchronous payment")
            return "awaiting_payment"

        booking = self._find_booking(event)
        if booking is None:
            logger.error(
                f"No booking for payment event {event.id} "
                f"(booking_id={event.metadata.get('booking_id')!r}, session={event.object_id})"
            )
            return "booking_not_found"

        try:
            # The confirmation and its Payment commit together, so a redelivery
            # after a failed insert still sees a pending booking.
            with transaction.atomic():
                result = self.ledger.finalize(booking.id)
                self._record_payment(event, result.booking)
        except ConflictError as exc:
            logger.error(f"Paid booking {booking.id} conflicts with a confirmed booking: {exc.detail}")
            self._record_payment(event, booking)
            self.ledger.cancel(booking.id, CancellationSource.CONFLICT, "dates taken before payment completed")
            self.notifier.refund_required(booking, "the dates were taken by another confirmed booking")
            return "conflict"
        except StateError as exc:
            logger.error(f"Paid booking {booking.id} cannot be confirmed: {exc.detail}")
            self._record_payment(event, booking)
            self.notifier.refund_required(booking, f"the booking is {booking.status.value}")
            return "not_confirmable"

        if not result.changed:
            logger.info(f"Booking {booking.id} already confirmed; duplicate event {event.id}")
            return "already_confirmed"

        description = self._describe(result.booking)
        self.notifier.booking_confirmed(result.booking, description)
        self._send_confirmation(result.booking, description)
        return "confirmed"

    def _handle_payment_failed(self, event: GatewayEvent, source: CancellationSource) -> str:
        marked = self.payments.mark_failed(event.payment_reference)
        if marked:
            logger.info(f"Marked payment {event.payment_reference} failed")

        booking = self._find_booking(event)
        if booking is None:
            logger.warning(f"No booking for {event.type} event {event.id}")
            return "booking_not_found"

        try:
            result = self.ledger.cancel(booking.id, source, event.type)
        except StateError:
            logger.info(f"Ignoring {event.type} for booking {booking.id} in state {booking.status.value}")
            return "ignored"
        except NotFoundError:
            return "booking_not_found"

        if not result.changed:
            return "already_cancelled"
        if source is CancellationSource.PAYMENT_FAILED and booking.guest_phone:
            self.dispatcher.send(
                booking.guest_phone,
                payment_failed_message(booking),
                OutboundMessage.MessageType.PAYMENT_FAILED,
                user_id=booking.user_id,
                booking_id=booking.id,
            )
        return "cancelled"

    def _record_payment(self, event: GatewayEvent, booking: BookingRecord) -> None:
        if event.amount_total is not None:
            amount = Money.from_minor_units(event.amount_total, event.currency or booking.total.currency)
        else:
            amount = booking.total
        payment, created = self.payments.record_success(
            booking_id=booking.id,
            user_id=booking.user_id,
            amount=amount.amount,
            currency=amount.currency,
            external_reference=event.payment_reference,
            checkout_session_id=event.object_id if event.type.startswith("checkout.session.") else "",
            metadata={"event_id": event.id, **event.metadata},
        )
        if created:
            logger.info(f"Recorded payment {payment.external_reference} for booking {booking.id}")

    def _describe(self, booking: BookingRecord) -> str:
        asset = self.catalog.get(booking.asset)
        if asset is not None and asset.description:
            return asset.description
        return f"{booking.asset.asset_type.label} Rental"

    def _send_confirmation(self, booking: BookingRecord, description: str) -> None:
        if not booking.guest_phone:
            return
        try:
            dashboard_url = self.magic_links.issue(booking.user_id)
        except Exception as exc:  # fall back to the plain dashboard URL
            logger.warning(f"Could not issue magic link for user {booking.user_id}: {exc}")
            dashboard_url = f"{self.app_url}/bookings"
        self.dispatcher.send(
            booking.guest_phone,
            booking_confirmed_message(booking, description, dashboard_url),
            OutboundMessage.MessageType.BOOKING_CONFIRMED,
            user_id=booking.user_id,
            booking_id=booking.id,
        )

    def _set_outcome(self, event: GatewayEvent, outcome: str, detail: str) -> None:
        try:
            self.payments.set_event_outcome(event.id, outcome, detail)
        except Exception:  # audit only
            logger.exception(f"Could not update outcome of payment event {event.id}")
