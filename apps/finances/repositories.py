"""Store access for payments and the processor event log."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from django.db import IntegrityError, transaction
from django.db.models import F

from apps.bookings.models import Booking

from .gateway import GatewayEvent
from .models import Payment, PaymentEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentRecord:
    id: int
    booking_id: UUID
    amount: Decimal
    currency: str
    status: str
    external_reference: str

    @classmethod
    def from_model(cls, payment: Payment) -> "PaymentRecord":
        return cls(
            id=payment.pk,
            booking_id=payment.booking_id,
            amount=payment.amount,
            currency=payment.currency,
            status=payment.status,
            external_reference=payment.external_reference,
        )


class DjangoPaymentRepository:
    def record_success(
        self,
        *,
        booking_id: UUID,
        user_id: int | None,
        amount: Decimal,
        currency: str,
        external_reference: str,
        checkout_session_id: str = "",
        metadata: dict | None = None,
    ) -> tuple[PaymentRecord, bool]:
        """Insert a succeeded payment unless one with this reference exists."""
        defaults = {
            "booking_id": booking_id,
            "user_id": user_id,
            "amount": amount,
            "currency": currency,
            "status": Payment.Status.SUCCEEDED,
            "checkout_session_id": checkout_session_id,
            "metadata": metadata or {},
        }
        try:
            with transaction.atomic():
                payment, created = Payment.objects.get_or_create(
                    external_reference=external_reference, defaults=defaults
                )
        except IntegrityError:
            # Concurrent delivery of the same event won the insert.
            payment, created = Payment.objects.get(external_reference=external_reference), False
        return PaymentRecord.from_model(payment), created

    def mark_failed(self, external_reference: str) -> int:
        if not external_reference:
            return 0
        # A late decline must not undo a payment that confirmed its booking.
        return (
            Payment.objects.filter(external_reference=external_reference)
            .exclude(status=Payment.Status.SUCCEEDED, booking__status=Booking.Status.CONFIRMED)
            .update(status=Payment.Status.FAILED)
        )

    def log_event(self, event: GatewayEvent) -> None:
        if not event.id:
            return
        try:
            with transaction.atomic():
                _, created = PaymentEvent.objects.get_or_create(
                    event_id=event.id,
                    defaults={"event_type": event.type, "payload": event.payload},
                )
        except IntegrityError:
            created = False
        if not created:
            PaymentEvent.objects.filter(event_id=event.id).update(deliveries=F("deliveries") + 1)
            logger.info(f"Redelivery of payment event {event.id} ({event.type})")

    def set_event_outcome(self, event_id: str, outcome: str, detail: str = "") -> None:
        if event_id:
            PaymentEvent.objects.filter(event_id=event_id).update(outcome=outcome, detail=detail[:255])
