"""Fakes and builders shared by the booking, payment and auth tests."""

from __future__ import annotations

import hashlib
import hmac
import json
import time
from decimal import Decimal
from typing import Any

from django.conf import settings

from apps.bookings.application.checkout import CheckoutSessionInitiator
from apps.bookings.application.command_handlers import CreateBookingHandler
from apps.bookings.repositories import DjangoBookingRepository
from apps.bookings.services import AvailabilityChecker, BookingLedger
from apps.catalog.models import Property, Vehicle
from apps.catalog.repositories import DjangoAssetCatalog
from apps.finances.gateway import CheckoutSession, GatewayEvent, StripeCheckoutGateway
from apps.finances.reconciler import PaymentReconciler
from apps.finances.repositories import DjangoPaymentRepository
from apps.notifications.messaging import MessageDispatcher, MessageReceipt
from apps.notifications.services import ManagerNotifier
from apps.users.identity import GuestIdentityResolver
from apps.users.models import CustomUser
from apps.users.repositories import DjangoUserRepository
from apps.users.services import MagicLinkService
from shared.domain.errors import ExternalServiceError


class FakeMessenger:
    def __init__(self, *, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str]] = []

    def send_message(self, to: str, body: str) -> MessageReceipt:
        if self.fail:
            raise ExternalServiceError("messaging down")
        self.sent.append((to, body))
        return MessageReceipt(id=f"msg-{len(self.sent)}")


class FakeGateway(StripeCheckoutGateway):
    """Checkout sessions are faked; webhook verification is Stripe's real code."""

    def __init__(self, *, fail: bool = False):
        super().__init__("sk_test_fake", settings.STRIPE_WEBHOOK_SECRET)
        self.fail = fail
        self.sessions: list[dict[str, Any]] = []

    def create_checkout_session(self, **params) -> CheckoutSession:
        if self.fail:
            raise ExternalServiceError("processor down")
        self.sessions.append(params)
        session_id = f"cs_test_{len(self.sessions)}"
        return CheckoutSession(id=session_id, url=f"https://checkout.stripe.test/pay/{session_id}")


def make_property(**overrides) -> Property:
    data = {
        "title": "Seaside Cottage",
        "city": "Cape Town",
        "price_per_night": Decimal("100.00"),
        "cleaning_fee": Decimal("25.00"),
    }
    data.update(overrides)
    return Property.objects.create(**data)


def make_vehicle(**overrides) -> Vehicle:
    data = {
        "make": "Toyota",
        "model": "Corolla",
        "year": 2022,
        "price_per_day": Decimal("40.00"),
        "service_fee": Decimal("10.00"),
    }
    data.update(overrides)
    return Vehicle.objects.create(**data)


def make_manager(email: str = "manager@example.com", role: str = CustomUser.RoleChoices.MANAGER) -> CustomUser:
    return CustomUser.objects.create_user(email=email, role=role)


def build_ledger() -> BookingLedger:
    bookings = DjangoBookingRepository()
    return BookingLedger(bookings, DjangoAssetCatalog(), AvailabilityChecker(bookings), currency="usd")


def build_handler(gateway: FakeGateway, messenger: FakeMessenger) -> CreateBookingHandler:
    ledger = build_ledger()
    initiator = CheckoutSessionInitiator(
        gateway, ledger, MessageDispatcher(messenger), app_url=settings.APP_URL
    )
    return CreateBookingHandler(ledger, GuestIdentityResolver(DjangoUserRepository()), initiator)


def build_reconciler(gateway: FakeGateway, messenger: FakeMessenger) -> PaymentReconciler:
    return PaymentReconciler(
        gateway,
        build_ledger(),
        DjangoBookingRepository(),
        DjangoPaymentRepository(),
        ManagerNotifier(DjangoUserRepository()),
        MessageDispatcher(messenger),
        MagicLinkService(base_url=f"{settings.SITE_URL}/api/v1/auth/magic/"),
        catalog=DjangoAssetCatalog(),
        app_url=settings.APP_URL,
    )


def checkout_event(
    booking,
    event_type: str = "checkout.session.completed",
    *,
    event_id: str = "evt_1",
    payment_intent: str | None = "pi_1",
    payment_status: str = "paid",
    metadata: dict | None = None,
) -> dict[str, Any]:
    """Stripe-shaped event payload for a checkout session of ``booking``."""
    if metadata is None:
        metadata = {"booking_id": str(booking.id), "user_id": str(booking.user_id)}
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {
            "object": {
                "id": booking.external_checkout_token or "cs_unknown",
                "object": "checkout.session",
                "amount_total": int(booking.total_amount * 100),
                "currency": booking.currency,
                "payment_intent": payment_intent,
                "payment_status": payment_status,
                "metadata": metadata,
            }
        },
    }


def payment_intent_failed_event(booking, *, event_id: str = "evt_fail", payment_intent: str = "pi_1") -> dict[str, Any]:
    return {
        "id": event_id,
        "object": "event",
        "type": "payment_intent.payment_failed",
        "data": {
            "object": {
                "id": payment_intent,
                "object": "payment_intent",
                "amount": int(booking.total_amount * 100),
                "currency": booking.currency,
                "metadata": {"booking_id": str(booking.id)},
            }
        },
    }


def signed_payload(event: dict[str, Any], secret: str | None = None) -> tuple[bytes, str]:
    """Serialise ``event`` and build a valid ``Stripe-Signature`` header for it."""
    secret = secret or settings.STRIPE_WEBHOOK_SECRET
    payload = json.dumps(event)
    timestamp = int(time.time())
    signature = hmac.new(
        secret.encode("utf-8"), f"{timestamp}.{payload}".encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return payload.encode("utf-8"), f"t={timestamp},v1={signature}"


def gateway_event(event: dict[str, Any]) -> GatewayEvent:
    return GatewayEvent.from_payload(event)
