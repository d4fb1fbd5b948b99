"""Tests for the create-booking use case and the checkout session initiator."""

from __future__ import annotations

from datetime import date

from django.test import TestCase

from apps.bookings.domain.entities import BookingRequest
from apps.bookings.models import Booking
from apps.catalog.domain import AssetRef, AssetType
from apps.notifications.models import OutboundMessage
from apps.users.models import CustomUser
from shared.domain.errors import ConflictError, ExternalServiceError, ValidationError

from .helpers import FakeGateway, FakeMessenger, build_handler, build_ledger, make_property, make_vehicle


class CreateBookingHandlerTests(TestCase):
    def setUp(self) -> None:
        self.gateway = FakeGateway()
        self.messenger = FakeMessenger()
        self.handler = build_handler(self.gateway, self.messenger)
        self.property = make_property()

    def request(self, **overrides) -> BookingRequest:
        data = {
            "asset": AssetRef(AssetType.PROPERTY, self.property.pk),
            "start_date": date(2024, 6, 1),
            "end_date": date(2024, 6, 3),
            "guest_name": "Ada Guest",
            "guest_phone": "(555) 123-4567",
            "guest_email": "Ada@Example.com",
        }
        data.update(overrides)
        return BookingRequest(**data)

    def test_checkout_opens_session_and_stamps_token(self) -> None:
        result = self.handler.handle(self.request())

        booking = Booking.objects.get(pk=result.booking_id)
        self.assertEqual(booking.status, Booking.Status.PENDING)
        self.assertEqual(booking.external_checkout_token, result.token)
        self.assertEqual(result.token, "cs_test_1")
        self.assertEqual(result.checkout_url, "https://checkout.stripe.test/pay/cs_test_1")

        session = self.gateway.sessions[0]
        self.assertEqual(session["amount_minor"], 22500)
        self.assertEqual(session["currency"], "usd")
        self.assertEqual(session["product_name"], "Seaside Cottage")
        self.assertEqual(
            session["success_url"],
            "https://portal.example.com/booking-success?session_id={CHECKOUT_SESSION_ID}",
        )
        self.assertEqual(session["cancel_url"], f"https://portal.example.com/property/{self.property.pk}")
        self.assertEqual(
            session["metadata"],
            {
                "booking_id": str(booking.pk),
                "asset_type": "property",
                "asset_id": str(self.property.pk),
                "user_id": str(booking.user_id),
                "guest_name": "Ada Guest",
                "phone_number": "(555) 123-4567",
                "email": "ada@example.com",
            },
        )
        self.assertEqual(session["customer_email"], "ada@example.com")

    def test_guest_is_resolved_with_normalised_contact(self) -> None:
        result = self.handler.handle(self.request())

        user = Booking.objects.get(pk=result.booking_id).user
        self.assertEqual(user.phone, "+15551234567")
        self.assertEqual(user.email, "ada@example.com")
        self.assertEqual(user.role, CustomUser.RoleChoices.CUSTOMER)

    def test_guest_receives_pending_whatsapp_message(self) -> None:
        self.handler.handle(self.request())

        self.assertEqual(len(self.messenger.sent), 1)
        to, body = self.messenger.sent[0]
        self.assertEqual(to, "+15551234567")
        self.assertIn("Seaside Cottage", body)
        self.assertIn("complete your payment", body)
        self.assertTrue(
            OutboundMessage.objects.filter(
                message_type=OutboundMessage.MessageType.BOOKING_PENDING,
                status=OutboundMessage.Status.SENT,
            ).exists()
        )

    def test_email_only_guest_gets_no_message(self) -> None:
        self.handler.handle(self.request(guest_phone=None))
        self.assertEqual(self.messenger.sent, [])

    def test_messaging_failure_does_not_fail_checkout(self) -> None:
        handler = build_handler(self.gateway, FakeMessenger(fail=True))

        result = handler.handle(self.request())

        self.assertTrue(Booking.objects.filter(pk=result.booking_id).exists())
        self.assertTrue(OutboundMessage.objects.filter(status=OutboundMessage.Status.FAILED).exists())

    def test_processor_failure_leaves_pending_booking_without_token(self) -> None:
        handler = build_handler(FakeGateway(fail=True), self.messenger)

        with self.assertRaises(ExternalServiceError):
            handler.handle(self.request())

        booking = Booking.objects.get()
        self.assertEqual(booking.status, Booking.Status.PENDING)
        self.assertIsNone(booking.external_checkout_token)

    def test_resubmission_after_failure_creates_new_booking(self) -> None:
        with self.assertRaises(ExternalServiceError):
            build_handler(FakeGateway(fail=True), self.messenger).handle(self.request())

        result = self.handler.handle(self.request())

        self.assertEqual(Booking.objects.count(), 2)
        self.assertEqual(CustomUser.objects.count(), 1)
        self.assertEqual(Booking.objects.get(pk=result.booking_id).external_checkout_token, "cs_test_1")

    def test_invalid_request_writes_nothing(self) -> None:
        with self.assertRaises(ValidationError):
            self.handler.handle(self.request(end_date=date(2024, 6, 1)))

        self.assertFalse(Booking.objects.exists())
        self.assertFalse(CustomUser.objects.exists())
        self.assertEqual(self.gateway.sessions, [])

    def test_unavailable_dates_conflict(self) -> None:
        ledger = build_ledger()
        first = self.handler.handle(self.request())
        ledger.finalize(first.booking_id)

        with self.assertRaises(ConflictError):
            self.handler.handle(self.request(start_date=date(2024, 6, 2), end_date=date(2024, 6, 4)))
        self.assertEqual(Booking.objects.count(), 1)

    def test_vehicle_checkout_uses_make_and_model(self) -> None:
        vehicle = make_vehicle()
        result = self.handler.handle(
            self.request(asset=AssetRef(AssetType.VEHICLE, vehicle.pk), end_date=date(2024, 6, 4))
        )

        session = self.gateway.sessions[0]
        self.assertEqual(session["product_name"], "2022 Toyota Corolla")
        self.assertEqual(session["amount_minor"], 13000)
        self.assertEqual(session["cancel_url"], f"https://portal.example.com/vehicle/{vehicle.pk}")
        self.assertEqual(Booking.objects.get(pk=result.booking_id).booking_type, "vehicle")
