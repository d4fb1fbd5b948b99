"""Service wiring.

Views and tasks build their collaborators here so tests can swap the
payment gateway or messenger by patching ``get_payment_gateway`` /
``get_messenger``.
"""

from __future__ import annotations

from datetime import timedelta

from django.conf import settings
from django.utils.module_loading import import_string

from apps.bookings.application.checkout import CheckoutSessionInitiator
from apps.bookings.application.command_handlers import CreateBookingHandler
from apps.bookings.repositories import DjangoBookingRepository
from apps.bookings.services import AvailabilityChecker, BookingLedger
from apps.catalog.repositories import DjangoAssetCatalog
from apps.finances.gateway import PaymentGateway
from apps.finances.reconciler import PaymentReconciler
from apps.finances.repositories import DjangoPaymentRepository
from apps.notifications import messaging
from apps.notifications.messaging import MessageDispatcher
from apps.notifications.services import ManagerNotifier
from apps.users.identity import GuestIdentityResolver
from apps.users.repositories import DjangoUserRepository
from apps.users.services import DashboardLinkSender, MagicLinkService, OtpService


def get_payment_gateway() -> PaymentGateway:
    return import_string(settings.PAYMENT_GATEWAY_BACKEND).from_settings()


def get_messenger() -> messaging.Messenger:
    return messaging.get_messenger()


def build_dispatcher() -> MessageDispatcher:
    return MessageDispatcher(get_messenger())


def build_booking_ledger() -> BookingLedger:
    bookings = DjangoBookingRepository()
    return BookingLedger(
        bookings,
        DjangoAssetCatalog(),
        AvailabilityChecker(bookings),
        currency=settings.BOOKING_CURRENCY,
    )


def build_magic_link_service() -> MagicLinkService:
    return MagicLinkService(
        base_url=f"{settings.SITE_URL}/api/v1/auth/magic/",
        ttl=timedelta(hours=settings.MAGIC_LINK_TTL_HOURS),
    )


def build_otp_service() -> OtpService:
    return OtpService(
        build_dispatcher(),
        ttl=timedelta(minutes=settings.OTP_TTL_MINUTES),
        max_attempts=settings.OTP_MAX_ATTEMPTS,
        lock_minutes=settings.OTP_LOCK_MINUTES,
    )


def build_dashboard_link_sender() -> DashboardLinkSender:
    return DashboardLinkSender(build_magic_link_service(), build_dispatcher())


def build_create_booking_handler() -> CreateBookingHandler:
    ledger = build_booking_ledger()
    initiator = CheckoutSessionInitiator(
        get_payment_gateway(),
        ledger,
        build_dispatcher(),
        app_url=settings.APP_URL,
    )
    return CreateBookingHandler(
        ledger,
        GuestIdentityResolver(DjangoUserRepository()),
        initiator,
    )


def build_payment_reconciler() -> PaymentReconciler:
    return PaymentReconciler(
        get_payment_gateway(),
        build_booking_ledger(),
        DjangoBookingRepository(),
        DjangoPaymentRepository(),
        ManagerNotifier(DjangoUserRepository()),
        build_dispatcher(),
        build_magic_link_service(),
        catalog=DjangoAssetCatalog(),
        app_url=settings.APP_URL,
    )
