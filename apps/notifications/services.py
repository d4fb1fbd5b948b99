"""Notification services: guest WhatsApp texts and staff inbox notifications."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.db import DatabaseError  # type: ignore

from apps.users.repositories import DjangoUserRepository

from .models import Notification

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.domain.entities import BookingRecord

logger = logging.getLogger(__name__)


# ============================================================================
# GUEST MESSAGES
# ============================================================================

def _booking_lines(booking: "BookingRecord", description: str) -> str:
    unit = "Nights" if booking.asset.asset_type.value == "property" else "Days"
    return (
        f"*{description}*\n"
        f"Booking ID: {str(booking.id)[:8]}\n"
        f"Dates: {booking.dates.start_date:%b %d, %Y} - {booking.dates.end_date:%b %d, %Y}\n"
        f"{unit}: {len(booking.dates)}\n"
        f"Total: {booking.total}"
    )


def booking_pending_message(booking: "BookingRecord", description: str) -> str:
    return (
        f"Hi {booking.guest_name}! Your booking with {settings.PORTAL_BRAND_NAME} has been created.\n\n"
        f"{_booking_lines(booking, description)}\n\n"
        "Please complete your payment to confirm the booking."
    )


def booking_confirmed_message(booking: "BookingRecord", description: str, dashboard_url: str) -> str:
    return (
        f"Payment received! Your booking with {settings.PORTAL_BRAND_NAME} is confirmed.\n\n"
        f"{_booking_lines(booking, description)}\n\n"
        f"View your bookings: {dashboard_url}"
    )


def payment_failed_message(booking: "BookingRecord") -> str:
    return (
        f"Hi {booking.guest_name}, the payment for booking {str(booking.id)[:8]} did not go through "
        "and the booking was released. You are welcome to book again."
    )


def otp_message(code: str) -> str:
    return (
        f"Your {settings.PORTAL_BRAND_NAME} verification code is: {code}\n\n"
        f"It expires in {settings.OTP_TTL_MINUTES} minutes. Do not share it with anyone."
    )


def dashboard_link_message(url: str) -> str:
    return (
        f"Here is your {settings.PORTAL_BRAND_NAME} dashboard link:\n{url}\n\n"
        f"It can be used once and expires in {settings.MAGIC_LINK_TTL_HOURS} hours."
    )


# ============================================================================
# STAFF NOTIFICATIONS
# ============================================================================

class ManagerNotifier:
    """Creates inbox notifications for every manager and admin. Never raises."""

    def __init__(self, users: DjangoUserRepository):
        self.users = users

    def booking_confirmed(self, booking: "BookingRecord", description: str = "") -> int:
        subject = description or booking.asset.asset_type.label
        message = (
            f"{booking.guest_name} booked {subject} from {booking.dates.start_date} "
            f"to {booking.dates.end_date}. Total: {booking.total}"
        )
        return self._notify_staff(
            "New Booking Confirmed", message, Notification.Type.BOOKING, booking.id
        )

    def refund_required(self, booking: "BookingRecord", reason: str) -> int:
        message = (
            f"Payment received for booking {str(booking.id)[:8]} ({booking.guest_name}, "
            f"{booking.dates}) but it could not be confirmed: {reason}. Refund the guest."
        )
        return self._notify_staff(
            "Refund Required", message, Notification.Type.PAYMENT, booking.id
        )

    def _notify_staff(self, title: str, message: str, notification_type: str, booking_id) -> int:
        try:
            staff_ids = self.users.staff_ids()
            Notification.objects.bulk_create(
                [
                    Notification(
                        user_id=user_id,
                        title=title,
                        message=message,
                        notification_type=notification_type,
                        related_booking_id=booking_id,
                    )
                    for user_id in staff_ids
                ]
            )
        except DatabaseError as exc:
            logger.error(f"Failed to create '{title}' notifications for booking {booking_id}: {exc}")
            return 0
        logger.info(f"Notified {len(staff_ids)} staff users: {title} ({booking_id})")
        return len(staff_ids)
