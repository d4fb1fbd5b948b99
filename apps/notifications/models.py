"""Notification models.

``Notification`` is an in-app message for managers and admins (new
confirmed bookings, refunds to handle). ``OutboundMessage`` logs every
WhatsApp send attempt to a guest, successful or not.
"""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Notification(models.Model):
    """A message sent to a staff user about some event."""

    class Type(models.TextChoices):
        BOOKING = 'booking', _('Booking')
        PAYMENT = 'payment', _('Payment')
        SYSTEM = 'system', _('System')

    user = models.ForeignKey(
        'users.CustomUser', on_delete=models.CASCADE, related_name='notifications'
    )
    title = models.CharField(max_length=255)
    message = models.TextField()
    notification_type = models.CharField(max_length=20, choices=Type.choices, default=Type.SYSTEM)
    related_booking = models.ForeignKey(
        'bookings.Booking',
        on_delete=models.SET_NULL,
        related_name='notifications',
        null=True,
        blank=True,
    )
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f"Notification to {self.user_id}: {self.title}"


class OutboundMessage(models.Model):
    """One WhatsApp message send attempt."""

    class Status(models.TextChoices):
        SENT = 'sent', _('Sent')
        FAILED = 'failed', _('Failed')

    class MessageType(models.TextChoices):
        OTP = 'otp', _('One-time password')
        BOOKING_PENDING = 'booking_pending', _('Booking awaiting payment')
        BOOKING_CONFIRMED = 'booking_confirmed', _('Booking confirmed')
        PAYMENT_FAILED = 'payment_failed', _('Payment failed')
        DASHBOARD_LINK = 'dashboard_link', _('Dashboard link')

    phone = models.CharField(max_length=32)
    body = models.TextField()
    message_type = models.CharField(max_length=32, choices=MessageType.choices)
    status = models.CharField(max_length=10, choices=Status.choices)
    provider_message_id = models.CharField(max_length=255, blank=True)
    error = models.TextField(blank=True)
    user = models.ForeignKey(
        'users.CustomUser',
        on_delete=models.SET_NULL,
        related_name='outbound_messages',
        null=True,
        blank=True,
    )
    booking = models.ForeignKey(
        'bookings.Booking',
        on_delete=models.SET_NULL,
        related_name='outbound_messages',
        null=True,
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [models.Index(fields=['phone', 'created_at'])]

    def __str__(self) -> str:
        return f"{self.message_type} to {self.phone} ({self.status})"
