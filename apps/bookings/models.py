"""Booking models for the rental portal.

A booking reserves exactly one asset (a property or a vehicle) for a
half-open date range. Only confirmed bookings block dates; pending ones wait
for the payment callback.
"""

from __future__ import annotations

import builtins
import uuid

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Booking(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", _("Pending payment")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")

    class BookingType(models.TextChoices):
        PROPERTY = "property", _("Property")
        VEHICLE = "vehicle", _("Vehicle")

    class CancellationSource(models.TextChoices):
        PAYMENT_FAILED = "payment_failed", _("Payment failed")
        CHECKOUT_EXPIRED = "checkout_expired", _("Checkout expired")
        EXPIRED_HOLD = "expired_hold", _("Abandoned checkout")
        CONFLICT = "conflict", _("Dates taken")
        OPERATOR = "operator", _("Cancelled by staff")

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    booking_type = models.CharField(max_length=20, choices=BookingType.choices)
    property = models.ForeignKey(
        "catalog.Property",
        on_delete=models.PROTECT,
        related_name="bookings",
        null=True,
        blank=True,
    )
    vehicle = models.ForeignKey(
        "catalog.Vehicle",
        on_delete=models.PROTECT,
        related_name="bookings",
        null=True,
        blank=True,
    )
    start_date = models.DateField()
    end_date = models.DateField()
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="usd")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    guest_name = models.CharField(max_length=255)
    guest_email = models.EmailField(blank=True)
    guest_phone = models.CharField(max_length=32, blank=True)
    external_checkout_token = models.CharField(max_length=255, unique=True, null=True, blank=True)
    cancellation_source = models.CharField(
        max_length=32, choices=CancellationSource.choices, blank=True
    )
    cancellation_reason = models.CharField(max_length=255, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="booking_valid_dates",
            ),
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0),
                name="booking_non_negative_total",
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(booking_type="property", property__isnull=False, vehicle__isnull=True)
                    | models.Q(booking_type="vehicle", vehicle__isnull=False, property__isnull=True)
                ),
                name="booking_single_asset",
            ),
        ]
        indexes = [
            models.Index(fields=["property", "start_date", "end_date"]),
            models.Index(fields=["vehicle", "start_date", "end_date"]),
            models.Index(fields=["status", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"Booking {self.short_code} ({self.booking_type}, {self.status})"

    @builtins.property
    def short_code(self) -> str:
        return str(self.id)[:8]

    @builtins.property
    def asset_id(self) -> int | None:
        return self.property_id if self.booking_type == self.BookingType.PROPERTY else self.vehicle_id

    @builtins.property
    def asset_label(self) -> str:
        asset = self.property if self.booking_type == self.BookingType.PROPERTY else self.vehicle
        return str(asset) if asset is not None else ""
