"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "short_code",
        "booking_type",
        "asset_label",
        "guest_name",
        "status",
        "start_date",
        "end_date",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "booking_type", "cancellation_source", "start_date")
    search_fields = ("id", "guest_name", "guest_email", "guest_phone", "external_checkout_token")
    list_select_related = ("property", "vehicle")
    readonly_fields = (
        "id",
        "external_checkout_token",
        "total_amount",
        "currency",
        "confirmed_at",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
