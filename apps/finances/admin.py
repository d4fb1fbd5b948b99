"""Admin registrations for payments and processor events."""

from __future__ import annotations

from django.contrib import admin

from .models import Payment, PaymentEvent


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ("external_reference", "booking", "amount", "currency", "status", "created_at")
    list_filter = ("status", "provider", "currency")
    search_fields = ("external_reference", "checkout_session_id", "booking__guest_name")
    readonly_fields = ("created_at", "updated_at")


@admin.register(PaymentEvent)
class PaymentEventAdmin(admin.ModelAdmin):
    list_display = ("event_id", "event_type", "outcome", "deliveries", "created_at")
    list_filter = ("event_type", "outcome")
    search_fields = ("event_id",)
    readonly_fields = [field.name for field in PaymentEvent._meta.fields]
