"""Admin registrations for catalog assets."""

from __future__ import annotations

from django.contrib import admin

from .models import Property, Vehicle


@admin.register(Property)
class PropertyAdmin(admin.ModelAdmin):
    list_display = ("title", "city", "price_per_night", "cleaning_fee", "is_active", "created_at")
    list_filter = ("city", "is_active")
    search_fields = ("title", "address", "city")
    readonly_fields = ("created_at", "updated_at")


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ("make", "model", "year", "price_per_day", "service_fee", "is_active")
    list_filter = ("make", "is_active")
    search_fields = ("make", "model")
    readonly_fields = ("created_at", "updated_at")
