"""Admin registrations for notifications and the WhatsApp message log."""

from __future__ import annotations

from django.contrib import admin

from .models import Notification, OutboundMessage


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "user", "notification_type", "is_read", "created_at")
    list_filter = ("notification_type", "is_read")
    search_fields = ("title", "message", "user__email")


@admin.register(OutboundMessage)
class OutboundMessageAdmin(admin.ModelAdmin):
    list_display = ("phone", "message_type", "status", "provider_message_id", "created_at")
    list_filter = ("message_type", "status")
    search_fields = ("phone", "provider_message_id")
    readonly_fields = [field.name for field in OutboundMessage._meta.fields]
