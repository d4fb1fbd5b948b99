"""Admin registrations for the users domain."""

from __future__ import annotations

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import CustomUser, MagicLink


@admin.register(CustomUser)
class CustomUserAdmin(admin.ModelAdmin):
    fieldsets = (
        (None, {"fields": ("email", "phone", "full_name", "role")}),
        (
            _("Verification"),
            {"fields": ("is_phone_verified", "is_whatsapp_verified")},
        ),
        (
            _("Security"),
            {"fields": ("failed_otp_attempts", "locked_until")},
        ),
        (
            _("Permissions"),
            {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        (_("Important dates"), {"fields": ("last_login", "date_joined", "created_at", "updated_at")}),
    )
    list_display = (
        "email",
        "phone",
        "full_name",
        "role",
        "is_active",
        "is_phone_verified",
        "is_locked",
    )
    list_filter = ("role", "is_active", "is_phone_verified", "is_whatsapp_verified")
    search_fields = ("email", "phone", "full_name")
    filter_horizontal = ("groups", "user_permissions")
    ordering = ("-created_at",)
    readonly_fields = ("created_at", "updated_at", "date_joined", "last_login")


@admin.register(MagicLink)
class MagicLinkAdmin(admin.ModelAdmin):
    list_display = ("user", "expires_at", "used_at", "created_at")
    list_filter = ("used_at", "expires_at")
    search_fields = ("user__email", "user__phone")
    readonly_fields = ("token_hash", "created_at")
