"""User domain models for the booking portal.

Guests are identified by email and/or phone, either of which may be
missing. Phones are stored in canonical ``+<country><digits>`` form so that
lookups from bookings, OTP requests and WhatsApp replies agree.
"""

from __future__ import annotations

import hashlib
from datetime import timedelta
from typing import Any

from django.conf import settings
from django.contrib.auth.models import AbstractUser, BaseUserManager  # type: ignore
from django.core.validators import RegexValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.crypto import constant_time_compare, salted_hmac  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.phone import normalize_phone

PHONE_VALIDATOR = RegexValidator(
    regex=r"^\+\d{8,15}$",
    message=_("Phone numbers are stored in international format, e.g. +15551234567."),
)


class CustomUserManager(BaseUserManager):
    """User manager where email and phone are both optional logins."""

    use_in_migrations = True

    def _create_user(self, email: str | None, password: str | None, **extra_fields: Any):
        email = self.normalize_email(email).lower() if email else None
        phone = extra_fields.get("phone")
        if phone:
            extra_fields["phone"] = normalize_phone(phone)
        if not email and not extra_fields.get("phone"):
            raise ValueError("Either email or phone is required to create a user.")

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email: str | None = None, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        extra_fields.setdefault("role", CustomUser.RoleChoices.CUSTOMER)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email: str | None = None, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", CustomUser.RoleChoices.ADMIN)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)


class CustomUser(AbstractUser):
    """Portal user: a guest (customer) or back-office staff."""

    class RoleChoices(models.TextChoices):
        CUSTOMER = "customer", _("Customer")
        MANAGER = "manager", _("Manager")
        ADMIN = "admin", _("Admin")

    username = models.CharField(_("Display name"), max_length=150, blank=True)
    email = models.EmailField(_("Email"), unique=True, null=True, blank=True)
    phone = models.CharField(
        _("Phone"),
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        validators=[PHONE_VALIDATOR],
    )
    full_name = models.CharField(_("Full name"), max_length=255, blank=True)
    role = models.CharField(
        _("Role"),
        max_length=20,
        choices=RoleChoices.choices,
        default=RoleChoices.CUSTOMER,
    )
    is_phone_verified = models.BooleanField(_("Phone verified"), default=False)
    is_whatsapp_verified = models.BooleanField(_("WhatsApp verified"), default=False)
    otp_hash = models.CharField(max_length=64, blank=True)
    otp_expires_at = models.DateTimeField(null=True, blank=True)
    failed_otp_attempts = models.PositiveIntegerField(default=0)
    locked_until = models.DateTimeField(_("Locked until"), null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomUserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS: list[str] = []

    class Meta:
        verbose_name = _("User")
        verbose_name_plural = _("Users")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.full_name or self.email or self.phone} ({self.get_role_display()})"

    def is_staff_role(self) -> bool:
        return self.role in (self.RoleChoices.MANAGER, self.RoleChoices.ADMIN) or self.is_superuser

    # --- One-time passwords ---------------------------------------------------
    def _otp_digest(self, code: str) -> str:
        return salted_hmac("users.otp", f"{self.pk}:{code}").hexdigest()

    def set_otp(self, code: str, ttl: timedelta) -> None:
        self.otp_hash = self._otp_digest(code)
        self.otp_expires_at = timezone.now() + ttl
        self.save(update_fields=["otp_hash", "otp_expires_at", "updated_at"])

    def check_otp(self, code: str) -> bool:
        if not self.otp_hash or not self.otp_expires_at:
            return False
        if self.otp_expires_at <= timezone.now():
            return False
        return constant_time_compare(self.otp_hash, self._otp_digest(code))

    def mark_otp_verified(self) -> None:
        self.otp_hash = ""
        self.otp_expires_at = None
        self.failed_otp_attempts = 0
        self.locked_until = None
        self.is_phone_verified = True
        self.is_whatsapp_verified = True
        self.save(
            update_fields=[
                "otp_hash",
                "otp_expires_at",
                "failed_otp_attempts",
                "locked_until",
                "is_phone_verified",
                "is_whatsapp_verified",
                "updated_at",
            ]
        )

    @property
    def is_locked(self) -> bool:
        return bool(self.locked_until and self.locked_until > timezone.now())

    def lock(self, minutes: int = 15) -> None:
        self.locked_until = timezone.now() + timedelta(minutes=minutes)
        self.failed_otp_attempts = 0
        self.otp_hash = ""
        self.save(update_fields=["locked_until", "failed_otp_attempts", "otp_hash", "updated_at"])

    def register_failed_attempt(self, threshold: int = 5, lock_minutes: int = 15) -> None:
        self.failed_otp_attempts += 1
        if self.failed_otp_attempts >= threshold:
            self.lock(lock_minutes)
            return
        self.save(update_fields=["failed_otp_attempts", "updated_at"])


class MagicLink(models.Model):
    """Single-use dashboard login link delivered over WhatsApp."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="magic_links",
    )
    token_hash = models.CharField(max_length=64, unique=True)
    expires_at = models.DateTimeField()
    used_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Magic link")
        verbose_name_plural = _("Magic links")
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["expires_at"])]

    def __str__(self) -> str:
        return f"Magic link for {self.user_id}"

    @staticmethod
    def hash_token(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    @property
    def is_expired(self) -> bool:
        return timezone.now() >= self.expires_at
