"""Guest authentication services: WhatsApp one-time passwords and magic links."""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from apps.notifications.messaging import MessageDispatcher
from apps.notifications.models import OutboundMessage
from apps.notifications.services import dashboard_link_message, otp_message
from shared.domain.errors import AuthError, ExternalServiceError, NotFoundError, ValidationError
from shared.domain.phone import normalize_phone

from .models import CustomUser, MagicLink

logger = logging.getLogger(__name__)

OTP_LENGTH = 6


def generate_otp() -> str:
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


class OtpService:
    def __init__(
        self,
        dispatcher: MessageDispatcher,
        *,
        ttl: timedelta = timedelta(minutes=10),
        max_attempts: int = 5,
        lock_minutes: int = 15,
    ):
        self.dispatcher = dispatcher
        self.ttl = ttl
        self.max_attempts = max_attempts
        self.lock_minutes = lock_minutes

    def send_code(self, phone: str) -> CustomUser:
        """Send a fresh code to ``phone``, creating the guest on first contact."""
        phone = normalize_phone(phone)
        user = CustomUser.objects.filter(phone=phone).first()
        if user is None:
            user = CustomUser.objects.create_user(phone=phone)
            logger.info(f"Created customer {user.pk} from OTP request")
        if user.is_locked:
            raise ValidationError("Too many attempts. Please try again later.")

        code = generate_otp()
        user.set_otp(code, self.ttl)
        sent = self.dispatcher.send(
            phone, otp_message(code), OutboundMessage.MessageType.OTP, user_id=user.pk
        )
        if not sent:
            raise ExternalServiceError(f"Failed to deliver OTP to user {user.pk}")
        return user

    def verify_code(self, phone: str, code: str) -> CustomUser:
        phone = normalize_phone(phone)
        code = (code or "").strip()
        if len(code) != OTP_LENGTH or not code.isdigit():
            raise ValidationError(f"Code must be {OTP_LENGTH} digits")

        user = CustomUser.objects.filter(phone=phone).first()
        if user is None:
            raise AuthError("Invalid or expired code")
        if user.is_locked:
            raise ValidationError("Too many attempts. Please try again later.")
        if not user.check_otp(code):
            user.register_failed_attempt(self.max_attempts, self.lock_minutes)
            raise AuthError("Invalid or expired code")

        user.mark_otp_verified()
        logger.info(f"User {user.pk} verified phone via OTP")
        return user


class MagicLinkService:
    """Single-use login links for the guest dashboard."""

    def __init__(self, *, base_url: str, ttl: timedelta = timedelta(hours=24)):
        self.base_url = base_url
        self.ttl = ttl

    def issue(self, user_id: int) -> str:
        token = secrets.token_hex(32)
        MagicLink.objects.create(
            user_id=user_id,
            token_hash=MagicLink.hash_token(token),
            expires_at=timezone.now() + self.ttl,
        )
        return f"{self.base_url}?token={token}"

    def redeem(self, token: str) -> CustomUser:
        if not token:
            raise AuthError("Invalid or expired link")
        now = timezone.now()
        with transaction.atomic():
            link = (
                MagicLink.objects.select_for_update()
                .select_related("user")
                .filter(token_hash=MagicLink.hash_token(token), used_at__isnull=True, expires_at__gt=now)
                .first()
            )
            if link is None or not link.user.is_active:
                raise AuthError("Invalid or expired link")
            link.used_at = now
            link.save(update_fields=["used_at"])
        return link.user


class DashboardLinkSender:
    """Sends a dashboard magic link to a guest who already has bookings."""

    def __init__(self, links: MagicLinkService, dispatcher: MessageDispatcher):
        self.links = links
        self.dispatcher = dispatcher

    def send(self, phone: str) -> None:
        phone = normalize_phone(phone)
        user = CustomUser.objects.filter(phone=phone, is_active=True).first()
        if user is None:
            raise NotFoundError("No bookings found for this number")
        url = self.links.issue(user.pk)
        sent = self.dispatcher.send(
            phone,
            dashboard_link_message(url),
            OutboundMessage.MessageType.DASHBOARD_LINK,
            user_id=user.pk,
        )
        if not sent:
            raise ExternalServiceError(f"Failed to deliver dashboard link to user {user.pk}")
