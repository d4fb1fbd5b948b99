"""WhatsApp messaging.

``Messenger`` backends deliver one text message or raise.
``MessageDispatcher`` wraps a backend for the booking flows: it normalises
the phone, logs an ``OutboundMessage`` row and never lets a delivery
failure escape.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Protocol

import requests
from django.conf import settings
from django.db import DatabaseError
from django.utils.module_loading import import_string
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from shared.domain.errors import ExternalServiceError, ValidationError
from shared.domain.phone import normalize_phone

from .models import OutboundMessage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MessageReceipt:
    id: str


class Messenger(Protocol):
    def send_message(self, to: str, body: str) -> MessageReceipt: ...


class TwilioWhatsAppMessenger:
    """Twilio's WhatsApp channel; numbers are addressed as ``whatsapp:+<digits>``."""

    def __init__(self, account_sid: str, auth_token: str, from_number: str):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number.removeprefix("whatsapp:")
        self._client: Client | None = None

    @classmethod
    def from_settings(cls) -> "TwilioWhatsAppMessenger":
        return cls(
            settings.TWILIO_ACCOUNT_SID,
            settings.TWILIO_AUTH_TOKEN,
            settings.TWILIO_WHATSAPP_NUMBER,
        )

    @property
    def client(self) -> Client:
        if self._client is None:
            if not (self.account_sid and self.auth_token and self.from_number):
                raise ExternalServiceError("Twilio WhatsApp credentials are not configured")
            self._client = Client(self.account_sid, self.auth_token)
        return self._client

    def send_message(self, to: str, body: str) -> MessageReceipt:
        try:
            message = self.client.messages.create(
                body=body,
                from_=f"whatsapp:{self.from_number}",
                to=f"whatsapp:{to}",
            )
        except TwilioRestException as exc:
            raise ExternalServiceError(f"Twilio error {exc.code}: {exc.msg}") from exc
        return MessageReceipt(id=message.sid)


class CloudApiWhatsAppMessenger:
    """WhatsApp Business Cloud API (graph.facebook.com)."""

    def __init__(self, access_token: str, phone_number_id: str, *, api_version: str = "v18.0", timeout: int = 10):
        self.access_token = access_token
        self.url = f"https://graph.facebook.com/{api_version}/{phone_number_id}/messages"
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "CloudApiWhatsAppMessenger":
        return cls(
            settings.WHATSAPP_ACCESS_TOKEN,
            settings.WHATSAPP_PHONE_NUMBER_ID,
            api_version=settings.WHATSAPP_API_VERSION,
        )

    def send_message(self, to: str, body: str) -> MessageReceipt:
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": to.lstrip("+"),
            "type": "text",
            "text": {"preview_url": True, "body": body},
        }
        try:
            response = requests.post(self.url, headers=headers, json=payload, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise ExternalServiceError(f"WhatsApp Cloud API error: {exc}") from exc
        messages = data.get("messages") or [{}]
        return MessageReceipt(id=str(messages[0].get("id", "")))


class ConsoleMessenger:
    """Development backend: writes messages to the log."""

    @classmethod
    def from_settings(cls) -> "ConsoleMessenger":
        return cls()

    def send_message(self, to: str, body: str) -> MessageReceipt:
        receipt = MessageReceipt(id=f"console-{uuid.uuid4().hex[:12]}")
        logger.info(f"WhatsApp to {to} [{receipt.id}]: {body}")
        return receipt


def get_messenger() -> Messenger:
    backend = import_string(settings.WHATSAPP_BACKEND)
    return backend.from_settings()


class MessageDispatcher:
    """Best-effort delivery: returns True when the backend accepted the message."""

    def __init__(self, messenger: Messenger):
        self.messenger = messenger

    def send(
        self,
        phone: str | None,
        body: str,
        message_type: str,
        *,
        user_id: int | None = None,
        booking_id=None,
    ) -> bool:
        try:
            to = normalize_phone(phone or "")
        except ValidationError:
            logger.warning(f"Skipping {message_type} message: invalid phone {phone!r}")
            self._record(phone or "", body, message_type, OutboundMessage.Status.FAILED,
                         error="invalid phone number", user_id=user_id, booking_id=booking_id)
            return False

        try:
            receipt = self.messenger.send_message(to, body)
        except Exception as exc:  # delivery must never break the calling flow
            logger.warning(f"Failed to send {message_type} message to {to}: {exc}")
            self._record(to, body, message_type, OutboundMessage.Status.FAILED,
                         error=str(exc), user_id=user_id, booking_id=booking_id)
            return False

        logger.info(f"Sent {message_type} message to {to} ({receipt.id})")
        self._record(to, body, message_type, OutboundMessage.Status.SENT,
                     provider_message_id=receipt.id, user_id=user_id, booking_id=booking_id)
        return True

    @staticmethod
    def _record(phone, body, message_type, status, *, provider_message_id="", error="", user_id=None, booking_id=None):
        try:
            OutboundMessage.objects.create(
                phone=phone[:32],
                body=body,
                message_type=message_type,
                status=status,
                provider_message_id=provider_message_id,
                error=error,
                user_id=user_id,
                booking_id=booking_id,
            )
        except DatabaseError as exc:
            logger.error(f"Could not log outbound {message_type} message: {exc}")
