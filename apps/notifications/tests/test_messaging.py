"""Tests for WhatsApp backends and the message dispatcher."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import requests
from django.test import TestCase, override_settings
from twilio.base.exceptions import TwilioRestException

from apps.bookings.tests.helpers import FakeMessenger
from apps.notifications.messaging import (
    CloudApiWhatsAppMessenger,
    ConsoleMessenger,
    MessageDispatcher,
    TwilioWhatsAppMessenger,
    get_messenger,
)
from apps.notifications.models import OutboundMessage
from shared.domain.errors import ExternalServiceError


class MessageDispatcherTests(TestCase):
    def test_successful_send_is_logged(self) -> None:
        messenger = FakeMessenger()

        sent = MessageDispatcher(messenger).send("+1 555 123 4567", "hello", OutboundMessage.MessageType.OTP)

        self.assertTrue(sent)
        self.assertEqual(messenger.sent, [("+15551234567", "hello")])
        record = OutboundMessage.objects.get()
        self.assertEqual(record.status, OutboundMessage.Status.SENT)
        self.assertEqual(record.provider_message_id, "msg-1")
        self.assertEqual(record.phone, "+15551234567")

    def test_backend_failure_is_swallowed_and_logged(self) -> None:
        sent = MessageDispatcher(FakeMessenger(fail=True)).send(
            "+15551234567", "hello", OutboundMessage.MessageType.BOOKING_PENDING
        )

        self.assertFalse(sent)
        record = OutboundMessage.objects.get()
        self.assertEqual(record.status, OutboundMessage.Status.FAILED)
        self.assertTrue(record.error)

    def test_invalid_phone_is_not_sent(self) -> None:
        messenger = FakeMessenger()

        sent = MessageDispatcher(messenger).send("abc", "hello", OutboundMessage.MessageType.OTP)

        self.assertFalse(sent)
        self.assertEqual(messenger.sent, [])
        self.assertEqual(OutboundMessage.objects.get().error, "invalid phone number")


def test_twilio_addresses_whatsapp_numbers() -> None:
    client = MagicMock()
    client.messages.create.return_value = SimpleNamespace(sid="SM123")

    with patch("apps.notifications.messaging.Client", return_value=client) as client_cls:
        receipt = TwilioWhatsAppMessenger("AC1", "token", "whatsapp:+14155238886").send_message(
            "+15551234567", "hi"
        )

    client_cls.assert_called_once_with("AC1", "token")
    client.messages.create.assert_called_once_with(
        body="hi", from_="whatsapp:+14155238886", to="whatsapp:+15551234567"
    )
    assert receipt.id == "SM123"


def test_twilio_error_becomes_external_service_error() -> None:
    client = MagicMock()
    client.messages.create.side_effect = TwilioRestException(400, "https://api.twilio.com", "bad number", 21211)

    with patch("apps.notifications.messaging.Client", return_value=client):
        with pytest.raises(ExternalServiceError):
            TwilioWhatsAppMessenger("AC1", "token", "+14155238886").send_message("+15551234567", "hi")


def test_twilio_without_credentials_fails() -> None:
    with pytest.raises(ExternalServiceError):
        TwilioWhatsAppMessenger("", "", "").send_message("+15551234567", "hi")


def test_cloud_api_posts_text_message() -> None:
    response = MagicMock()
    response.json.return_value = {"messages": [{"id": "wamid.1"}]}

    with patch("apps.notifications.messaging.requests.post", return_value=response) as post:
        receipt = CloudApiWhatsAppMessenger("tok", "12345", api_version="v19.0").send_message(
            "+15551234567", "hi"
        )

    assert receipt.id == "wamid.1"
    url = post.call_args.args[0]
    assert url == "https://graph.facebook.com/v19.0/12345/messages"
    payload = post.call_args.kwargs["json"]
    assert payload["to"] == "15551234567"
    assert payload["text"]["body"] == "hi"
    assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer tok"


def test_cloud_api_http_error_becomes_external_service_error() -> None:
    response = MagicMock()
    response.raise_for_status.side_effect = requests.HTTPError("401 Unauthorized")

    with patch("apps.notifications.messaging.requests.post", return_value=response):
        with pytest.raises(ExternalServiceError):
            CloudApiWhatsAppMessenger("tok", "12345").send_message("+15551234567", "hi")


def test_backend_is_chosen_from_settings() -> None:
    with override_settings(WHATSAPP_BACKEND="apps.notifications.messaging.ConsoleMessenger"):
        assert isinstance(get_messenger(), ConsoleMessenger)
    with override_settings(
        WHATSAPP_BACKEND="apps.notifications.messaging.TwilioWhatsAppMessenger",
        TWILIO_ACCOUNT_SID="AC1",
        TWILIO_AUTH_TOKEN="token",
        TWILIO_WHATSAPP_NUMBER="+14155238886",
    ):
        assert isinstance(get_messenger(), TwilioWhatsAppMessenger)
