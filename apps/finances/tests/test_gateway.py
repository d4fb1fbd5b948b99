"""Tests for the Stripe checkout gateway."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe

from apps.bookings.tests.helpers import signed_payload
from apps.finances.gateway import GatewayEvent, StripeCheckoutGateway
from shared.domain.errors import AuthError, ExternalServiceError, ValidationError

SECRET = "whsec_gateway_test"


def _event(**object_fields) -> dict:
    obj = {"id": "cs_test_9", "object": "checkout.session", "metadata": {"booking_id": "b-1"}}
    obj.update(object_fields)
    return {"id": "evt_9", "type": "checkout.session.completed", "data": {"object": obj}}


def _session_kwargs(**overrides) -> dict:
    kwargs = {
        "amount_minor": 22500,
        "currency": "usd",
        "product_name": "Seaside Cottage",
        "description": "Booking from 2024-06-01 to 2024-06-03",
        "success_url": "https://portal.example.com/booking-success?session_id={CHECKOUT_SESSION_ID}",
        "cancel_url": "https://portal.example.com/booking-cancelled",
        "metadata": {"booking_id": "b-1", "user_id": "7"},
    }
    kwargs.update(overrides)
    return kwargs


def test_event_fields_are_extracted() -> None:
    event = GatewayEvent.from_payload(
        _event(payment_intent="pi_9", payment_status="paid", amount_total=22500, currency="usd")
    )

    assert event.id == "evt_9"
    assert event.object_id == "cs_test_9"
    assert event.metadata == {"booking_id": "b-1"}
    assert event.payment_reference == "pi_9"
    assert event.amount_total == 22500


def test_expanded_payment_intent_is_reduced_to_its_id() -> None:
    event = GatewayEvent.from_payload(_event(payment_intent={"id": "pi_expanded", "object": "payment_intent"}))

    assert event.payment_intent == "pi_expanded"


def test_reference_falls_back_to_session_id() -> None:
    assert GatewayEvent.from_payload(_event(payment_intent=None)).payment_reference == "cs_test_9"


@pytest.mark.parametrize("payload", [{}, {"type": "x"}, {"type": "x", "data": {"object": "nope"}}, []])
def test_malformed_payload_is_rejected(payload) -> None:
    with pytest.raises(ValidationError):
        GatewayEvent.from_payload(payload)


def test_construct_event_accepts_valid_signature() -> None:
    gateway = StripeCheckoutGateway("sk_test", SECRET)
    body, header = signed_payload(_event(), SECRET)

    event = gateway.construct_event(body, header)

    assert event.type == "checkout.session.completed"
    assert event.metadata["booking_id"] == "b-1"


def test_construct_event_rejects_wrong_secret() -> None:
    gateway = StripeCheckoutGateway("sk_test", SECRET)
    body, header = signed_payload(_event(), "whsec_other")

    with pytest.raises(AuthError):
        gateway.construct_event(body, header)


def test_construct_event_requires_header() -> None:
    gateway = StripeCheckoutGateway("sk_test", SECRET)

    with pytest.raises(AuthError):
        gateway.construct_event(json.dumps(_event()).encode(), None)


def test_construct_event_without_secret_is_a_configuration_error() -> None:
    gateway = StripeCheckoutGateway("sk_test", "")
    body, header = signed_payload(_event(), SECRET)

    with pytest.raises(ExternalServiceError):
        gateway.construct_event(body, header)


def test_checkout_session_carries_metadata_on_payment_intent() -> None:
    gateway = StripeCheckoutGateway("sk_test_key", SECRET)
    fake = SimpleNamespace(id="cs_live_1", url="https://checkout.stripe.com/c/pay/cs_live_1")

    with patch("stripe.checkout.Session.create", return_value=fake) as create:
        session = gateway.create_checkout_session(**_session_kwargs(customer_email="ada@example.com"))

    assert session.id == "cs_live_1"
    assert session.url.endswith("cs_live_1")
    params = create.call_args.kwargs
    assert params["api_key"] == "sk_test_key"
    assert params["mode"] == "payment"
    assert params["metadata"] == {"booking_id": "b-1", "user_id": "7"}
    assert params["payment_intent_data"] == {"metadata": {"booking_id": "b-1", "user_id": "7"}}
    assert params["line_items"][0]["price_data"]["unit_amount"] == 22500
    assert params["customer_email"] == "ada@example.com"


def test_checkout_session_omits_missing_email() -> None:
    gateway = StripeCheckoutGateway("sk_test_key", SECRET)
    fake = SimpleNamespace(id="cs_1", url="https://checkout.stripe.com/c/pay/cs_1")

    with patch("stripe.checkout.Session.create", return_value=fake) as create:
        gateway.create_checkout_session(**_session_kwargs())

    assert "customer_email" not in create.call_args.kwargs


def test_stripe_failure_becomes_external_service_error() -> None:
    gateway = StripeCheckoutGateway("sk_test_key", SECRET)

    with patch("stripe.checkout.Session.create", side_effect=stripe.APIConnectionError("network down")):
        with pytest.raises(ExternalServiceError) as excinfo:
            gateway.create_checkout_session(**_session_kwargs())

    assert "network down" not in excinfo.value.public_message


def test_missing_api_key_fails_before_calling_stripe() -> None:
    gateway = StripeCheckoutGateway("", SECRET)

    with patch("stripe.checkout.Session.create") as create:
        with pytest.raises(ExternalServiceError):
            gateway.create_checkout_session(**_session_kwargs())

    create.assert_not_called()
