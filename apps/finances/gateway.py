"""Payment processor integration (Stripe Checkout).

The booking core talks to the processor through ``PaymentGateway``: open a
hosted checkout session, and turn a signed webhook delivery into a
``GatewayEvent``. ``StripeCheckoutGateway`` is the production backend.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import stripe
from django.conf import settings

from shared.domain.errors import AuthError, ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str


@dataclass(frozen=True)
class GatewayEvent:
    """A verified processor event, reduced to the fields reconciliation needs."""

    id: str
    type: str
    object_id: str
    metadata: dict[str, str] = field(default_factory=dict)
    payment_intent: str | None = None
    payment_status: str | None = None
    amount_total: int | None = None
    currency: str | None = None
    payload: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "GatewayEvent":
        if not isinstance(payload, dict) or not payload.get("type"):
            raise ValidationError("Malformed event payload")
        obj = (payload.get("data") or {}).get("object")
        if not isinstance(obj, dict):
            raise ValidationError("Malformed event payload")

        metadata = obj.get("metadata") or {}
        payment_intent = obj.get("payment_intent")
        if isinstance(payment_intent, dict):
            payment_intent = payment_intent.get("id")
        amount = obj.get("amount_total", obj.get("amount"))
        return cls(
            id=str(payload.get("id") or ""),
            type=str(payload["type"]),
            object_id=str(obj.get("id") or ""),
            metadata={str(k): str(v) for k, v in metadata.items() if v is not None},
            payment_intent=payment_intent or None,
            payment_status=obj.get("payment_status"),
            amount_total=amount if isinstance(amount, int) else None,
            currency=obj.get("currency"),
            payload=payload,
        )

    @property
    def payment_reference(self) -> str:
        """Payment intent id, falling back to the checkout session id."""
        return self.payment_intent or self.object_id


class PaymentGateway(Protocol):
    def create_checkout_session(
        self,
        *,
        amount_minor: int,
        currency: str,
        product_name: str,
        description: str,
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
        customer_email: str | None = None,
    ) -> CheckoutSession: ...

    def construct_event(self, raw_body: bytes, signature_header: str | None) -> GatewayEvent: ...


class StripeCheckoutGateway:
    def __init__(self, api_key: str, webhook_secret: str, *, tolerance: int = 300):
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.tolerance = tolerance

    @classmethod
    def from_settings(cls) -> "StripeCheckoutGateway":
        return cls(
            settings.STRIPE_SECRET_KEY,
            settings.STRIPE_WEBHOOK_SECRET,
            tolerance=settings.STRIPE_WEBHOOK_TOLERANCE,
        )

    def create_checkout_session(
        self,
        *,
        amount_minor: int,
        currency: str,
        product_name: str,
        description: str,
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str],
        customer_email: str | None = None,
    ) -> CheckoutSession:
        if not self.api_key:
            raise ExternalServiceError("STRIPE_SECRET_KEY is not configured")

        params: dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": currency,
                        "product_data": {"name": product_name, "description": description},
                        "unit_amount": amount_minor,
                    },
                    "quantity": 1,
                }
            ],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
            # Failure events are about the payment intent, so it needs the ids too.
            "payment_intent_data": {"metadata": metadata},
        }
        if customer_email:
            params["customer_email"] = customer_email

        try:
            session = stripe.checkout.Session.create(api_key=self.api_key, **params)
        except stripe.StripeError as exc:
            raise ExternalServiceError(f"Stripe checkout session creation failed: {exc}") from exc

        logger.info(f"Created checkout session {session.id} for booking {metadata.get('booking_id')}")
        return CheckoutSession(id=session.id, url=session.url)

    def construct_event(self, raw_body: bytes, signature_header: str | None) -> GatewayEvent:
        if not self.webhook_secret:
            raise ExternalServiceError("STRIPE_WEBHOOK_SECRET is not configured")
        if not signature_header:
            raise AuthError("Missing signature")

        try:
            payload = raw_body.decode("utf-8")
        except UnicodeDecodeError:
            raise ValidationError("Invalid payload encoding")

        try:
            stripe.Webhook.construct_event(payload, signature_header, self.webhook_secret, self.tolerance)
        except stripe.SignatureVerificationError as exc:
            logger.warning(f"Invalid webhook signature: {exc}")
            raise AuthError("Invalid signature")
        except ValueError:
            raise ValidationError("Invalid JSON payload")

        return GatewayEvent.from_payload(json.loads(payload))
