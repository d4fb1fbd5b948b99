"""Serializers for payments."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id",
            "booking",
            "amount",
            "currency",
            "status",
            "provider",
            "payment_method",
            "external_reference",
            "created_at",
        ]
        read_only_fields = fields
